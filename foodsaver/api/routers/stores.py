# foodsaver/api/routers/stores.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from foodsaver.data.database import get_db
from foodsaver.domain.schemas import OrderOut, StoreIn, StoreOut, StoreSummaryOut
from foodsaver.services.inventory_service import InventoryService
from foodsaver.services.order_service import OrderService
from foodsaver.services.store_profile_service import StoreProfileService

router = APIRouter(prefix="/stores", tags=["stores"])


@router.put("/{store_id}", response_model=StoreOut)
def upsert_store(store_id: str, payload: StoreIn, db: Session = Depends(get_db)):
    svc = StoreProfileService(db)
    try:
        return svc.upsert_store(store_id, payload.name, payload.delivery_mode, payload.closing_time)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{store_id}", response_model=StoreOut)
def get_store(store_id: str, db: Session = Depends(get_db)):
    svc = StoreProfileService(db)
    try:
        return svc.get_store(store_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{store_id}/summary", response_model=StoreSummaryOut)
def store_summary(store_id: str, db: Session = Depends(get_db)):
    return InventoryService(db).store_summary(store_id)


@router.get("/{store_id}/orders", response_model=List[OrderOut])
def store_orders(store_id: str, db: Session = Depends(get_db)):
    return OrderService(db).list_store_orders(store_id)
