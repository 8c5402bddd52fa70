# foodsaver/api/routers/foods.py
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from foodsaver.data.database import get_db
from foodsaver.domain.errors import TransactionAborted
from foodsaver.domain.schemas import FoodCreate, FoodOut, FoodUpdate, StockIn
from foodsaver.services.inventory_service import InventoryService

router = APIRouter(prefix="/foods", tags=["foods"])


def get_service(db: Session):
    return InventoryService(db)


@router.post("/", response_model=FoodOut, status_code=201)
def create_food(payload: FoodCreate, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.create_listing(**payload.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{food_id}/stock", response_model=FoodOut)
def set_stock(
    food_id: str,
    payload: StockIn,
    user_id: str = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.set_stock(user_id, food_id, payload.quantity)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except TransactionAborted as e:
        raise HTTPException(status_code=503, detail=e.message)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{food_id}/withdraw", response_model=FoodOut)
def withdraw(food_id: str, user_id: str = Query(...), db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.withdraw(user_id, food_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except TransactionAborted as e:
        raise HTTPException(status_code=503, detail=e.message)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{food_id}", response_model=FoodOut)
def update_food(
    food_id: str,
    payload: FoodUpdate,
    user_id: str = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.update_listing(user_id, food_id, **payload.model_dump(exclude_unset=True))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{food_id}", status_code=204)
def delete_food(food_id: str, user_id: str = Query(...), db: Session = Depends(get_db)):
    """Removes the listing. Carts still holding it fail checkout with item_removed."""
    svc = get_service(db)
    try:
        svc.delete_listing(user_id, food_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except TransactionAborted as e:
        raise HTTPException(status_code=503, detail=e.message)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return Response(status_code=204)
