#foodsaver/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from foodsaver.data.database import get_db
from foodsaver.domain.errors import InsufficientStock, ItemRemoved
from foodsaver.domain.schemas import CartItemIn, CartOut, CartQuantityIn
from foodsaver.services.cart_service import CartService

router = APIRouter(prefix="/carts", tags=["carts"])


def get_service(db: Session):
    return CartService(db)


@router.get("/{buyer_id}", response_model=CartOut)
def get_cart(buyer_id: str, db: Session = Depends(get_db)):
    svc = get_service(db)
    return svc.get_cart(buyer_id)


@router.post("/{buyer_id}/items", response_model=CartOut)
def add_item(buyer_id: str, payload: CartItemIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.add_item(buyer_id, payload.food_id, payload.quantity)
    except InsufficientStock as e:
        raise HTTPException(status_code=409, detail=e.message)
    except ItemRemoved as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/{buyer_id}/items/{line_id}", response_model=CartOut)
def update_quantity(
    buyer_id: str,
    line_id: int,
    payload: CartQuantityIn,
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.update_quantity(buyer_id, line_id, payload.quantity)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except InsufficientStock as e:
        raise HTTPException(status_code=409, detail=e.message)
    except ItemRemoved as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{buyer_id}/items/{line_id}", response_model=CartOut)
def remove_item(buyer_id: str, line_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.remove_line(buyer_id, line_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
