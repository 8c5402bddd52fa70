# foodsaver/api/routers/checkout.py
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from foodsaver.data.database import get_db
from foodsaver.domain.errors import CheckoutInProgress
from foodsaver.domain.schemas import CheckoutOut
from foodsaver.services.checkout_service import CheckoutService
from foodsaver.services.lock_service import LockService

router = APIRouter(prefix="/checkout", tags=["checkout"])


def get_lock_service() -> LockService | None:
    return LockService()


@router.post("/", response_model=CheckoutOut)
def checkout(
    user_id: str = Query(...),
    db: Session = Depends(get_db),
    lock_service: LockService | None = Depends(get_lock_service),
):
    """
    Orders the whole cart, one order per store.
    Partial failure is part of the 200 response, not an HTTP error.
    """
    svc = CheckoutService(db, lock_service=lock_service)
    try:
        result = svc.checkout(user_id)
    except CheckoutInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "all_succeeded": result.all_succeeded,
        "succeeded": [asdict(s) for s in result.succeeded],
        "failed": [asdict(f) for f in result.failed],
    }
