# foodsaver/repos/food_repo.py
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, TypeVar

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from foodsaver.data.models.food_item import FoodItemModel
from foodsaver.domain.errors import CheckoutError, InsufficientStock, ItemRemoved, TransactionAborted
from foodsaver.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class StockTransaction:
    """
    Handle passed to the run_atomic callback.
    Reads come from the rows locked when the scope opened,
    writes are conditional updates so quantity never goes below 0.
    """

    def __init__(self, db: Session, foods: Dict[str, FoodItemModel]):
        self.db = db
        self.foods = foods

    def get(self, food_id: str) -> FoodItemModel | None:
        return self.foods.get(food_id)

    def require(self, food_id: str, food_name: str | None = None) -> FoodItemModel:
        food = self.foods.get(food_id)
        if food is None:
            raise ItemRemoved(food_id, food_name)
        return food

    def decrement(self, food_id: str, amount: int) -> None:
        food = self.require(food_id)

        #UPDATE ... SET quantity = quantity - n WHERE id = :id AND quantity >= n
        result = self.db.execute(
            update(FoodItemModel)
            .where(FoodItemModel.id == food_id, FoodItemModel.quantity >= amount)
            .values(
                quantity=FoodItemModel.quantity - amount,
                sold_count=FoodItemModel.sold_count + amount,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            #stock moved since the locked read, report what is there now
            available = self.db.execute(
                select(FoodItemModel.quantity).where(FoodItemModel.id == food_id)
            ).scalar_one_or_none()
            raise InsufficientStock(food_id, food.name, amount, available or 0)

    def set_quantity(self, food_id: str, quantity: int, status: str | None = None) -> None:
        if quantity < 0:
            raise ValueError("Quantity cannot be negative")

        self.require(food_id)
        values = {"quantity": quantity, "updated_at": datetime.now(timezone.utc)}
        if status:
            values["status"] = status

        self.db.execute(
            update(FoodItemModel)
            .where(FoodItemModel.id == food_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

    def delete(self, food_id: str) -> None:
        self.db.delete(self.require(food_id))

    def add(self, obj) -> None:
        self.db.add(obj)


class FoodRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_food(self, food_id: str) -> FoodItemModel | None:
        return self.db.get(FoodItemModel, food_id)

    def create_food(self, food: FoodItemModel) -> FoodItemModel:
        self.db.add(food)
        self.db.commit()
        self.db.refresh(food)
        return food

    def save_food(self, food: FoodItemModel) -> FoodItemModel:
        self.db.commit()
        self.db.refresh(food)
        return food

    def list_for_store(self, store_id: str) -> List[FoodItemModel]:
        return list(
            self.db.execute(
                select(FoodItemModel)
                .where(
                    or_(
                        FoodItemModel.store_id == store_id,
                        (FoodItemModel.store_id.is_(None)) & (FoodItemModel.user_id == store_id),
                    )
                )
                .order_by(FoodItemModel.created_at)
            ).scalars()
        )

    def list_expired_ids(self, now: datetime) -> List[str]:
        return list(
            self.db.execute(
                select(FoodItemModel.id).where(
                    FoodItemModel.status == "active",
                    FoodItemModel.quantity > 0,
                    FoodItemModel.expiry_date.is_not(None),
                    FoodItemModel.expiry_date < now,
                )
            ).scalars()
        )

    def _lock_foods(self, food_ids: List[str]) -> Dict[str, FoodItemModel]:
        #SELECT ... FOR UPDATE, populate_existing so cached rows get the committed values
        rows = self.db.execute(
            select(FoodItemModel)
            .where(FoodItemModel.id.in_(food_ids))
            .order_by(FoodItemModel.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars()
        return {food.id: food for food in rows}

    def run_atomic(self, food_ids: Iterable[str], fn: Callable[[StockTransaction], T]) -> T:
        """
        Atomic read-modify-write over exactly the given FoodItems.
        Commits everything fn wrote or nothing. Database failures come out as TransactionAborted.
        """
        ids = sorted(set(food_ids))

        try:
            foods = self._lock_foods(ids)
            result = fn(StockTransaction(self.db, foods))
            self.db.commit()
            return result

        except CheckoutError:
            self.db.rollback()
            raise

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Stock transaction over {ids} aborted: {e}")
            raise TransactionAborted(f"Stock transaction aborted: {e}") from e

        except Exception:
            self.db.rollback()
            raise
