# foodsaver/services/inventory_service.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from foodsaver.data.models.food_item import FoodItemModel
from foodsaver.repos.food_repo import FoodRepo, StockTransaction
from foodsaver.utils.logging import get_logger

logger = get_logger(__name__)

#listing fields a seller may edit directly, stock goes through set_stock
EDITABLE_FIELDS = ("name", "category", "price", "original_price", "expiry_date", "image_url")


class InventoryService:
    """
    Seller side of FoodItem stock.
    Every quantity change goes through FoodRepo.run_atomic, same as checkout,
    so a seller edit can't overwrite a concurrent sale.
    """

    def __init__(self, db: Session):
        self.repo = FoodRepo(db)

    def create_listing(
        self,
        user_id: str,
        name: str,
        price: Decimal,
        quantity: int,
        store_id: str | None = None,
        category: str | None = None,
        original_price: Decimal | None = None,
        expiry_date: datetime | None = None,
        image_url: str | None = None,
    ) -> FoodItemModel:
        if quantity < 0:
            raise ValueError("Quantity cannot be negative")
        if price < 0:
            raise ValueError("Price cannot be negative")

        food = self.repo.create_food(
            FoodItemModel(
                user_id=user_id,
                store_id=store_id,
                name=name,
                category=category,
                price=price,
                original_price=original_price,
                quantity=quantity,
                sold_count=0,
                status="active",
                expiry_date=expiry_date,
                image_url=image_url,
            )
        )
        logger.info(f"Listing {food.id} ({name} x{quantity}) created by {user_id}")
        return food

    def _owned_food(self, user_id: str, food_id: str) -> FoodItemModel:
        food = self.repo.get_food(food_id)

        if not food:
            raise ValueError("Food item not found")

        if food.user_id != user_id:
            raise PermissionError("No access to this listing")

        return food

    def set_stock(self, user_id: str, food_id: str, quantity: int) -> FoodItemModel:
        food = self._owned_food(user_id, food_id)

        if quantity < 0:
            raise ValueError("Quantity cannot be negative")

        def write(tx: StockTransaction):
            current = tx.require(food_id, food.name)
            if current.status != "active":
                raise ValueError(f"Listing is {current.status}, stock cannot be changed")
            tx.set_quantity(food_id, quantity)

        self.repo.run_atomic([food_id], write)
        logger.info(f"Stock of {food_id} set to {quantity} by {user_id}")
        return self.repo.get_food(food_id)

    def update_listing(self, user_id: str, food_id: str, **changes: Any) -> FoodItemModel:
        """
        Edits name, price and the other descriptive fields.
        Cart lines and orders keep the values they were created with.
        """
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot edit {', '.join(sorted(unknown))}")
        if "name" in changes and not changes["name"]:
            raise ValueError("Name cannot be empty")
        if "price" in changes and (changes["price"] is None or changes["price"] < 0):
            raise ValueError("Price cannot be negative")
        if changes.get("original_price") is not None and changes["original_price"] < 0:
            raise ValueError("Original price cannot be negative")

        food = self._owned_food(user_id, food_id)
        for field, value in changes.items():
            setattr(food, field, value)

        food = self.repo.save_food(food)
        logger.info(f"Listing {food_id} edited by {user_id}: {sorted(changes)}")
        return food

    def delete_listing(self, user_id: str, food_id: str) -> None:
        food = self._owned_food(user_id, food_id)
        name = food.name

        #same lock as checkout, a sale in flight finishes first
        self.repo.run_atomic([food_id], lambda tx: tx.delete(food_id))
        logger.info(f"Listing {food_id} ({name}) deleted by {user_id}")

    def withdraw(self, user_id: str, food_id: str) -> FoodItemModel:
        """Seller pulls the listing. Stock goes to 0, status says why."""
        food = self._owned_food(user_id, food_id)

        self.repo.run_atomic(
            [food_id],
            lambda tx: tx.set_quantity(food_id, 0, status="withdrawn"),
        )
        logger.info(f"Listing {food_id} ({food.name}) withdrawn by {user_id}")
        return self.repo.get_food(food_id)

    def expire_listings(self, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        expired = 0

        for food_id in self.repo.list_expired_ids(now):

            def write(tx: StockTransaction, food_id=food_id) -> bool:
                food = tx.get(food_id)
                #sold out or withdrawn since the scan
                if food is None or food.status != "active":
                    return False
                tx.set_quantity(food_id, 0, status="expired")
                return True

            if self.repo.run_atomic([food_id], write):
                expired += 1

        if expired:
            logger.info(f"Expired {expired} listings")
        return expired

    def store_summary(self, store_id: str) -> Dict[str, Any]:
        """
        Listing counts by explicit state.
        sold_out needs sold_count > 0, zero stock alone does not mean sold.
        """
        summary = {
            "store_id": store_id,
            "active": 0,
            "sold_out": 0,
            "empty": 0,
            "withdrawn": 0,
            "expired": 0,
            "units_sold": 0,
        }

        for food in self.repo.list_for_store(store_id):
            summary["units_sold"] += food.sold_count
            if food.status in ("withdrawn", "expired"):
                summary[food.status] += 1
            elif food.quantity > 0:
                summary["active"] += 1
            elif food.sold_count > 0:
                summary["sold_out"] += 1
            else:
                summary["empty"] += 1

        return summary
