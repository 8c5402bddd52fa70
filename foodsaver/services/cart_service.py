# foodsaver/services/cart_service.py
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from foodsaver.data.models.cart_line import CartLineModel
from foodsaver.domain.errors import InsufficientStock, ItemRemoved
from foodsaver.repos.cart_repo import CartRepo
from foodsaver.repos.food_repo import FoodRepo
from foodsaver.repos.store_repo import StoreRepo
from foodsaver.utils.logging import get_logger

logger = get_logger(__name__)


def line_to_dict(line: CartLineModel) -> Dict[str, Any]:
    return {
        "id": line.id,
        "food_id": line.food_id,
        "store_id": line.store_id,
        "store_name": line.store_name,
        "food_name": line.food_name,
        "price": line.price,
        "quantity": line.quantity,
        "image_url": line.image_url,
    }


class CartService:
    """
    Use cases for the buyer cart.
    commands (add, update quantity, remove) modify lines
    query (get) is read only

    Stock checks here are advisory, the authoritative check runs inside the checkout transaction.
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.foods = FoodRepo(db)
        self.stores = StoreRepo(db)

    #query
    def get_cart(self, buyer_id: str) -> Dict[str, Any]:
        lines = self.repo.list_lines(buyer_id)
        total = sum((Decimal(str(l.price)) * l.quantity for l in lines), Decimal("0.00"))

        return {
            "buyer_id": buyer_id,
            "items": [line_to_dict(l) for l in lines],
            "total": total,
        }

    #commands
    def add_item(self, buyer_id: str, food_id: str, quantity: int = 1) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        food = self.foods.get_food(food_id)
        if food is None or food.status != "active":
            raise ItemRemoved(food_id, food.name if food else None)

        existing = self.repo.get_line_by_food(buyer_id, food_id)
        wanted = quantity + (existing.quantity if existing else 0)

        if wanted > food.quantity:
            raise InsufficientStock(food.id, food.name, wanted, food.quantity)

        if existing:
            logger.info(
                f"Food {food_id} already in cart of {buyer_id}, "
                f"quantity {existing.quantity} -> {wanted}"
            )
            existing.quantity = wanted
            existing.price = food.price  # refresh price snapshot
            self.repo.save_line(existing)
        else:
            store = self.stores.get_store(food.owner_key)
            logger.info(f"Adding food {food_id} x{quantity} to cart of {buyer_id}")
            self.repo.save_line(
                CartLineModel(
                    buyer_id=buyer_id,
                    food_id=food.id,
                    store_id=food.store_id,
                    user_id=food.user_id,
                    store_name=store.name if store else None,
                    food_name=food.name,
                    image_url=food.image_url,
                    price=food.price,
                    quantity=quantity,
                )
            )

        return self.get_cart(buyer_id)

    def _owned_line(self, buyer_id: str, line_id: int) -> CartLineModel:
        line = self.repo.get_line(line_id)

        if not line:
            raise ValueError("Cart line not found")

        if line.buyer_id != buyer_id:
            raise PermissionError("No access to this cart line")

        return line

    def update_quantity(self, buyer_id: str, line_id: int, quantity: int) -> Dict[str, Any]:
        #minimum purchase is 1, removal is remove_line
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")

        line = self._owned_line(buyer_id, line_id)

        if quantity > line.quantity:
            food = self.foods.get_food(line.food_id)
            if food is None or food.status != "active":
                raise ItemRemoved(line.food_id, line.food_name)
            if quantity > food.quantity:
                raise InsufficientStock(food.id, food.name, quantity, food.quantity)

        line.quantity = quantity
        self.repo.save_line(line)

        logger.info(f"Cart line {line_id} of {buyer_id} set to {quantity}")

        return self.get_cart(buyer_id)

    def increment(self, buyer_id: str, line_id: int) -> Dict[str, Any]:
        line = self._owned_line(buyer_id, line_id)
        return self.update_quantity(buyer_id, line_id, line.quantity + 1)

    def decrement(self, buyer_id: str, line_id: int) -> Dict[str, Any]:
        line = self._owned_line(buyer_id, line_id)
        return self.update_quantity(buyer_id, line_id, line.quantity - 1)

    def remove_line(self, buyer_id: str, line_id: int) -> Dict[str, Any]:
        line = self.repo.get_line(line_id)
        if line and line.buyer_id != buyer_id:
            raise PermissionError("No access to this cart line")

        if self.repo.delete_line(buyer_id, line_id):
            logger.info(f"Cart line {line_id} removed from cart of {buyer_id}")

        return self.get_cart(buyer_id)
