# foodsaver/services/order_service.py
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from foodsaver.data.models.order import OrderModel
from foodsaver.domain.checkout import format_order_code
from foodsaver.repos.order_repo import OrderRepo


def order_to_dict(order: OrderModel) -> Dict[str, Any]:
    return {
        "id": order.id,
        "code": format_order_code(order.id, order.order_type),
        "user_id": order.user_id,
        "store_id": order.store_id,
        "store_name": order.store_name,
        "items": [
            {
                "food_id": i.food_id,
                "food_name": i.food_name,
                "quantity": i.quantity,
                "price": i.price,
                "image_url": i.image_url,
            }
            for i in order.items
        ],
        "food_name": order.food_name,
        "total_price": order.total_price,
        "quantity": order.quantity,
        "status": order.status,
        "order_type": order.order_type,
        "closing_time": order.closing_time,
        "created_at": order.created_at,
    }


class OrderService:
    """
    Read side of orders. Orders are only created by CheckoutService.
    """

    def __init__(self, db: Session):
        self.repo = OrderRepo(db)

    def get_order(self, order_id: str, user_id: str) -> Dict[str, Any]:
        order = self.repo.get_order(order_id)

        if not order:
            raise ValueError("Order not found")

        if order.user_id != user_id:
            raise PermissionError("No access to this order")

        return order_to_dict(order)

    def list_orders(self, user_id: str) -> List[Dict[str, Any]]:
        return [order_to_dict(o) for o in self.repo.list_for_user(user_id)]

    def list_store_orders(self, store_id: str) -> List[Dict[str, Any]]:
        return [order_to_dict(o) for o in self.repo.list_for_store(store_id)]
