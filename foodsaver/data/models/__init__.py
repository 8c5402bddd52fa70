#import all models so SQLAlchemy registers them in Base.metadata

from foodsaver.data.models.store import StoreModel
from foodsaver.data.models.food_item import FoodItemModel
from foodsaver.data.models.cart_line import CartLineModel
from foodsaver.data.models.order import OrderModel, OrderItemModel

__all__ = ["StoreModel", "FoodItemModel", "CartLineModel", "OrderModel", "OrderItemModel"]
