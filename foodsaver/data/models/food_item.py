#foodsaver/data/models/food_item.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Numeric, String

from foodsaver.data.database import Base


def _now():
    return datetime.now(timezone.utc)


class FoodItemModel(Base):
    __tablename__ = "food_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    store_id = Column(String(64), nullable=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)  # owner, legacy rows have no store_id

    name = Column(String, nullable=False)
    category = Column(String, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    original_price = Column(Numeric(10, 2), nullable=True)

    # mutated only through FoodRepo.run_atomic
    quantity = Column(Integer, nullable=False, default=0)
    sold_count = Column(Integer, nullable=False, default=0)
    status = Column(String(16), nullable=False, default="active")  # active, withdrawn, expired

    expiry_date = Column(DateTime(timezone=True), nullable=True)
    image_url = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_food_items_quantity_non_negative"),
        CheckConstraint("sold_count >= 0", name="ck_food_items_sold_count_non_negative"),
    )

    @property
    def owner_key(self) -> str:
        return self.store_id or self.user_id
