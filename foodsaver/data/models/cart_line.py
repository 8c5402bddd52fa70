from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Numeric, String

from foodsaver.data.database import Base


class CartLineModel(Base):
    __tablename__ = "cart_lines"

    id = Column(Integer, primary_key=True)
    buyer_id = Column(String(64), nullable=False, index=True)

    food_id = Column(String(36), nullable=False)
    store_id = Column(String(64), nullable=True)
    user_id = Column(String(64), nullable=True)  # food owner, grouping fallback
    store_name = Column(String, nullable=True)
    food_name = Column(String, nullable=False)
    image_url = Column(String, nullable=True)

    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (CheckConstraint("quantity >= 1", name="ck_cart_lines_quantity_positive"),)
