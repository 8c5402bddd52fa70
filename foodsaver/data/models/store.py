from sqlalchemy import Column, String

from foodsaver.data.database import Base


class StoreModel(Base):
    __tablename__ = "stores"

    id = Column(String(64), primary_key=True)
    name = Column(String, nullable=False)

    delivery_mode = Column(String(16), nullable=False, default="pickup")  # pickup, delivery
    closing_time = Column(String(5), nullable=True)  # "HH:MM"
