# foodsaver/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Literal
from decimal import Decimal
from datetime import datetime


class CartItemIn(BaseModel):
    """Schema for adding a food item to the cart."""

    food_id: str = Field(..., min_length=1, description="FoodItem id")
    quantity: int = Field(1, gt=0, description="Desired quantity (must be > 0)")


class CartQuantityIn(BaseModel):
    """Schema for setting a cart line quantity."""

    quantity: int = Field(..., ge=1, description="New desired quantity (minimum 1)")


class CartLineOut(BaseModel):
    """Cart line (response)."""

    id: int
    food_id: str
    store_id: str | None = None
    store_name: str | None = None
    food_name: str
    price: Decimal
    quantity: int
    image_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class CartOut(BaseModel):
    """Buyer cart (response)."""

    buyer_id: str
    items: List[CartLineOut]
    total: Decimal


class GroupSuccessOut(BaseModel):
    store_id: str
    store_name: str | None = None
    order_id: str
    line_ids: List[int]


class GroupFailureOut(BaseModel):
    store_id: str
    store_name: str | None = None
    reason: str
    message: str
    food_name: str | None = None
    line_ids: List[int]


class CheckoutOut(BaseModel):
    """Checkout result, one entry per store group."""

    all_succeeded: bool
    succeeded: List[GroupSuccessOut]
    failed: List[GroupFailureOut]


class OrderItemOut(BaseModel):
    food_id: str
    food_name: str
    quantity: int
    price: Decimal
    image_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Order (response)."""

    id: str
    code: str
    user_id: str
    store_id: str
    store_name: str | None = None
    items: List[OrderItemOut]
    food_name: str
    total_price: Decimal
    quantity: int
    status: str
    order_type: str
    closing_time: str
    created_at: datetime


class FoodCreate(BaseModel):
    """Schema for creating a listing."""

    user_id: str = Field(..., min_length=1, description="Owner (seller) id")
    store_id: str | None = None
    name: str = Field(..., min_length=1, max_length=200)
    category: str | None = None
    price: Decimal = Field(..., ge=0)
    original_price: Decimal | None = Field(None, ge=0)
    quantity: int = Field(..., ge=0)
    expiry_date: datetime | None = None
    image_url: str | None = None


class FoodUpdate(BaseModel):
    """Schema for a listing edit. Fields left out stay as they are."""

    name: str | None = Field(None, min_length=1, max_length=200)
    category: str | None = None
    price: Decimal | None = Field(None, ge=0)
    original_price: Decimal | None = Field(None, ge=0)
    expiry_date: datetime | None = None
    image_url: str | None = None


class StockIn(BaseModel):
    """Schema for a seller stock edit."""

    quantity: int = Field(..., ge=0)


class FoodOut(BaseModel):
    id: str
    store_id: str | None = None
    user_id: str
    name: str
    category: str | None = None
    price: Decimal
    original_price: Decimal | None = None
    quantity: int
    sold_count: int
    status: str
    expiry_date: datetime | None = None
    image_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class StoreIn(BaseModel):
    """Schema for creating/updating a store profile."""

    name: str = Field(..., min_length=1, max_length=200)
    delivery_mode: Literal["pickup", "delivery"] = "pickup"
    closing_time: str | None = Field(None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")


class StoreOut(BaseModel):
    id: str
    name: str
    delivery_mode: str
    closing_time: str | None = None

    model_config = ConfigDict(from_attributes=True)


class StoreSummaryOut(BaseModel):
    """Listing counts by explicit state."""

    store_id: str
    active: int
    sold_out: int
    empty: int
    withdrawn: int
    expired: int
    units_sold: int
