# foodsaver/domain/checkout.py
"""
Checkout value types and the pure parts of checkout:
- split_by_store: cart lines -> one group per store, order preserved
- build_drafts: groups -> OrderDraft
- summarize_items: derived order fields (display name, total, quantity)
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Sequence, Tuple

MULTI_ITEM_SUFFIX = " และอื่นๆ"


def group_key(line: Any) -> str:
    #legacy lines may lack store_id, fall back to the food owner
    return line.store_id or line.user_id


def split_by_store(lines: Iterable[Any]) -> Dict[str, List[Any]]:
    groups: Dict[str, List[Any]] = {}
    for line in lines:
        groups.setdefault(group_key(line), []).append(line)
    return groups


@dataclass(frozen=True)
class CartLineData:
    """Plain copy of a cart line taken when checkout starts."""

    id: int
    food_id: str
    store_id: str | None
    user_id: str | None
    store_name: str | None
    food_name: str
    price: Decimal
    quantity: int
    image_url: str | None = None

    @classmethod
    def of(cls, line: Any) -> "CartLineData":
        return cls(
            id=line.id,
            food_id=line.food_id,
            store_id=line.store_id,
            user_id=line.user_id,
            store_name=line.store_name,
            food_name=line.food_name,
            price=Decimal(str(line.price)),
            quantity=line.quantity,
            image_url=line.image_url,
        )


@dataclass(frozen=True)
class OrderLineSnapshot:
    food_id: str
    food_name: str
    quantity: int
    price: Decimal
    image_url: str | None = None

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class OrderSummary:
    food_name: str
    total_price: Decimal
    quantity: int


def summarize_items(items: Sequence[OrderLineSnapshot]) -> OrderSummary:
    if not items:
        raise ValueError("Order must contain at least one item")

    name = items[0].food_name
    if len(items) > 1:
        name = f"{name}{MULTI_ITEM_SUFFIX}"

    return OrderSummary(
        food_name=name,
        total_price=sum((i.subtotal for i in items), Decimal("0.00")),
        quantity=sum(i.quantity for i in items),
    )


@dataclass(frozen=True)
class OrderDraft:
    """In-memory group of cart lines from one store. Never persisted."""

    store_id: str
    store_name: str | None
    lines: Tuple[CartLineData, ...]

    @property
    def line_ids(self) -> List[int]:
        return [line.id for line in self.lines]

    @property
    def items(self) -> List[OrderLineSnapshot]:
        return [
            OrderLineSnapshot(
                food_id=line.food_id,
                food_name=line.food_name,
                quantity=line.quantity,
                price=line.price,
                image_url=line.image_url,
            )
            for line in self.lines
        ]

    def demand(self) -> Dict[str, int]:
        """Desired quantity per food, summed when one food appears on several lines."""
        wanted: Dict[str, int] = {}
        for line in self.lines:
            wanted[line.food_id] = wanted.get(line.food_id, 0) + line.quantity
        return wanted

    def food_name(self, food_id: str) -> str:
        for line in self.lines:
            if line.food_id == food_id:
                return line.food_name
        return food_id


def build_drafts(lines: Iterable[CartLineData]) -> List[OrderDraft]:
    drafts = []
    for store_id, group in split_by_store(lines).items():
        store_name = next((line.store_name for line in group if line.store_name), None)
        drafts.append(OrderDraft(store_id=store_id, store_name=store_name, lines=tuple(group)))
    return drafts


def format_order_code(order_id: str, order_type: str) -> str:
    if not order_id:
        return "N/A"
    prefix = "D" if order_type == "delivery" else "P"
    return f"{prefix}-{order_id[:6].upper()}"


@dataclass(frozen=True)
class GroupSuccess:
    store_id: str
    store_name: str | None
    order_id: str
    line_ids: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class GroupFailure:
    store_id: str
    store_name: str | None
    reason: str
    message: str
    food_name: str | None = None
    line_ids: List[int] = field(default_factory=list)


@dataclass
class CheckoutResult:
    succeeded: List[GroupSuccess] = field(default_factory=list)
    failed: List[GroupFailure] = field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        return not self.failed

    @property
    def order_ids(self) -> List[str]:
        return [s.order_id for s in self.succeeded]
