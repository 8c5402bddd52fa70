# foodsaver/services/checkout_service.py
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from foodsaver.data.models.order import OrderItemModel, OrderModel
from foodsaver.domain.checkout import (
    CartLineData,
    CheckoutResult,
    GroupFailure,
    GroupSuccess,
    OrderDraft,
    build_drafts,
    summarize_items,
)
from foodsaver.domain.errors import CheckoutError, InsufficientStock, ItemRemoved
from foodsaver.repos.cart_repo import CartRepo
from foodsaver.repos.food_repo import FoodRepo, StockTransaction
from foodsaver.repos.order_repo import OrderRepo
from foodsaver.services.lock_service import LockService
from foodsaver.services.store_profile_service import StoreProfile, StoreProfileResolver
from foodsaver.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutService:
    """
    Turns a buyer cart into one order per store.

    1. Splits the cart into one OrderDraft per store
    2. Per draft (sequentially): one atomic transaction that re-reads stock,
       validates every line, decrements stock and writes the order
    3. Deletes the draft's cart lines only after its commit
    4. A failed draft keeps its cart lines, other drafts are not rolled back
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService | None = None,
        profile_resolver: StoreProfileResolver | None = None,
    ):
        self.cart = CartRepo(db)
        self.foods = FoodRepo(db)
        self.orders = OrderRepo(db)
        self.profiles = profile_resolver or StoreProfileResolver(db)
        self.lock_service = lock_service

    def checkout(self, buyer_id: str, lines: Iterable | None = None) -> CheckoutResult:
        if self.lock_service is None:
            return self._checkout(buyer_id, lines)

        #one checkout per buyer at a time, a double submit gets CheckoutInProgress
        with self.lock_service.checkout_lock(buyer_id):
            return self._checkout(buyer_id, lines)

    def _checkout(self, buyer_id: str, lines: Iterable | None) -> CheckoutResult:
        if lines is None:
            lines = self.cart.list_lines(buyer_id)

        snapshot = []
        for line in lines:
            #lines without an owner are rejected too
            if getattr(line, "buyer_id", None) != buyer_id:
                raise PermissionError("No access to this cart line")
            snapshot.append(CartLineData.of(line))

        if not snapshot:
            raise ValueError("Cannot check out an empty cart")

        drafts = build_drafts(snapshot)
        logger.info(f"Checkout for {buyer_id}: {len(snapshot)} lines in {len(drafts)} store groups")

        result = CheckoutResult()
        for draft in drafts:
            outcome = self._checkout_group(buyer_id, draft)
            if isinstance(outcome, GroupSuccess):
                result.succeeded.append(outcome)
            else:
                result.failed.append(outcome)

        logger.info(
            f"Checkout for {buyer_id} done: {len(result.succeeded)} ordered, {len(result.failed)} failed"
        )
        return result

    def _checkout_group(self, buyer_id: str, draft: OrderDraft) -> GroupSuccess | GroupFailure:
        #informational read, outside the stock transaction
        profile = self.profiles.get_delivery_mode(draft.store_id)

        try:
            order_id = self.foods.run_atomic(
                draft.demand().keys(),
                lambda tx: self._commit_draft(tx, buyer_id, draft, profile),
            )
        except CheckoutError as e:
            logger.warning(f"Checkout group {draft.store_id} for {buyer_id} failed: {e.message}")
            return GroupFailure(
                store_id=draft.store_id,
                store_name=draft.store_name,
                reason=e.reason,
                message=e.message,
                food_name=getattr(e, "food_name", None),
                line_ids=draft.line_ids,
            )

        logger.info(f"Order {order_id} committed for {buyer_id} at store {draft.store_id}")

        #cleanup outside the transaction, a leftover line is re-validated on the next checkout
        try:
            self.cart.delete_lines(buyer_id, draft.line_ids)
        except SQLAlchemyError as e:
            self.cart.db.rollback()
            logger.error(f"Order {order_id} committed but cart lines {draft.line_ids} were not removed: {e}")

        return GroupSuccess(
            store_id=draft.store_id,
            store_name=draft.store_name,
            order_id=order_id,
            line_ids=draft.line_ids,
        )

    def _commit_draft(
        self,
        tx: StockTransaction,
        buyer_id: str,
        draft: OrderDraft,
        profile: StoreProfile,
    ) -> str:
        demand = draft.demand()

        #validate every line before the first write
        for food_id, wanted in demand.items():
            food = tx.require(food_id, draft.food_name(food_id))
            if food.status != "active":
                raise ItemRemoved(food_id, food.name)
            if wanted > food.quantity:
                raise InsufficientStock(food_id, food.name, wanted, food.quantity)

        for food_id, wanted in demand.items():
            tx.decrement(food_id, wanted)

        items = draft.items
        summary = summarize_items(items)

        order = OrderModel(
            user_id=buyer_id,
            store_id=draft.store_id,
            store_name=draft.store_name,
            food_name=summary.food_name,
            total_price=summary.total_price,
            quantity=summary.quantity,
            status="pending",
            order_type=profile.order_type,
            closing_time=profile.closing_time,
            items=[
                OrderItemModel(
                    position=position,
                    food_id=item.food_id,
                    food_name=item.food_name,
                    quantity=item.quantity,
                    price=item.price,
                    image_url=item.image_url,
                )
                for position, item in enumerate(items)
            ],
        )
        self.orders.add_order(order)
        return order.id
