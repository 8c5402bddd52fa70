from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from foodsaver.data.models import CartLineModel, FoodItemModel, OrderModel
from foodsaver.domain.errors import CheckoutInProgress, InsufficientStock
from foodsaver.repos.cart_repo import CartRepo
from foodsaver.repos.food_repo import FoodRepo, StockTransaction
from foodsaver.services.checkout_service import CheckoutService
from foodsaver.services.lock_service import LockService
from foodsaver.services.store_profile_service import StoreProfile, StoreProfileResolver


def stock(db, food_id):
    db.expire_all()
    return db.get(FoodItemModel, food_id).quantity


def order_count(db):
    return db.execute(select(func.count()).select_from(OrderModel)).scalar_one()


def cart_food_ids(db, buyer_id):
    db.expire_all()
    return [l.food_id for l in CartRepo(db).list_lines(buyer_id)]


def test_mixed_cart_orders_one_store_and_reports_the_other(db, make_food, add_line):
    a = make_food("A", store_id="S1", quantity=5, price="50")
    b = make_food("B", store_id="S1", quantity=1, price="30")
    c = make_food("C", store_id="S2", quantity=0, price="100")
    add_line("u1", a, quantity=2)
    add_line("u1", b, quantity=1)
    add_line("u1", c, quantity=1)

    result = CheckoutService(db).checkout("u1")

    assert not result.all_succeeded
    assert len(result.succeeded) == 1
    assert len(result.failed) == 1

    success = result.succeeded[0]
    assert success.store_id == "S1"
    order = db.get(OrderModel, success.order_id)
    assert order.total_price == Decimal("130")
    assert order.quantity == 3
    assert order.status == "pending"
    assert order.user_id == "u1"
    assert [(i.food_id, i.quantity) for i in order.items] == [("A", 2), ("B", 1)]
    assert order.food_name == "A และอื่นๆ"

    failure = result.failed[0]
    assert failure.store_id == "S2"
    assert failure.reason == "insufficient_stock"
    assert failure.food_name == "C"
    assert "C" in failure.message

    assert stock(db, "A") == 3
    assert stock(db, "B") == 0
    assert stock(db, "C") == 0
    assert cart_food_ids(db, "u1") == ["C"]


def test_failed_group_changes_no_stock(db, make_food, add_line):
    a = make_food("A", store_id="S1", quantity=5)
    b = make_food("B", store_id="S1", quantity=1)
    add_line("u1", a, quantity=2)
    add_line("u1", b, quantity=2)

    result = CheckoutService(db).checkout("u1")

    assert result.succeeded == []
    assert result.failed[0].food_name == "B"
    assert stock(db, "A") == 5
    assert stock(db, "B") == 1
    assert order_count(db) == 0
    assert cart_food_ids(db, "u1") == ["A", "B"]


def test_middle_store_failure_keeps_other_orders(db, make_food, add_line):
    a = make_food("A", store_id="SA", quantity=3)
    b = make_food("B", store_id="SB", quantity=1)
    c = make_food("C", store_id="SC", quantity=3)
    add_line("u1", a, quantity=1)
    add_line("u1", b, quantity=2)
    add_line("u1", c, quantity=1)
    before = db.execute(select(CartLineModel).where(CartLineModel.food_id == "B")).scalar_one()
    before_quantity = before.quantity

    result = CheckoutService(db).checkout("u1")

    assert [s.store_id for s in result.succeeded] == ["SA", "SC"]
    assert [(f.store_id, f.food_name) for f in result.failed] == [("SB", "B")]
    assert order_count(db) == 2

    db.expire_all()
    remaining = CartRepo(db).list_lines("u1")
    assert [(l.food_id, l.quantity) for l in remaining] == [("B", before_quantity)]


def test_two_buyers_race_for_last_unit(db, session_factory, make_food, add_line):
    d = make_food("D", quantity=1)
    add_line("u1", d)
    add_line("u2", d)

    first = session_factory()
    second = session_factory()
    try:
        #second buyer read the stock before the first one committed
        assert second.get(FoodItemModel, "D").quantity == 1

        r1 = CheckoutService(first).checkout("u1")
        r2 = CheckoutService(second).checkout("u2")
    finally:
        first.close()
        second.close()

    assert r1.all_succeeded
    assert not r2.all_succeeded
    assert r2.failed[0].reason == "insufficient_stock"

    assert stock(db, "D") == 0
    assert order_count(db) == 1
    assert cart_food_ids(db, "u1") == []
    assert cart_food_ids(db, "u2") == ["D"]


def test_committed_decrements_never_exceed_stock(db, make_food, add_line):
    e = make_food("E", quantity=5)
    for buyer in ("u1", "u2", "u3", "u4"):
        add_line(buyer, e, quantity=2)

    results = [CheckoutService(db).checkout(buyer) for buyer in ("u1", "u2", "u3", "u4")]

    assert [r.all_succeeded for r in results] == [True, True, False, False]
    assert stock(db, "E") == 1
    assert db.get(FoodItemModel, "E").sold_count == 4


def test_duplicate_lines_for_same_food_are_checked_together(db, make_food, add_line):
    a = make_food("A", quantity=5)
    add_line("u1", a, quantity=3)
    add_line("u1", a, quantity=3)

    result = CheckoutService(db).checkout("u1")

    assert result.failed[0].reason == "insufficient_stock"
    assert stock(db, "A") == 5


def test_deleted_food_fails_with_item_removed(db, make_food, add_line):
    a = make_food("A", quantity=5)
    add_line("u1", a)
    db.delete(a)
    db.commit()

    result = CheckoutService(db).checkout("u1")

    assert result.failed[0].reason == "item_removed"
    assert cart_food_ids(db, "u1") == ["A"]


def test_withdrawn_food_fails_with_item_removed(db, make_food, add_line):
    a = make_food("A", quantity=5)
    add_line("u1", a)
    a.status = "withdrawn"
    db.commit()

    result = CheckoutService(db).checkout("u1")

    assert result.failed[0].reason == "item_removed"
    assert stock(db, "A") == 5


def test_order_price_comes_from_cart_snapshot(db, make_food, add_line):
    a = make_food("A", quantity=5, price="50")
    add_line("u1", a, quantity=2, price="50")
    a.price = Decimal("80")
    db.commit()

    result = CheckoutService(db).checkout("u1")
    order_id = result.order_ids[0]

    a = db.get(FoodItemModel, "A")
    a.price = Decimal("10")
    db.commit()

    db.expire_all()
    order = db.get(OrderModel, order_id)
    assert order.total_price == Decimal("100")
    assert order.total_price == sum(i.price * i.quantity for i in order.items)
    assert order.food_name == "A"


def test_store_profile_is_stamped_on_order(db, make_food, make_store, add_line):
    make_store("S1", delivery_mode="delivery", closing_time="18:30")
    a = make_food("A", store_id="S1")
    b = make_food("B", store_id="S2")
    add_line("u1", a)
    add_line("u1", b)

    result = CheckoutService(db).checkout("u1")

    orders = {s.store_id: db.get(OrderModel, s.order_id) for s in result.succeeded}
    assert (orders["S1"].order_type, orders["S1"].closing_time) == ("delivery", "18:30")
    assert (orders["S2"].order_type, orders["S2"].closing_time) == ("pickup", "20:00")


def test_store_profile_failure_does_not_abort_checkout(db, make_food, add_line, monkeypatch):
    resolver = StoreProfileResolver(db)

    def broken(store_id):
        raise OperationalError("SELECT", {}, Exception("stores unavailable"))

    monkeypatch.setattr(resolver.repo, "get_store", broken)
    assert resolver.get_delivery_mode("S1") == StoreProfile("pickup", "20:00")

    a = make_food("A", store_id="S1")
    add_line("u1", a)

    result = CheckoutService(db, profile_resolver=resolver).checkout("u1")

    assert result.all_succeeded
    assert db.get(OrderModel, result.order_ids[0]).closing_time == "20:00"


def test_database_failure_is_transaction_aborted_not_stock(db, make_food, add_line, monkeypatch):
    a = make_food("A", quantity=5)
    add_line("u1", a)

    def broken(self, food_ids):
        raise OperationalError("SELECT ... FOR UPDATE", {}, Exception("lock timeout"))

    monkeypatch.setattr(FoodRepo, "_lock_foods", broken)

    result = CheckoutService(db).checkout("u1")

    failure = result.failed[0]
    assert failure.reason == "transaction_aborted"
    assert failure.food_name is None
    assert "left" not in failure.message
    assert cart_food_ids(db, "u1") == ["A"]
    assert order_count(db) == 0


def test_explicit_lines_of_another_buyer_are_rejected(db, make_food, add_line):
    a = make_food("A")
    line = add_line("u2", a)

    with pytest.raises(PermissionError):
        CheckoutService(db).checkout("u1", [line])


def test_empty_cart_is_rejected(db):
    with pytest.raises(ValueError):
        CheckoutService(db).checkout("u1")


def test_checkout_lock_blocks_double_submit(db, make_food, add_line, fake_redis):
    a = make_food("A", quantity=5)
    add_line("u1", a)
    locks = LockService(client=fake_redis)

    fake_redis.set("checkout:u1:lock", "other-request", nx=True)
    with pytest.raises(CheckoutInProgress):
        CheckoutService(db, lock_service=locks).checkout("u1")
    assert stock(db, "A") == 5

    fake_redis.data.clear()
    result = CheckoutService(db, lock_service=locks).checkout("u1")

    assert result.all_succeeded
    assert fake_redis.data == {}


def test_deleting_cart_line_twice_is_a_no_op(db, make_food, add_line):
    line = add_line("u1", make_food("A"))
    repo = CartRepo(db)
    line_id = line.id

    assert repo.delete_line("u1", line_id) is True
    assert repo.delete_line("u1", line_id) is False


def test_explicit_lines_without_an_owner_are_rejected(db, make_food):
    a = make_food("A")
    line = SimpleNamespace(
        id=1, food_id="A", store_id="S1", user_id=a.user_id, store_name="Store S1",
        food_name="A", price=a.price, quantity=1, image_url=None,
    )

    with pytest.raises(PermissionError):
        CheckoutService(db).checkout("u1", [line])
    assert stock(db, "A") == 5


def test_failed_lock_release_still_returns_committed_orders(db, make_food, add_line, release_fails_redis):
    a = make_food("A", quantity=5)
    add_line("u1", a, quantity=2)

    result = CheckoutService(db, lock_service=LockService(client=release_fails_redis)).checkout("u1")

    assert result.all_succeeded
    assert order_count(db) == 1
    assert stock(db, "A") == 3
    assert cart_food_ids(db, "u1") == []


def test_checkout_runs_when_lock_backend_is_down(db, make_food, add_line, down_redis):
    a = make_food("A", quantity=5)
    add_line("u1", a)

    result = CheckoutService(db, lock_service=LockService(client=down_redis)).checkout("u1")

    assert result.all_succeeded
    assert stock(db, "A") == 4


def test_conditional_decrement_refuses_stock_sold_after_the_read(db, session_factory, make_food):
    make_food("D", quantity=1)

    def write(tx):
        assert tx.get("D").quantity == 1
        #another writer takes the last unit after this scope read the row
        other = session_factory()
        try:
            other.get(FoodItemModel, "D").quantity = 0
            other.commit()
        finally:
            other.close()
        tx.decrement("D", 1)

    with pytest.raises(InsufficientStock) as exc:
        FoodRepo(db).run_atomic(["D"], write)

    assert (exc.value.requested, exc.value.available) == (1, 0)
    assert stock(db, "D") == 0
    assert db.get(FoodItemModel, "D").sold_count == 0


def test_rival_commit_between_validation_and_decrement_fails_the_group(
    db, session_factory, make_food, add_line, monkeypatch
):
    d = make_food("D", quantity=1)
    add_line("u1", d)
    add_line("u2", d)

    decrement = StockTransaction.decrement
    rivals = []

    def decrement_after_rival(self, food_id, amount):
        #u2 checks out in full between u1's validation and u1's write
        if not rivals:
            rivals.append(None)
            rival = session_factory()
            try:
                rivals[0] = CheckoutService(rival).checkout("u2")
            finally:
                rival.close()
        return decrement(self, food_id, amount)

    monkeypatch.setattr(StockTransaction, "decrement", decrement_after_rival)

    first = session_factory()
    try:
        result = CheckoutService(first).checkout("u1")
    finally:
        first.close()

    assert rivals[0].all_succeeded
    assert result.succeeded == []
    assert result.failed[0].reason == "insufficient_stock"
    assert stock(db, "D") == 0
    assert order_count(db) == 1
    assert cart_food_ids(db, "u1") == ["D"]
    assert cart_food_ids(db, "u2") == []
