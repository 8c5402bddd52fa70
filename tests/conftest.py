import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from decimal import Decimal

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from foodsaver.data.database import Base
from foodsaver.data.models import CartLineModel, FoodItemModel, StoreModel


class FakeRedis:
    """In-memory stand-in for the two redis calls LockService makes."""

    def __init__(self):
        self.data = {}

    def set(self, name, value, nx=False, ex=None):
        if nx and name in self.data:
            return None
        self.data[name] = value
        return True

    def eval(self, script, numkeys, key, token):
        if self.data.get(key) == token:
            del self.data[key]
            return 1
        return 0


class ReleaseFailsRedis(FakeRedis):
    """Takes the lock, then loses the connection before release."""

    def eval(self, script, numkeys, key, token):
        raise RedisConnectionError("redis went away")


class DownRedis(FakeRedis):
    def set(self, name, value, nx=False, ex=None):
        raise RedisConnectionError("redis is down")


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'foodsaver.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def release_fails_redis():
    return ReleaseFailsRedis()


@pytest.fixture
def down_redis():
    return DownRedis()


@pytest.fixture
def make_store(db):
    def _make(store_id, name=None, delivery_mode="pickup", closing_time=None):
        store = StoreModel(
            id=store_id,
            name=name or f"Store {store_id}",
            delivery_mode=delivery_mode,
            closing_time=closing_time,
        )
        db.add(store)
        db.commit()
        return store

    return _make


@pytest.fixture
def make_food(db):
    def _make(food_id, store_id="S1", quantity=5, price="50", name=None, user_id=None, status="active", **kw):
        food = FoodItemModel(
            id=food_id,
            store_id=store_id,
            user_id=user_id or f"owner-{store_id}",
            name=name or food_id,
            price=Decimal(price),
            quantity=quantity,
            sold_count=0,
            status=status,
            **kw,
        )
        db.add(food)
        db.commit()
        return food

    return _make


@pytest.fixture
def add_line(db):
    """Puts a line straight into the cart, bypassing the advisory stock check."""

    def _add(buyer_id, food, quantity=1, price=None, store_name=None):
        line = CartLineModel(
            buyer_id=buyer_id,
            food_id=food.id,
            store_id=food.store_id,
            user_id=food.user_id,
            store_name=store_name or (f"Store {food.store_id}" if food.store_id else None),
            food_name=food.name,
            price=Decimal(price) if price is not None else food.price,
            quantity=quantity,
        )
        db.add(line)
        db.commit()
        return line

    return _add
