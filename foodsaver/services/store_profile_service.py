# foodsaver/services/store_profile_service.py
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from foodsaver.data.models.store import StoreModel
from foodsaver.domain.errors import StoreProfileUnavailable
from foodsaver.repos.store_repo import StoreRepo
from foodsaver.utils.settings import DEFAULT_CLOSING_TIME, DEFAULT_ORDER_TYPE
from foodsaver.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StoreProfile:
    order_type: str
    closing_time: str


DEFAULT_PROFILE = StoreProfile(order_type=DEFAULT_ORDER_TYPE, closing_time=DEFAULT_CLOSING_TIME)


class StoreProfileResolver:
    """
    Read-only lookup of delivery mode and closing time stamped onto new orders.
    Never fails a checkout: unknown store or db error -> defaults.
    """

    def __init__(self, db: Session):
        self.repo = StoreRepo(db)

    def _load(self, store_id: str) -> StoreModel | None:
        try:
            return self.repo.get_store(store_id)
        except SQLAlchemyError as e:
            raise StoreProfileUnavailable(store_id, e) from e

    def get_delivery_mode(self, store_id: str | None) -> StoreProfile:
        if not store_id:
            return DEFAULT_PROFILE

        try:
            store = self._load(store_id)
        except StoreProfileUnavailable as e:
            logger.warning(f"{e}, using defaults")
            self.repo.db.rollback()
            return DEFAULT_PROFILE

        if store is None:
            return DEFAULT_PROFILE

        return StoreProfile(
            order_type=store.delivery_mode or DEFAULT_PROFILE.order_type,
            closing_time=store.closing_time or DEFAULT_PROFILE.closing_time,
        )


class StoreProfileService:
    def __init__(self, db: Session):
        self.repo = StoreRepo(db)

    def upsert_store(self, store_id: str, name: str, delivery_mode: str = "pickup", closing_time: str | None = None) -> StoreModel:
        if delivery_mode not in ("pickup", "delivery"):
            raise ValueError(f"Unknown delivery mode: {delivery_mode}")

        store = self.repo.get_store(store_id) or StoreModel(id=store_id)
        store.name = name
        store.delivery_mode = delivery_mode
        store.closing_time = closing_time

        saved = self.repo.save_store(store)
        logger.info(f"Store {store_id} profile saved ({delivery_mode}, closes {closing_time})")
        return saved

    def get_store(self, store_id: str) -> StoreModel:
        store = self.repo.get_store(store_id)
        if not store:
            raise ValueError("Store not found")
        return store
