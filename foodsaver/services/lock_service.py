# foodsaver/services/lock_service.py
import uuid
from contextlib import contextmanager

import redis
from redis.exceptions import RedisError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from foodsaver.domain.errors import CheckoutInProgress
from foodsaver.utils.settings import CHECKOUT_LOCK_TTL_SECONDS, REDIS_URL
from foodsaver.utils.logging import get_logger

logger = get_logger(__name__)

#compare-and-delete, runs atomically in redis
#only the holder of the token can release the lock
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


def lock_retry():
    #three short tries, a lock call should not hold up a checkout for long
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        retry=retry_if_exception_type(RedisError),
    )


class LockService:
    """
    -per-buyer checkout lock (one checkout per cart at a time)
    -release only by the token that acquired it
    -expires by itself if the process dies mid-checkout
    -redis being down never blocks or fails a checkout, it only drops the guard
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(buyer_id: str) -> str:
        return f"checkout:{buyer_id}:lock"

    @lock_retry()
    def acquire_checkout_lock(self, buyer_id: str, token: str, ttl: int = CHECKOUT_LOCK_TTL_SECONDS) -> bool:
        key = self._key(buyer_id)
        logger.info(f"Acquire lock {key}")
        #SET checkout:u1:lock <token> NX EX 30
        return bool(self.redis.set(name=key, value=token, nx=True, ex=ttl))

    @lock_retry()
    def release_checkout_lock(self, buyer_id: str, token: str) -> bool:
        key = self._key(buyer_id)
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    @contextmanager
    def checkout_lock(self, buyer_id: str, ttl: int = CHECKOUT_LOCK_TTL_SECONDS):
        """
        Yields the lock token, or None when redis could not be reached.
        Stock is guarded by the database either way.
        """
        token = uuid.uuid4().hex
        try:
            acquired = self.acquire_checkout_lock(buyer_id, token, ttl)
        except RedisError as e:
            logger.warning(f"Checkout lock for {buyer_id} unavailable, continuing without it: {e}")
            token = None
            acquired = True

        if not acquired:
            raise CheckoutInProgress(buyer_id)

        try:
            yield token
        finally:
            if token is not None:
                self._release_quietly(buyer_id, token)

    def _release_quietly(self, buyer_id: str, token: str) -> None:
        #the work inside the lock is already committed, a failed release must not hide it
        try:
            self.release_checkout_lock(buyer_id, token)
        except RedisError as e:
            logger.warning(f"Release of checkout lock for {buyer_id} failed, left to expire by TTL: {e}")
