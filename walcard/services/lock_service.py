# walcard/services/lock_service.py
import time
import uuid
from contextlib import contextmanager
from typing import Iterator

from redis.exceptions import RedisError

from walcard.data.store import KeyValueStore, RedisKeyValueStore
from walcard.domain.errors import StoreError
from walcard.utils.retry import redis_retry
from walcard.utils.settings import LOCK_POLL_INTERVAL, LOCK_TTL_SECONDS, LOCK_WAIT_SECONDS
from walcard.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
#nie mozna wcisnac sie miedzy GET a DEL, zwalniamy tylko wlasny lock
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    -jeden lock na klucz lokalnego stanu (np. koszyk)
    -store w redisie: SET NX PX + zwalnianie przez lua, wspolny dla
     wszystkich procesow (workery uvicorna, celery)
    -store w pamieci: lock w obrebie procesu, trzymany przez sam store
    -lock nie jest reentrant w redisie, wiec nie zagniezdzamy hold()
    """

    def __init__(
        self,
        store: KeyValueStore,
        ttl: float = LOCK_TTL_SECONDS,
        wait: float = LOCK_WAIT_SECONDS,
    ):
        self.store = store
        self.ttl_ms = int(ttl * 1000)
        self.wait = wait

    def _lock_key(self, key: str) -> str:
        return f"{self.store.namespace}:lock:{key}"

    @redis_retry()
    def _try_acquire(self, name: str, token: str) -> bool:
        #SET walcard:lock:walcard_cart "<token>" NX PX 10000
        return bool(self.store.redis.set(name=name, value=token, nx=True, px=self.ttl_ms))

    @redis_retry()
    def _release(self, name: str, token: str) -> bool:
        return bool(self.store.redis.eval(_RELEASE_LUA, 1, name, token))

    @contextmanager
    def _hold_redis(self, key: str) -> Iterator[None]:
        name = self._lock_key(key)
        token = uuid.uuid4().hex
        deadline = time.monotonic() + self.wait

        try:
            while not self._try_acquire(name, token):
                if time.monotonic() >= deadline:
                    raise StoreError(f"Nie mozna zablokowac {key} w {self.wait}s")
                time.sleep(LOCK_POLL_INTERVAL)
        except RedisError as e:
            raise StoreError(f"Nie mozna zablokowac {key}") from e

        logger.debug(f"Acquire lock {name}")
        try:
            yield
        finally:
            try:
                if not self._release(name, token):
                    logger.warning(f"Lock {name} expired before release")
            except RedisError as e:
                # wygasnie sam po ttl
                logger.error(f"Release lock {name} failed: {e}")
            logger.debug(f"Release lock {name}")

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        if isinstance(self.store, RedisKeyValueStore):
            with self._hold_redis(key):
                yield
            return

        logger.debug(f"Acquire local lock {key}")
        with self.store.local_lock(key):
            yield
        logger.debug(f"Release local lock {key}")
