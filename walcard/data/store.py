# walcard/data/store.py
import threading
from typing import Dict

import redis
from redis.exceptions import RedisError

from walcard.domain.errors import StoreError
from walcard.utils.retry import redis_retry
from walcard.utils.settings import REDIS_URL, STORE_BACKEND, STORE_NAMESPACE
from walcard.utils.logging import get_logger

logger = get_logger(__name__)

# klucze lokalnego stanu instalacji
CART_KEY = "walcard_cart"
SESSION_KEY = "walcard_user_session"
AUTH_LOG_KEY = "walcard_auth_log_id"
USER_PHONE_KEY = "user_phone"


class KeyValueStore:
    """Persistent string store shared by the whole process."""

    def get_item(self, key: str) -> str | None:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    def local_lock(self, key: str) -> threading.RLock:
        """In-process lock for ``key``, shared by everything using this store."""
        raise NotImplementedError


class MemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Dict[str, str] | None = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()
        self._key_locks: Dict[str, threading.RLock] = {}

    def get_item(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def local_lock(self, key: str) -> threading.RLock:
        with self._lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._key_locks[key] = lock
            return lock


class RedisKeyValueStore(KeyValueStore):
    """
    -klucze z prefiksem namespace
    -retry przy bledach redisa (tenacity)
    -po wyczerpaniu prob RedisError zamieniany na StoreError
    """

    def __init__(self, url: str | None = None, namespace: str | None = None):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.namespace = namespace or STORE_NAMESPACE

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    @redis_retry()
    def _get(self, key: str) -> str | None:
        return self.redis.get(self._key(key))

    @redis_retry()
    def _set(self, key: str, value: str) -> None:
        self.redis.set(self._key(key), value)

    @redis_retry()
    def _delete(self, key: str) -> None:
        self.redis.delete(self._key(key))

    def get_item(self, key: str) -> str | None:
        try:
            return self._get(key)
        except RedisError as e:
            logger.error(f"Redis GET {key} failed: {e}")
            raise StoreError(f"Nie mozna odczytac {key}") from e

    def set_item(self, key: str, value: str) -> None:
        try:
            self._set(key, value)
        except RedisError as e:
            logger.error(f"Redis SET {key} failed: {e}")
            raise StoreError(f"Nie mozna zapisac {key}") from e

    def remove_item(self, key: str) -> None:
        try:
            self._delete(key)
        except RedisError as e:
            logger.error(f"Redis DEL {key} failed: {e}")
            raise StoreError(f"Nie mozna usunac {key}") from e


def build_store(backend: str | None = None) -> KeyValueStore:
    backend = (backend or STORE_BACKEND).lower()
    if backend == "memory":
        return MemoryKeyValueStore()
    if backend == "redis":
        return RedisKeyValueStore()
    raise ValueError(f"Nieznany STORE_BACKEND: {backend}")
