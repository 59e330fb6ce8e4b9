"""
AdminPanel Redis Cache Layer — permission cache with a circuit breaker.

Redis DB allocation:
  DB 0: Celery broker
  DB 1: Celery results
  DB 2: Permission cache (TTL = security.permission_cache_ttl)

Nothing in Redis is authoritative; a cold or unreachable cache only costs
a database round trip.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, FrozenSet, Iterable, Optional, TypeVar

logger = logging.getLogger("adminpanel.engine.cache")

T = TypeVar("T")

FAILURE_THRESHOLD = 5
FAILURE_WINDOW = 30  # seconds


class RedisCache:
    """
    Prefixed key/value access to one Redis DB.

    Every command goes through ``_guarded``: while Redis is unavailable reads
    miss and writes report False. ``FAILURE_THRESHOLD`` errors inside
    ``FAILURE_WINDOW`` seconds open the circuit; once the window has passed
    the next command reconnects first.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        prefix: str = "adminpanel:",
        default_ttl: int = 300,
        db: int = 0,
        client: Any = None,
    ):
        self._redis_url = redis_url
        self._prefix = prefix
        self._default_ttl = default_ttl
        self._db = db
        self._client = client
        self._available = client is not None
        self._failures: list = []
        self._opened_at: Optional[float] = None

    @property
    def is_available(self) -> bool:
        return self._available and self._opened_at is None

    @property
    def is_circuit_open(self) -> bool:
        return self._opened_at is not None

    def connect(self) -> bool:
        import redis

        try:
            client = redis.Redis.from_url(
                self._redis_url,
                db=self._db,
                decode_responses=True,
                socket_timeout=5,
                socket_connect_timeout=5,
                retry_on_timeout=True,
            )
            client.ping()
        except Exception as e:
            logger.warning(f"Redis DB {self._db} unreachable, running without cache: {e}")
            self._available = False
            return False

        self._client = client
        self._available = True
        self._failures.clear()
        self._opened_at = None
        logger.info(f"Redis connected: DB {self._db} ({self._prefix})")
        return True

    def close(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            try:
                client.close()
            except Exception as e:
                logger.debug(f"Redis close failed: {e}")
        self._available = False
        self._failures.clear()
        self._opened_at = None

    def _ready(self) -> bool:
        if self._opened_at is not None:
            if time.time() - self._opened_at <= FAILURE_WINDOW:
                return False
            self._opened_at = None
            return self.connect()
        return self._available

    def _failed(self, op: str, error: Exception) -> None:
        now = time.time()
        self._failures = [t for t in self._failures if now - t <= FAILURE_WINDOW] + [now]
        logger.debug(f"Redis {op} failed: {error}")
        if len(self._failures) >= FAILURE_THRESHOLD:
            self._opened_at = now
            logger.error(f"Redis circuit breaker OPEN after {len(self._failures)} failures")

    def _guarded(self, op: str, command: Callable[[], T], fallback: T) -> T:
        if not self._ready():
            return fallback
        try:
            return command()
        except Exception as e:
            self._failed(op, e)
            return fallback

    def _key(self, key: str) -> str:
        return self._prefix + key

    def get(self, key: str) -> Optional[str]:
        return self._guarded("GET", lambda: self._client.get(self._key(key)), None)

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        def _set() -> bool:
            self._client.set(self._key(key), value, ex=ttl or self._default_ttl)
            return True

        return self._guarded("SET", _set, False)

    def delete(self, key: str) -> bool:
        def _delete() -> bool:
            self._client.delete(self._key(key))
            return True

        return self._guarded("DEL", _delete, False)

    def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching ``pattern`` (prefix added); returns the count."""
        def _delete_matching() -> int:
            keys = list(self._client.scan_iter(match=self._key(pattern), count=1000))
            return self._client.delete(*keys) if keys else 0

        return self._guarded("SCAN/DEL", _delete_matching, 0)

    def get_json(self, key: str) -> Optional[Any]:
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return None

    def set_json(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        return self.set(key, json.dumps(value, default=str), ttl=ttl)

    def ping(self) -> bool:
        if self._client is None:
            return False
        try:
            return bool(self._client.ping())
        except Exception:
            return False


class PermissionCache:
    """Permission names per user, stored as a sorted JSON list under ``perms:user:<id>``."""

    def __init__(self, cache: RedisCache):
        self._cache = cache

    @staticmethod
    def _key(user_id: Any) -> str:
        return f"perms:user:{user_id}"

    def get(self, user_id: Any) -> Optional[FrozenSet[str]]:
        names = self._cache.get_json(self._key(user_id))
        return None if names is None else frozenset(names)

    def store(self, user_id: Any, permissions: Iterable[str]) -> None:
        self._cache.set_json(self._key(user_id), sorted(permissions))

    def invalidate_user(self, user_id: Any) -> bool:
        return self._cache.delete(self._key(user_id))

    def invalidate_all(self) -> int:
        return self._cache.delete_pattern("perms:*")


def create_permission_cache(redis_url: str, ttl: int = 300) -> PermissionCache:
    """Permission cache on Redis DB 2; usable (as a permanent miss) when Redis is down."""
    cache = RedisCache(redis_url=redis_url, prefix="adminpanel:", default_ttl=ttl, db=2)
    cache.connect()
    return PermissionCache(cache)
