"""Expiring key-value storage for one-time codes.

Two backends share one interface: Redis when it is configured, and an
in-process TTL map otherwise.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod

from loguru import logger

# Delete the key only if it still holds the expected value.
_TAKE_IF_MATCH_SCRIPT = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class OtpStorage(ABC):
    """Abstract interface for OTP storage backends."""

    @abstractmethod
    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` under ``key``, replacing any previous value.

        Args:
            key: Storage key (usually a prefixed email address)
            value: The code
            ttl_seconds: Time to live in seconds
        """

    @abstractmethod
    async def take_if_match(self, key: str, value: str) -> bool:
        """Atomically remove ``key`` if it currently holds ``value``.

        Returns:
            True if the value matched and was consumed
        """


class InMemoryOtpStorage(OtpStorage):
    """In-memory OTP storage with TTL support.

    Expired entries are dropped when read, and by a sweep that ``put`` runs at
    most once every ``sweep_interval`` seconds.
    """

    def __init__(self, sweep_interval: float = 60.0):
        self._data: dict[str, tuple[str, float]] = {}
        self._sweep_interval = sweep_interval
        self._swept_at = time.monotonic()

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        now = time.monotonic()
        if now - self._swept_at >= self._sweep_interval:
            self._swept_at = now
            self._drop_expired(now)
        self._data[key] = (value, now + ttl_seconds)

    async def take_if_match(self, key: str, value: str) -> bool:
        entry = self._data.get(key)
        if entry is None:
            return False

        stored, expires_at = entry
        if time.monotonic() >= expires_at:
            del self._data[key]
            return False
        if stored != value:
            return False

        del self._data[key]
        return True

    def cleanup_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        return self._drop_expired(time.monotonic())

    def _drop_expired(self, now: float) -> int:
        expired = [key for key, (_, expires_at) in self._data.items() if now >= expires_at]
        for key in expired:
            del self._data[key]
        if expired:
            logger.debug("Dropped {} expired OTP entries", len(expired))
        return len(expired)


class RedisOtpStorage(OtpStorage):
    """Redis-backed OTP storage; expiry is left to Redis."""

    def __init__(self, redis_client):
        self._redis = redis_client

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._redis.set(key, value, ex=ttl_seconds)
        except Exception as e:
            raise RuntimeError(f"Redis set failed: {e}") from e

    async def take_if_match(self, key: str, value: str) -> bool:
        try:
            deleted = await self._redis.eval(_TAKE_IF_MATCH_SCRIPT, 1, key, value)
            return int(deleted) == 1
        except Exception as e:
            raise RuntimeError(f"Redis take failed: {e}") from e


def build_otp_storage(redis_client=None) -> OtpStorage:
    """Pick the Redis backend when a client is given, in-memory otherwise."""
    if redis_client is not None:
        logger.info("OTP storage: Redis")
        return RedisOtpStorage(redis_client)

    logger.info("OTP storage: in-memory")
    return InMemoryOtpStorage()
