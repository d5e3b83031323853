"""OTP storage backends."""

import time

import pytest

from src.storefront.core.storage.otp_storage import (
    InMemoryOtpStorage,
    RedisOtpStorage,
    build_otp_storage,
)


class FakeRedis:
    """Implements just enough of redis.asyncio for the Redis backend."""

    def __init__(self, fail: bool = False):
        self.data: dict[str, str] = {}
        self.expiry: dict[str, int] = {}
        self.fail = fail

    async def set(self, key, value, ex=None):
        if self.fail:
            raise ConnectionError("redis down")
        self.data[key] = value
        self.expiry[key] = ex

    async def eval(self, script, numkeys, key, value):
        if self.fail:
            raise ConnectionError("redis down")
        if self.data.get(key) == value:
            del self.data[key]
            return 1
        return 0


class TestInMemoryOtpStorage:
    async def test_matching_code_is_consumed_once(self):
        storage = InMemoryOtpStorage()
        await storage.put("otp:a@example.com", "123456", 60)

        assert await storage.take_if_match("otp:a@example.com", "123456") is True
        assert await storage.take_if_match("otp:a@example.com", "123456") is False

    async def test_wrong_code_keeps_pending_code(self):
        storage = InMemoryOtpStorage()
        await storage.put("k", "123456", 60)

        assert await storage.take_if_match("k", "000000") is False
        assert await storage.take_if_match("k", "123456") is True

    async def test_new_code_replaces_old(self):
        storage = InMemoryOtpStorage()
        await storage.put("k", "111111", 60)
        await storage.put("k", "222222", 60)

        assert await storage.take_if_match("k", "111111") is False
        assert await storage.take_if_match("k", "222222") is True

    async def test_expired_code_rejected(self):
        storage = InMemoryOtpStorage()
        await storage.put("k", "123456", 300)
        # Age the entry past its deadline
        storage._data["k"] = ("123456", time.monotonic() - 1)

        assert await storage.take_if_match("k", "123456") is False
        assert "k" not in storage._data

    async def test_cleanup_expired(self):
        storage = InMemoryOtpStorage()
        await storage.put("old", "1", 10)
        await storage.put("fresh", "2", 100)
        storage._data["old"] = ("1", time.monotonic() - 1)

        assert storage.cleanup_expired() == 1
        assert await storage.take_if_match("fresh", "2") is True

    async def test_put_sweeps_expired_entries(self):
        storage = InMemoryOtpStorage(sweep_interval=0)
        for i in range(1000):
            await storage.put(f"otp:user{i}@example.com", "123456", 0)

        await storage.put("otp:live@example.com", "654321", 300)

        assert list(storage._data) == ["otp:live@example.com"]

    async def test_sweep_waits_for_interval(self):
        storage = InMemoryOtpStorage(sweep_interval=3600)
        await storage.put("old", "1", 0)
        await storage.put("new", "2", 300)

        assert set(storage._data) == {"old", "new"}

    async def test_zero_ttl_expires_immediately(self):
        storage = InMemoryOtpStorage()
        await storage.put("k", "123456", 0)

        assert await storage.take_if_match("k", "123456") is False


class TestRedisOtpStorage:
    async def test_put_sets_ttl(self):
        redis = FakeRedis()
        storage = RedisOtpStorage(redis)

        await storage.put("k", "123456", 300)

        assert redis.data["k"] == "123456"
        assert redis.expiry["k"] == 300

    async def test_take_if_match(self):
        storage = RedisOtpStorage(FakeRedis())
        await storage.put("k", "123456", 300)

        assert await storage.take_if_match("k", "999999") is False
        assert await storage.take_if_match("k", "123456") is True
        assert await storage.take_if_match("k", "123456") is False

    async def test_failures_surface_as_runtime_error(self):
        storage = RedisOtpStorage(FakeRedis(fail=True))

        with pytest.raises(RuntimeError, match="Redis set failed"):
            await storage.put("k", "1", 10)


def test_build_otp_storage_picks_backend():
    assert isinstance(build_otp_storage(None), InMemoryOtpStorage)
    assert isinstance(build_otp_storage(FakeRedis()), RedisOtpStorage)
