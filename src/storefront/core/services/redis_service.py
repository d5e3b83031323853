"""Redis client lifecycle shared by the OTP store and the rate limiter."""

import redis.asyncio as redis_async
from loguru import logger
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff

from src.storefront.runtime.config.config_data import RedisConfig


class RedisService:
    """Owns one pooled async Redis client, or none when Redis is not configured."""

    def __init__(self, config: RedisConfig):
        self._client: redis_async.Redis | None = None

        if not config.enabled:
            logger.info("Redis is disabled, service will not connect")
            return
        if not config.url:
            logger.info("Redis URL not configured, service will not connect")
            return

        self._client = redis_async.from_url(
            config.connection_string,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=config.socket_timeout,
            socket_connect_timeout=config.socket_timeout,
            health_check_interval=30,
            retry=Retry(ExponentialBackoff(base=1, cap=10), retries=3),
            client_name="storefront",
        )
        logger.info("Redis client initialized for {}", config.url.split("@")[-1])

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def get_client(self) -> redis_async.Redis | None:
        return self._client

    async def health_check(self) -> bool:
        """PING the server; False when disabled or unreachable."""
        if self._client is None:
            return False
        try:
            await self._client.ping()
            return True
        except Exception as e:
            logger.error("Redis health check failed: {}: {}", type(e).__name__, str(e))
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            logger.info("Redis client closed")
