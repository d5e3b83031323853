"""Request quotas for the HTTP layer.

Quotas are counted per caller: the authenticated user when the access gate ran
first, the client address otherwise. A Redis-backed fastapi-limiter is used when
Redis is configured; a process-local sliding window is used otherwise.
"""

from __future__ import annotations

import asyncio
import time
from collections import defaultdict, deque
from collections.abc import Awaitable, Callable
from functools import lru_cache
from typing import Any

from fastapi import HTTPException, Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from loguru import logger

from src.storefront.runtime.config.config_data import RateLimiterConfig
from src.storefront.runtime.context import get_config

QuotaCheck = Callable[[Request, Response], Awaitable[Any]]
QuotaFactory = Callable[[int, int, bool, bool], QuotaCheck]

TOO_MANY_REQUESTS = "Too many requests, please try again later"

_factory: QuotaFactory | None = None
_generation: int = 0
_backed_by_redis: bool = False
_windows_in_use: list[SlidingWindowLimiter] = []


def caller_identity(request: Request) -> str:
    """``user:<id>`` for authenticated callers, ``ip:<host>`` for the rest."""
    uid = getattr(request.state, "uid", None)
    if uid is not None:
        return f"user:{uid}"
    host = request.client.host if request.client else "anonymous"
    return f"ip:{host}"


async def _identify(request: Request) -> str:
    return caller_identity(request)


class SlidingWindowLimiter:
    """In-process limiter: at most ``times`` hits per caller within the window."""

    SWEEP_EVERY_SECONDS = 60.0

    def __init__(
        self, times: int, milliseconds: int, per_endpoint: bool, per_method: bool
    ) -> None:
        self.times = times
        self.window = milliseconds / 1000
        self.per_endpoint = per_endpoint
        self.per_method = per_method
        self._hits: defaultdict[str, deque[float]] = defaultdict(deque)
        self._guard = asyncio.Lock()
        self._swept_at = time.monotonic()

    async def __call__(self, request: Request, response: Response) -> None:
        await self.hit(self.key_for(request))

    def key_for(self, request: Request) -> str:
        key = caller_identity(request)
        if self.per_method:
            key += f":{request.method}"
        if self.per_endpoint:
            # Route template, so /orders/1 and /orders/2 share a quota
            route = request.scope.get("route")
            key += ":" + (getattr(route, "path", None) or request.url.path).rstrip("/")
        return key

    async def hit(self, key: str) -> None:
        """Record one request for ``key`` or raise 429 if the quota is spent."""
        now = time.monotonic()
        async with self._guard:
            self._sweep(now)
            hits = self._hits[key]
            while hits and hits[0] <= now - self.window:
                hits.popleft()
            if len(hits) >= self.times:
                retry_after = max(1, int(self.window - (now - hits[0])) + 1)
                raise HTTPException(
                    status_code=429,
                    detail=TOO_MANY_REQUESTS,
                    headers={"Retry-After": str(retry_after)},
                )
            hits.append(now)

    def _sweep(self, now: float) -> None:
        if now - self._swept_at < self.SWEEP_EVERY_SECONDS:
            return
        self._swept_at = now
        idle = [
            key for key, hits in self._hits.items() if not hits or hits[-1] <= now - self.window
        ]
        for key in idle:
            del self._hits[key]

    async def reset(self) -> None:
        async with self._guard:
            tracked = len(self._hits)
            self._hits.clear()
        logger.debug("Reset local rate limiter ({} tracked callers)", tracked)


def _local_factory(
    times: int, milliseconds: int, per_endpoint: bool, per_method: bool
) -> QuotaCheck:
    limiter = SlidingWindowLimiter(times, milliseconds, per_endpoint, per_method)
    _windows_in_use.append(limiter)
    return limiter


def _redis_factory(
    times: int, milliseconds: int, per_endpoint: bool, per_method: bool
) -> QuotaCheck:
    # fastapi-limiter always appends the route and path to the identifier
    return RateLimiter(times=times, milliseconds=milliseconds, identifier=_identify)


async def configure_rate_limiter(redis_client=None) -> None:
    """Select the backend for quotas created from now on."""
    global _factory, _generation, _backed_by_redis

    _limiter_for.cache_clear()
    _generation += 1

    if redis_client is not None:
        await FastAPILimiter.init(redis_client, identifier=_identify)
        _factory, _backed_by_redis = _redis_factory, True
        logger.info("Rate limiting backed by Redis (fastapi-limiter)")
    else:
        _factory, _backed_by_redis = _local_factory, False
        logger.info("Rate limiting backed by local memory")


@lru_cache(maxsize=100)
def _limiter_for(
    requests: int, window_ms: int, per_endpoint: bool, per_method: bool, generation: int
) -> QuotaCheck:
    # Without configure_rate_limiter (no lifespan) quotas stay local
    factory = _factory or _local_factory
    return factory(requests, window_ms, per_endpoint, per_method)


def get_rate_limiter(
    requests: int | None = None,
    window_ms: int | None = None,
    config: RateLimiterConfig | None = None,
) -> QuotaCheck:
    """Shared limiter for a quota; one instance per distinct setting."""
    config = config or get_config().rate_limiter
    return _limiter_for(
        config.requests if requests is None else requests,
        config.window_ms if window_ms is None else window_ms,
        config.per_endpoint,
        config.per_method,
        _generation,
    )


def _settings(request: Request) -> RateLimiterConfig:
    deps = getattr(request.app.state, "app_dependencies", None)
    return deps.config.rate_limiter if deps is not None else get_config().rate_limiter


def rate_limit(requests: int | None = None, window_ms: int | None = None) -> QuotaCheck:
    """Route dependency enforcing a quota.

    List it after the access gate dependency so the quota is per user.
    """

    async def check(request: Request, response: Response) -> None:
        settings = _settings(request)
        if settings.enabled:
            await get_rate_limiter(requests, window_ms, settings)(request, response)

    return check


async def close_rate_limiter() -> None:
    """Forget every quota; the Redis client itself is closed by RedisService."""
    global _factory, _backed_by_redis

    _limiter_for.cache_clear()
    for limiter in _windows_in_use:
        await limiter.reset()
    _windows_in_use.clear()

    if _backed_by_redis:
        FastAPILimiter.redis = None
        logger.info("Detached fastapi-limiter from Redis")

    _factory, _backed_by_redis = None, False
