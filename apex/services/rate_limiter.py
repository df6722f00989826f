"""Fixed-window request counting shared across service processes.

Counters live in Redis (``INCR`` + ``EXPIRE`` in one transaction pipeline) so
every worker sees the same window.  When Redis is unreachable the limiter
keeps counting in process memory instead of failing the request.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from redis.asyncio import Redis
from redis.exceptions import RedisError

from apex.cache import disable_redis
from apex.services.errors import RateLimitExceededError

logger = logging.getLogger(__name__)

PAYOUT_REQUEST_PREFIX = "ratelimit:payout-request"


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float

    def retry_after(self, now: float) -> int:
        return max(1, math.ceil(self.reset_at - now))


class FixedWindowRateLimiter:
    def __init__(
        self,
        redis: Redis | None,
        *,
        max_requests: int,
        window_seconds: int,
        prefix: str = PAYOUT_REQUEST_PREFIX,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_requests < 1 or window_seconds < 1:
            raise ValueError("max_requests and window_seconds must be positive")
        self._redis = redis
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._prefix = prefix
        self._clock = clock
        self._local_counts: dict[str, tuple[float, int]] = {}
        self._local_lock = asyncio.Lock()

    async def check(self, identifier: str) -> RateLimitResult:
        """Count one request for ``identifier`` and report whether it is allowed."""

        now = self._clock()
        window_start = int(now // self._window_seconds) * self._window_seconds
        reset_at = float(window_start + self._window_seconds)
        key = f"{self._prefix}:{identifier}:{window_start}"

        count = await self._increment_remote(key)
        if count is None:
            count = await self._increment_local(key, reset_at, now)

        return RateLimitResult(
            allowed=count <= self._max_requests,
            remaining=max(0, self._max_requests - count),
            reset_at=reset_at,
        )

    async def enforce(self, identifier: str) -> RateLimitResult:
        """Like :meth:`check` but raise :class:`RateLimitExceededError` when over."""

        result = await self.check(identifier)
        if not result.allowed:
            retry_after = result.retry_after(self._clock())
            logger.warning(
                "Rate limit exceeded for %s under %s; retry in %ss",
                identifier,
                self._prefix,
                retry_after,
            )
            raise RateLimitExceededError(
                "Too many requests. Please try again later.", retry_after=retry_after
            )
        return result

    async def _increment_remote(self, key: str) -> int | None:
        if self._redis is None:
            return None
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.expire(key, self._window_seconds)
                count, _ = await pipe.execute()
        except (RedisError, OSError) as exc:
            logger.warning("Redis rate limit counter failed: %s. Using local window.", exc)
            self._redis = None
            disable_redis()
            return None
        return int(count)

    async def _increment_local(self, key: str, reset_at: float, now: float) -> int:
        async with self._local_lock:
            expired = [
                stale_key
                for stale_key, (expires_at, _) in self._local_counts.items()
                if expires_at <= now
            ]
            for stale_key in expired:
                self._local_counts.pop(stale_key, None)

            _, count = self._local_counts.get(key, (reset_at, 0))
            count += 1
            self._local_counts[key] = (reset_at, count)
            return count


__all__ = ["FixedWindowRateLimiter", "PAYOUT_REQUEST_PREFIX", "RateLimitResult"]
