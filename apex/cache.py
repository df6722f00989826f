"""Shared Redis connection for the payout rate limiter."""

from __future__ import annotations

import asyncio
import logging

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from apex.settings import get_settings

logger = logging.getLogger(__name__)

_redis_client: Redis | None = None
_client_lock = asyncio.Lock()
_redis_disabled = False


async def get_redis() -> Redis | None:
    """Return the shared Redis client, or ``None`` when Redis is unreachable.

    A failed connection attempt disables Redis for the life of the process;
    :func:`close_redis` resets that state.
    """

    global _redis_client, _redis_disabled

    if _redis_disabled:
        logger.debug("Redis connection disabled after previous failure; skipping attempt.")
        return None

    async with _client_lock:
        if _redis_client is not None:
            return _redis_client
        if _redis_disabled:
            return None

        client = Redis.from_url(
            get_settings().redis_url, decode_responses=True, encoding="utf-8"
        )
        try:
            await client.ping()
        except (RedisConnectionError, RedisTimeoutError, OSError) as exc:
            logger.warning(
                "Redis connection failed: %s. Rate limiting falls back to the local window.",
                exc,
            )
            await client.aclose()
            _redis_disabled = True
            return None

        _redis_client = client
        logger.info("Redis connection established successfully")
        return _redis_client


def disable_redis() -> None:
    """Stop using Redis after a runtime connection failure."""

    global _redis_client, _redis_disabled
    _redis_client = None
    _redis_disabled = True


async def close_redis() -> None:
    """Close the global Redis connection gracefully."""

    global _redis_client, _redis_disabled
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
    _redis_disabled = False


__all__ = ["close_redis", "disable_redis", "get_redis"]
