"""
Redis Connection Module

This module provides the asynchronous Redis client backing recovery tokens
and send cooldowns.

**Security Note**: Recovery tokens are bearer credentials for account
takeover. Use ``rediss://`` URLs outside trusted networks, require a
password, and never log the connection URL.

Functions:
    create_redis: Builds a client from settings or an explicit URL.
    get_redis: Async generator yielding a client and closing it afterwards.
"""

import logging
from typing import AsyncIterator, Optional

from redis.asyncio import Redis

from passreset.core.config.settings import settings

logger = logging.getLogger(__name__)


def create_redis(url: Optional[str] = None) -> Redis:
    """
    Creates an asynchronous Redis client with string responses.

    Args:
        url: Connection URL, defaults to ``settings.REDIS_URL``.
    """
    redis = Redis.from_url(url or settings.REDIS_URL, encoding="utf-8", decode_responses=True)
    logger.debug("Redis client created")
    return redis


async def get_redis(url: Optional[str] = None) -> AsyncIterator[Redis]:
    """
    Provides an asynchronous Redis client and closes it when the consumer is done.

    Yields:
        Redis: An asynchronous Redis client instance.
    """
    redis = create_redis(url)
    try:
        yield redis
    finally:
        await redis.aclose()
        logger.debug("Redis connection closed")
