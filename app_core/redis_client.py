"""
EAS Station - Emergency Alert System
Copyright (c) 2025 Timothy Kramer (KR8MER)

This file is part of EAS Station.

EAS Station is dual-licensed software:
- GNU Affero General Public License v3 (AGPL-3.0) for open-source use
- Commercial License for proprietary use

You should have received a copy of both licenses with this software.
For more information, see LICENSE and LICENSE-COMMERCIAL files.

IMPORTANT: This software cannot be rebranded or have attribution removed.
See NOTICE file for complete terms.

Repository: https://github.com/KR8MER/eas-station
"""

"""
Redis connection management for cross-process coordination.

The web application and the scheduled poller run as separate processes, so
the poll lock lives in Redis whenever ``REDIS_URL`` is configured.

Usage:
    from app_core.redis_client import get_redis_client, redis_configured

    if redis_configured():
        client = get_redis_client()
"""

import logging
import os
import time
from typing import Optional

import redis
from redis import ConnectionError, RedisError, TimeoutError

logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None


def redis_url() -> Optional[str]:
    value = (os.getenv("REDIS_URL") or "").strip()
    return value or None


def redis_configured() -> bool:
    return redis_url() is not None


def get_redis_client(
    max_retries: int = 3,
    initial_backoff: float = 0.5,
    max_backoff: float = 5.0,
    force_reconnect: bool = False,
) -> redis.Redis:
    """
    Get or create the shared Redis client with exponential backoff retry.

    Raises:
        RuntimeError: If ``REDIS_URL`` is not configured
        ConnectionError: If unable to connect after all retries
    """
    global _redis_client

    if _redis_client is not None and not force_reconnect:
        try:
            _redis_client.ping()
            return _redis_client
        except (ConnectionError, TimeoutError, RedisError):
            logger.warning("Existing Redis client unhealthy, reconnecting")
            _redis_client = None

    url = redis_url()
    if url is None:
        raise RuntimeError("REDIS_URL is not configured")

    attempt = 0
    backoff = initial_backoff
    while True:
        attempt += 1
        try:
            client = redis.Redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                health_check_interval=30,
            )
            client.ping()
            logger.info("Redis connected (attempt %d)", attempt)
            _redis_client = client
            return client
        except (ConnectionError, TimeoutError) as exc:
            if attempt >= max_retries:
                logger.error("Failed to connect to Redis after %d attempts: %s", attempt, exc)
                raise ConnectionError(
                    f"Unable to connect to Redis after {attempt} attempts: {exc}"
                ) from exc

            logger.warning(
                "Redis connection failed (attempt %d/%d): %s. Retrying in %.1fs",
                attempt,
                max_retries,
                exc,
                backoff,
            )
            time.sleep(backoff)
            backoff = min(backoff * 2, max_backoff)


def reset_redis_client() -> None:
    """Forget the cached client (for testing)."""
    global _redis_client
    _redis_client = None


__all__ = ["get_redis_client", "redis_configured", "redis_url", "reset_redis_client"]
