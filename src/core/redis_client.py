"""Lazily created Redis connection used by the refresh-token blocklist."""

import redis
from django.conf import settings

_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return the process-wide client for ``REDIS_URL``.

    Connection and command timeouts are short so a Redis outage surfaces as a
    ``BlocklistUnavailable`` error instead of a hung request.
    """

    global _client
    if _client is None:
        timeout = settings.REDIS_SOCKET_TIMEOUT
        _client = redis.Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
    return _client


def reset_redis_client() -> None:
    """Drop the cached client; the next call reconnects with current settings."""

    global _client
    _client = None


__all__ = ["get_redis_client", "reset_redis_client"]
