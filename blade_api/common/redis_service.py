"""
JSON key/value cache on Redis.

Every operation degrades to a cache miss when Redis is disabled, unreachable or
returns garbage, so callers never have to handle Redis errors themselves.
Connection attempts go through a circuit breaker: after a failed connect no new
attempt is made until ``REDIS_RETRY_SECONDS`` have passed.
"""
import json
import logging
from collections.abc import Callable
from typing import Any, TypeVar

import redis
from pybreaker import CircuitBreaker, CircuitBreakerError
from redis.exceptions import ConnectionError, RedisError

from blade_api.configuration.config import settings

logger = logging.getLogger(__name__)

R = TypeVar("R")

REDIS_RETRY_SECONDS = 30


class RedisService:
    def __init__(
        self,
        client: redis.Redis | None = None,
        enabled: bool | None = None,
        breaker: CircuitBreaker | None = None,
    ):
        self.enabled = settings.USE_REDIS if enabled is None else enabled
        self.client: redis.Redis | None = client
        self.breaker = breaker or CircuitBreaker(
            fail_max=1, reset_timeout=REDIS_RETRY_SECONDS, name="RedisCircuitBreaker"
        )

    def _connect(self) -> redis.Redis:
        client = redis.Redis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            password=settings.REDIS_PASSWORD or None,
            db=settings.REDIS_DB,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        client.ping()
        return client

    def _client(self) -> redis.Redis | None:
        """Lazily opens the connection; None while Redis is disabled or down."""
        if self.client is None and self.enabled:
            try:
                self.client = self.breaker.call(self._connect)
            except CircuitBreakerError:
                logger.debug("Redis circuit open, skipping cache")
                return None
            except RedisError as e:
                logger.warning(f"Redis unavailable at {settings.REDIS_HOST}:{settings.REDIS_PORT}: {e}")
                return None
            logger.info(f"Connected to Redis at {settings.REDIS_HOST}:{settings.REDIS_PORT}")
        return self.client

    def _run(self, action: str, key: str, operation: Callable[[redis.Redis], R], default: R) -> R:
        client = self._client()
        if client is None:
            return default
        try:
            return operation(client)
        except ConnectionError as e:
            logger.warning(f"Redis {action} failed (key={key}): {e}")
            # Connection lost: drop it and let the breaker pace the reconnect.
            self.client = None
            self.breaker.open()
            return default
        except (RedisError, ValueError) as e:
            logger.warning(f"Redis {action} failed (key={key}): {e}")
            return default

    def get(self, key: str) -> dict[str, Any] | None:
        def _get(client: redis.Redis) -> dict[str, Any] | None:
            raw = client.get(key)
            return None if raw is None else json.loads(raw)

        return self._run("get", key, _get, None)

    def set(self, key: str, value: dict[str, Any], ttl: int | None = None) -> bool:
        payload = json.dumps(value, ensure_ascii=False, default=str)

        def _set(client: redis.Redis) -> bool:
            client.setex(key, ttl or settings.REDIS_TTL, payload)
            return True

        return self._run("set", key, _set, False)

    def delete(self, key: str) -> bool:
        def _delete(client: redis.Redis) -> bool:
            client.delete(key)
            return True

        return self._run("delete", key, _delete, False)

    def exists(self, key: str) -> bool:
        return self._run("exists", key, lambda client: bool(client.exists(key)), False)

    def close(self):
        if self.client is None:
            return
        try:
            self.client.close()
            logger.info("Redis connection closed")
        except RedisError as e:
            logger.error(f"Error closing Redis connection: {e}")
        finally:
            self.client = None


_redis_service: RedisService | None = None


def get_redis_service() -> RedisService:
    """Process-wide RedisService"""
    global _redis_service  # noqa: PLW0603
    if _redis_service is None:
        _redis_service = RedisService()
    return _redis_service
