"""
Circuit breaker that stops hammering the database once it keeps failing.
Uses pybreaker.
"""
import logging
from collections.abc import Callable
from functools import wraps
from typing import TypeVar

from psycopg2 import OperationalError as Psycopg2OperationalError
from pybreaker import CircuitBreaker, CircuitBreakerError
from sqlalchemy.exc import DisconnectionError, OperationalError, TimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DB_CIRCUIT_BREAKER_EXCEPTIONS = (
    OperationalError,
    DisconnectionError,
    TimeoutError,
    Psycopg2OperationalError,
    ConnectionError,
)


def _is_not_connection_error(error: Exception) -> bool:
    return not isinstance(error, DB_CIRCUIT_BREAKER_EXCEPTIONS)


_db_circuit_breaker = CircuitBreaker(
    fail_max=5,  # opens after 5 consecutive connection failures
    reset_timeout=60,  # stays open for 60 seconds
    exclude=[_is_not_connection_error],
    name="DatabaseCircuitBreaker",
)


def circuit_breaker(breaker: CircuitBreaker):
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            try:
                return breaker.call(func, *args, **kwargs)
            except CircuitBreakerError as e:
                logger.warning(f"Circuit breaker open for {func.__name__}: {e}")
                raise

        return wrapper

    return decorator


def db_circuit_breaker():
    return circuit_breaker(_db_circuit_breaker)
