"""
Retry helpers for database operations that can fail transiently.
Uses tenacity with exponential backoff.
"""
import logging

from psycopg2 import OperationalError as Psycopg2OperationalError
from sqlalchemy.exc import DisconnectionError, OperationalError, TimeoutError
from tenacity import (
    after_log,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

# Connection-level failures worth another attempt; constraint or SQL errors are not.
DB_RETRY_EXCEPTIONS = (
    OperationalError,
    DisconnectionError,
    TimeoutError,
    Psycopg2OperationalError,
    ConnectionError,
)


def retry_db_operation(
    max_attempts: int = 3,
    initial_wait: float = 1.0,
    max_wait: float = 10.0,
    multiplier: float = 2.0,
):
    """
    Decorator that retries a database operation with exponential backoff.

    Args:
        max_attempts: Maximum number of attempts (default: 3)
        initial_wait: Initial wait in seconds (default: 1.0)
        max_wait: Maximum wait in seconds (default: 10.0)
        multiplier: Exponential backoff multiplier (default: 2.0)

    Returns:
        Decorator wrapping the function with the retry policy
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=multiplier,
            min=initial_wait,
            max=max_wait,
        ),
        retry=retry_if_exception_type(DB_RETRY_EXCEPTIONS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        after=after_log(logger, logging.ERROR),
        reraise=True,
    )
