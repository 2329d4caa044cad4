from .circuit_breaker import db_circuit_breaker
from .retry import retry_db_operation

__all__ = [
    "db_circuit_breaker",
    "retry_db_operation",
]
