"""
Database access: connection factories, the prepared-statement gateway,
and repositories.
"""

from .client import DatabaseConnectionError, SnowflakeConfig, create_database_connection
from .gateway import DatabaseGateway, QueryResult, StatementResult

__all__ = [
    "DatabaseConnectionError",
    "DatabaseGateway",
    "QueryResult",
    "SnowflakeConfig",
    "StatementResult",
    "create_database_connection",
]
