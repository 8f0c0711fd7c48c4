"""
Database connection management.

Provides connection factories for Snowflake (production) and SQLite
(mock mode), each as a context manager that always closes what it opened.
Callers wrap the connection in a DatabaseGateway; most code never touches
this module directly.
"""

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator, Optional

from .gateway import DatabaseConnection

logger = logging.getLogger(__name__)


# Schema for mock mode and tests. In Snowflake the tables are managed
# outside this service.
SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS SESSIONS_SCHEDULE_HISTORY (
        POOL_ID TEXT,
        UPDATED_AT TEXT,
        SESSION_DATE TEXT NOT NULL,
        SESSION_TIME TEXT NOT NULL,
        SESSION_DATETIME TEXT NOT NULL,
        SESSION_TITLE TEXT NOT NULL,
        SESSION_SIDE TEXT NOT NULL CHECK (SESSION_SIDE IN ('LEFT', 'RIGHT')),
        AVAILABLE_SPOTS INTEGER NOT NULL,
        AREA TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS comments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        author TEXT NOT NULL,
        content TEXT NOT NULL
    )
    """,
)


class DatabaseConnectionError(Exception):
    """Raised when a database connection cannot be established."""
    pass


@dataclass
class SnowflakeConfig:
    """Configuration for Snowflake connection."""
    account: str
    user: str
    password: Optional[str] = None
    private_key_path: Optional[str] = None
    database: str = "POOLS"
    schema: str = "SCHEDULE"
    warehouse: str = "COMPUTE_WH"
    role: Optional[str] = None


def _load_private_key(key_path: str) -> bytes:
    """
    Load private key from file for key-pair authentication.

    Snowflake requires the private key as DER bytes, not a file path.
    """
    from cryptography.hazmat.backends import default_backend
    from cryptography.hazmat.primitives import serialization

    with open(key_path, 'rb') as key_file:
        private_key = serialization.load_pem_private_key(
            key_file.read(),
            password=None,
            backend=default_backend()
        )

    return private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )


@contextmanager
def get_snowflake_connection(config: SnowflakeConfig) -> Generator[DatabaseConnection, None, None]:
    """
    Provide Snowflake connection with automatic cleanup.

    Supports both password and key-pair authentication:
    - If private_key_path is set, uses key-pair auth
    - Otherwise, uses password auth

    The connection uses qmark binding and autocommit off, so the gateway
    controls commit boundaries.
    """
    try:
        import snowflake.connector
    except ImportError:
        raise ImportError(
            "snowflake-connector-python is required. "
            "Install with: pip install snowflake-connector-python"
        )

    snowflake.connector.paramstyle = "qmark"

    connect_params = {
        'account': config.account,
        'user': config.user,
        'database': config.database,
        'schema': config.schema,
        'warehouse': config.warehouse,
        'role': config.role,
        'autocommit': False,
        'client_session_keep_alive': True,
    }

    if config.private_key_path:
        logger.info("Using key-pair authentication for Snowflake")
        connect_params['private_key'] = _load_private_key(config.private_key_path)
    elif config.password:
        logger.info("Using password authentication for Snowflake")
        connect_params['password'] = config.password
    else:
        raise DatabaseConnectionError(
            "Either password or private_key_path must be provided"
        )

    try:
        conn = snowflake.connector.connect(**connect_params)
    except snowflake.connector.errors.DatabaseError as e:
        logger.error(
            "Snowflake connection failed",
            extra={"error": str(e), "account": config.account}
        )
        raise DatabaseConnectionError(f"Database connection failed: {e}")

    logger.debug(
        "Established Snowflake connection",
        extra={
            "account": config.account,
            "database": config.database,
            "schema": config.schema,
        }
    )

    try:
        yield conn
    finally:
        try:
            conn.close()
            logger.debug("Closed Snowflake connection")
        except Exception as e:
            logger.warning(
                "Error closing Snowflake connection",
                extra={"error": str(e)}
            )


def ensure_schema(connection: sqlite3.Connection) -> None:
    """Create the history and comments tables if they don't exist."""
    for statement in SCHEMA_STATEMENTS:
        connection.execute(statement)
    connection.commit()


def open_sqlite_connection(path: str = ":memory:") -> sqlite3.Connection:
    """
    Open a SQLite connection with the schema in place.

    FastAPI resolves sync dependencies in a threadpool, so the connection
    may be used from a different thread than the one that opened it.
    """
    conn = sqlite3.connect(path, check_same_thread=False)
    ensure_schema(conn)
    logger.info("Opened SQLite database", extra={"path": path})
    return conn


@contextmanager
def get_sqlite_connection(path: str = ":memory:") -> Generator[DatabaseConnection, None, None]:
    """SQLite connection for local development and tests."""
    conn = open_sqlite_connection(path)
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def create_database_connection(
    config: Optional[SnowflakeConfig] = None,
    mock_mode: bool = False,
    sqlite_path: str = ":memory:",
) -> Generator[DatabaseConnection, None, None]:
    """
    Create a database connection based on configuration.

    Args:
        config: Snowflake configuration (required if not mock_mode)
        mock_mode: If True, open a SQLite database instead of Snowflake
        sqlite_path: SQLite file to use in mock mode

    Yields:
        DB-API connection (Snowflake or SQLite)
    """
    if mock_mode:
        with get_sqlite_connection(sqlite_path) as conn:
            yield conn
    else:
        if config is None:
            raise ValueError("config is required when not in mock mode")

        with get_snowflake_connection(config) as conn:
            yield conn
