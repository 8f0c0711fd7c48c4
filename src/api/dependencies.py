"""
FastAPI dependency injection.

Dependencies provide the database gateway, repositories and configuration
to route handlers. Using dependency injection means:
- Routes don't open their own connections (easier to test)
- Tests swap the gateway with app.dependency_overrides
- Connection lifecycle is managed per request

Each dependency is a function that FastAPI calls when needed.
"""

import logging
from contextlib import ExitStack
from typing import Annotated, Generator

from fastapi import Depends

from ..config.settings import Settings, get_settings
from ..infrastructure.database.client import (
    SnowflakeConfig,
    create_database_connection,
    open_sqlite_connection,
)
from ..infrastructure.database.gateway import DatabaseGateway
from ..infrastructure.database.repositories import CommentRepository, SessionScheduleRepository

logger = logging.getLogger(__name__)

# Shared SQLite connection in mock mode, so data persists across requests
_mock_connection = None


def get_gateway(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Generator[DatabaseGateway, None, None]:
    """
    Provide a DatabaseGateway for the current request.

    This is a generator so the connection is closed after the response:
    1. Yield gateway (FastAPI injects it)
    2. Open connection on the first statement the handler runs
    3. Close connection, if one was opened

    In mock mode, one SQLite connection is reused for the whole process.
    """
    global _mock_connection

    if settings.snowflake_mock_mode:
        if _mock_connection is None:
            _mock_connection = open_sqlite_connection(settings.sqlite_path)
            logger.info("Created shared SQLite connection for mock mode")

        yield DatabaseGateway(_mock_connection)
    else:
        config = SnowflakeConfig(
            account=settings.snowflake_account,
            user=settings.snowflake_user,
            password=settings.snowflake_password or None,
            private_key_path=settings.snowflake_private_key_path,
            database=settings.snowflake_database,
            schema=settings.snowflake_schema,
            warehouse=settings.snowflake_warehouse,
            role=settings.snowflake_role,
        )

        # Connects on the first statement, inside the handler
        with ExitStack() as stack:
            yield DatabaseGateway(
                connect=lambda: stack.enter_context(create_database_connection(config=config))
            )


def get_session_repository(
    gateway: Annotated[DatabaseGateway, Depends(get_gateway)],
) -> SessionScheduleRepository:
    return SessionScheduleRepository(gateway)


def get_comment_repository(
    gateway: Annotated[DatabaseGateway, Depends(get_gateway)],
) -> CommentRepository:
    return CommentRepository(gateway)


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
SessionRepositoryDep = Annotated[SessionScheduleRepository, Depends(get_session_repository)]
CommentRepositoryDep = Annotated[CommentRepository, Depends(get_comment_repository)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
