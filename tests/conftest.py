"""
Shared fixtures.

Tests run against a real in-memory SQLite database through the same gateway
the application uses, so the ranking SQL is exercised end to end without a
Snowflake account.
"""

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_gateway
from src.config.settings import Settings, get_settings
from src.infrastructure.database.client import open_sqlite_connection
from src.infrastructure.database.gateway import DatabaseGateway
from src.infrastructure.database.repositories import SessionScheduleRepository


def _make_session(**overrides) -> dict:
    """A valid session payload using the upper-case wire keys."""
    payload = {
        "POOL_ID": "pool-1",
        "UPDATED_AT": "2024-01-01T08:00:00",
        "SESSION_DATE": "01-01-2024",
        "SESSION_TIME": "07:00",
        "SESSION_DATETIME": "2024-01-01 07:00",
        "SESSION_TITLE": "Lap Swim",
        "SESSION_SIDE": "LEFT",
        "AVAILABLE_SPOTS": 5,
        "AREA": "Main hall",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_session():
    """Factory for valid session payloads; keyword arguments override fields."""
    return _make_session


@pytest.fixture
def sqlite_connection():
    conn = open_sqlite_connection(":memory:")
    yield conn
    conn.close()


@pytest.fixture
def gateway(sqlite_connection) -> DatabaseGateway:
    return DatabaseGateway(sqlite_connection)


@pytest.fixture
def repository(gateway) -> SessionScheduleRepository:
    return SessionScheduleRepository(gateway)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, snowflake_mock_mode=True)


@pytest.fixture
def client(gateway, settings):
    """TestClient whose routes all share the fixture's SQLite database."""
    from src.main import create_app

    app = create_app()

    def _override_gateway():
        yield gateway

    app.dependency_overrides[get_gateway] = _override_gateway
    app.dependency_overrides[get_settings] = lambda: settings

    yield TestClient(app)

    app.dependency_overrides.clear()
