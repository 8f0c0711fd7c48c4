"""
API tests through FastAPI's TestClient.

The gateway dependency is overridden with an in-memory SQLite database, so
these tests cover request parsing, status codes, response envelopes and the
SQL together.
"""

from contextlib import contextmanager

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_gateway
from src.config.settings import Settings, get_settings
from src.infrastructure.database.client import DatabaseConnectionError
from src.infrastructure.database.gateway import DatabaseGateway


# ---------------------------------------------------------------------------
# POST /api/sessions (single object)
# ---------------------------------------------------------------------------

class TestCreateSession:

    def test_single_insert_returns_201(self, client, make_session):
        resp = client.post("/api/sessions", json=make_session())

        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["result"]["success"] is True
        assert body["result"]["meta"]["changes"] == 1

    def test_inserted_row_is_listed(self, client, make_session):
        payload = make_session(POOL_ID="pool-9", AREA="Outdoor", AVAILABLE_SPOTS=12)

        client.post("/api/sessions", json=payload)
        rows = client.get("/api/sessions").json()

        assert rows == [payload]

    def test_falsy_optional_fields_stored_as_null(self, client, make_session):
        client.post("/api/sessions", json=make_session(POOL_ID="", AREA=""))

        row = client.get("/api/sessions").json()[0]

        assert row["POOL_ID"] is None
        assert row["AREA"] is None

    def test_missing_field_returns_400(self, client, make_session):
        payload = make_session()
        del payload["AVAILABLE_SPOTS"]

        resp = client.post("/api/sessions", json=payload)

        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert "AVAILABLE_SPOTS" in body["error"]

    def test_invalid_json_returns_400(self, client):
        resp = client.post(
            "/api/sessions",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_scalar_body_returns_400(self, client):
        resp = client.post("/api/sessions", json=42)

        assert resp.status_code == 400
        assert resp.json()["success"] is False


# ---------------------------------------------------------------------------
# Batch inserts
# ---------------------------------------------------------------------------

class TestBatchInsert:

    @pytest.mark.parametrize("path", ["/api/sessions", "/api/sessions/batch"])
    def test_batch_returns_inserted_count(self, client, make_session, path):
        payload = [make_session(AVAILABLE_SPOTS=n) for n in range(3)]

        resp = client.post(path, json=payload)

        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["inserted"] == 3
        assert len(body["results"]) == 3
        assert len(client.get("/api/sessions").json()) == 3

    @pytest.mark.parametrize("path", ["/api/sessions", "/api/sessions/batch"])
    def test_empty_array_returns_400(self, client, path):
        resp = client.post(path, json=[])

        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Array cannot be empty"}

    @pytest.mark.parametrize("path", ["/api/sessions", "/api/sessions/batch"])
    def test_more_than_1000_items_returns_400(self, client, make_session, path):
        resp = client.post(path, json=[make_session()] * 1001)

        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Maximum 1000 items allowed per request"}

    def test_exactly_1000_items_accepted(self, client, make_session):
        resp = client.post("/api/sessions/batch", json=[make_session()] * 1000)

        assert resp.status_code == 201
        assert resp.json()["inserted"] == 1000

    def test_batch_endpoint_requires_array(self, client, make_session):
        resp = client.post("/api/sessions/batch", json=make_session())

        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Request body must be an array"}

    def test_invalid_item_rejects_whole_batch(self, client, make_session):
        payload = [make_session(), make_session(SESSION_SIDE="MIDDLE")]

        resp = client.post("/api/sessions/batch", json=payload)

        assert resp.status_code == 400
        assert client.get("/api/sessions").json() == []


# ---------------------------------------------------------------------------
# GET /api/sessions
# ---------------------------------------------------------------------------

class TestListSessions:

    def test_empty_table_returns_empty_array(self, client):
        resp = client.get("/api/sessions")

        assert resp.status_code == 200
        assert resp.json() == []

    def test_listing_is_capped_at_100(self, client, make_session):
        client.post("/api/sessions/batch", json=[make_session()] * 150)

        resp = client.get("/api/sessions")

        assert resp.status_code == 200
        assert len(resp.json()) == 100


# ---------------------------------------------------------------------------
# GET /seo-highlights
# ---------------------------------------------------------------------------

class TestSeoHighlights:

    def seed(self, client, make_session, rows):
        resp = client.post("/api/sessions/batch", json=[make_session(**row) for row in rows])
        assert resp.status_code == 201

    @pytest.mark.parametrize("params", [
        {"untildate": "2024-01-03", "poolid": "pool-1"},
        {"fromdate": "2024-01-01", "poolid": "pool-1"},
        {"fromdate": "2024-01-01", "untildate": "2024-01-03"},
        {},
    ])
    def test_missing_parameters(self, client, params):
        resp = client.get("/seo-highlights", params=params)

        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Missing required parameters."}

    def test_invalid_date(self, client):
        resp = client.get(
            "/seo-highlights",
            params={"fromdate": "01/02/2024", "untildate": "2024-01-03", "poolid": "pool-1"},
        )

        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Invalid date format. Use yyyy-mm-dd"}

    def test_inverted_range(self, client):
        resp = client.get(
            "/seo-highlights",
            params={"fromdate": "2024-01-05", "untildate": "2024-01-03", "poolid": "pool-1"},
        )

        assert resp.status_code == 400
        assert resp.json()["error"] == "fromdate must be before or equal to untildate"

    def test_range_longer_than_a_year(self, client):
        resp = client.get(
            "/seo-highlights",
            params={"fromdate": "2024-01-01", "untildate": "2025-06-01", "poolid": "pool-1"},
        )

        assert resp.status_code == 400
        assert resp.json()["error"] == "Date range cannot exceed 366 days"

    def test_returns_ranked_rows(self, client, make_session):
        self.seed(client, make_session, [
            {"SESSION_DATETIME": "2024-01-01 07:00", "AVAILABLE_SPOTS": 2},
            {"SESSION_DATETIME": "2024-01-01 08:00", "AVAILABLE_SPOTS": 9},
            {"SESSION_DATETIME": "2024-01-01 09:00", "AVAILABLE_SPOTS": 5},
            {"SESSION_DATETIME": "2024-01-01 10:00", "AVAILABLE_SPOTS": 30, "SESSION_TITLE": "Coach Clinic"},
        ])

        resp = client.get(
            "/seo-highlights",
            params={"fromdate": "2024-01-01", "untildate": "2024-01-03", "poolid": "pool-1", "topxrecords": "2"},
        )

        assert resp.status_code == 200
        rows = resp.json()
        assert [row["SESSION_DATETIME"] for row in rows] == ["2024-01-01 09:00", "2024-01-01 08:00"]
        assert all(row["POOL_ID"] == "pool-1" for row in rows)

    def test_default_top_records_is_three(self, client, make_session):
        self.seed(client, make_session, [
            {"SESSION_DATETIME": f"2024-01-01 0{hour}:00", "AVAILABLE_SPOTS": hour}
            for hour in range(1, 7)
        ])

        resp = client.get(
            "/seo-highlights",
            params={"fromdate": "2024-01-01", "untildate": "2024-01-01", "poolid": "pool-1"},
        )

        assert resp.status_code == 200
        assert len(resp.json()) == 3

    def test_latest_snapshot_wins(self, client, make_session):
        self.seed(client, make_session, [
            {"UPDATED_AT": "2024-01-01T06:00:00", "AVAILABLE_SPOTS": 10},
            {"UPDATED_AT": "2024-01-01T07:30:00", "AVAILABLE_SPOTS": 0},
        ])

        rows = client.get(
            "/seo-highlights",
            params={"fromdate": "2024-01-01", "untildate": "2024-01-01", "poolid": "pool-1"},
        ).json()

        assert len(rows) == 1
        assert rows[0]["AVAILABLE_SPOTS"] == 0

    def test_query_failure_returns_500(self, client, sqlite_connection):
        sqlite_connection.execute("DROP TABLE SESSIONS_SCHEDULE_HISTORY")

        resp = client.get(
            "/seo-highlights",
            params={"fromdate": "2024-01-01", "untildate": "2024-01-01", "poolid": "pool-1"},
        )

        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert "SESSIONS_SCHEDULE_HISTORY" in body["error"]


# ---------------------------------------------------------------------------
# Database unreachable
# ---------------------------------------------------------------------------

@pytest.fixture
def unreachable_client(client):
    """Client whose gateway fails to connect on its first statement."""
    def _refuse():
        raise DatabaseConnectionError("Database connection failed: connection refused")

    def _override_gateway():
        yield DatabaseGateway(connect=_refuse)

    client.app.dependency_overrides[get_gateway] = _override_gateway
    return client


class TestDatabaseUnavailable:

    def test_single_insert_returns_400_with_error(self, unreachable_client, make_session):
        resp = unreachable_client.post("/api/sessions", json=make_session())

        assert resp.status_code == 400
        assert resp.json() == {
            "success": False,
            "error": "Database connection failed: connection refused",
        }

    @pytest.mark.parametrize("path", ["/api/sessions", "/api/sessions/batch"])
    def test_batch_insert_returns_400_with_error(self, unreachable_client, make_session, path):
        resp = unreachable_client.post(path, json=[make_session(), make_session()])

        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert "connection failed" in body["error"]

    def test_snowflake_gateway_connects_inside_the_handler(self, monkeypatch, make_session):
        """The real gateway dependency defers connecting until the insert runs."""
        from src.main import create_app

        @contextmanager
        def refuse(config=None, mock_mode=False, sqlite_path=":memory:"):
            raise DatabaseConnectionError("Database connection failed: connection refused")
            yield

        monkeypatch.setattr("src.api.dependencies.create_database_connection", refuse)
        app = create_app()
        app.dependency_overrides[get_settings] = lambda: Settings(
            _env_file=None,
            snowflake_mock_mode=False,
            snowflake_account="acct",
            snowflake_user="svc",
            snowflake_password="secret",
        )

        resp = TestClient(app).post("/api/sessions", json=make_session())

        assert resp.status_code == 400
        assert resp.json()["error"] == "Database connection failed: connection refused"

    def test_highlights_return_500_with_error(self, unreachable_client):
        resp = unreachable_client.get(
            "/seo-highlights",
            params={"fromdate": "2024-01-01", "untildate": "2024-01-01", "poolid": "pool-1"},
        )

        assert resp.status_code == 500
        assert resp.json() == {
            "success": False,
            "error": "Database connection failed: connection refused",
        }


# ---------------------------------------------------------------------------
# Fallback and health
# ---------------------------------------------------------------------------

class TestFallback:

    def test_unknown_path_renders_comments_page(self, client, gateway):
        gateway.prepare("INSERT INTO comments (author, content) VALUES (?, ?)").bind(
            "Kris", "<b>Great pool</b>"
        ).run()

        resp = client.get("/anything/else")

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert "Kris" in resp.text
        assert "&lt;b&gt;Great pool&lt;/b&gt;" in resp.text

    def test_root_and_other_methods_fall_back(self, client):
        assert client.get("/").status_code == 200
        assert client.delete("/api/sessions").status_code == 200

    def test_head_falls_back(self, client):
        assert client.head("/").status_code == 200


class TestHealth:

    def test_liveness(self, client):
        resp = client.get("/health")

        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    def test_readiness_with_working_database(self, client):
        resp = client.get("/health/ready")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ready"
        assert {check["name"] for check in body["checks"]} == {"configuration", "database"}
