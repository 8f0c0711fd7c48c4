"""
Prepared-statement gateway over a DB-API connection.

Handlers talk to the database through a small prepare/bind/execute
interface:

    result = gateway.prepare("SELECT * FROM t WHERE id = ?").bind(42).all()
    gateway.batch([insert.bind(*row) for row in rows])

The same gateway wraps a Snowflake connection in production and a SQLite
connection in mock mode and tests. Both are opened with the qmark paramstyle,
so SQL written against the gateway uses "?" placeholders everywhere.

Driver exceptions propagate unchanged; the caller decides how to report them.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)


class DatabaseConnection(Protocol):
    """
    Protocol for DB-API connections.

    Using a protocol means tests can hand the gateway a sqlite3 connection
    without importing snowflake-connector-python.
    """

    def cursor(self): ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...


@dataclass
class StatementResult:
    """Outcome of a write statement."""
    success: bool = True
    meta: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "meta": dict(self.meta)}


@dataclass
class QueryResult:
    """Rows produced by a read statement, keyed by column name."""
    results: list[dict[str, Any]] = field(default_factory=list)
    success: bool = True
    meta: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "results": self.results, "meta": dict(self.meta)}


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


def _rows_as_dicts(cursor) -> list[dict[str, Any]]:
    if cursor.description is None:
        return []
    columns = [column[0] for column in cursor.description]
    return [dict(zip(columns, row)) for row in cursor.fetchall()]


def _write_meta(cursor, started: float) -> dict[str, Any]:
    return {
        "changes": cursor.rowcount,
        "last_row_id": getattr(cursor, "lastrowid", None),
        "duration": _elapsed_ms(started),
    }


class BoundStatement:
    """A prepared statement with its parameters, ready to execute."""

    def __init__(self, gateway: "DatabaseGateway", sql: str, params: tuple[Any, ...]) -> None:
        self._gateway = gateway
        self.sql = sql
        self.params = params

    def run(self) -> StatementResult:
        """Execute a write statement and commit it."""
        return self._gateway.run(self)

    def all(self) -> QueryResult:
        """Execute a read statement and fetch every row."""
        return self._gateway.all(self)

    def __repr__(self) -> str:
        return f"BoundStatement(sql={self.sql[:60]!r}, params={len(self.params)})"


class Statement:
    """SQL text awaiting parameters."""

    def __init__(self, gateway: "DatabaseGateway", sql: str) -> None:
        self._gateway = gateway
        self.sql = sql

    def bind(self, *params: Any) -> BoundStatement:
        return BoundStatement(self._gateway, self.sql, params)

    def run(self) -> StatementResult:
        return self.bind().run()

    def all(self) -> QueryResult:
        return self.bind().all()


class DatabaseGateway:
    """
    Executes prepared statements on one DB-API connection.

    Pass either an open connection or a connect callable. A callable is
    invoked on the first statement, so connection failures surface where
    the statement is executed rather than where the gateway is created.
    The gateway does not own the connection; whoever opened it closes it.
    """

    def __init__(
        self,
        connection: Optional[DatabaseConnection] = None,
        connect: Optional[Callable[[], DatabaseConnection]] = None,
    ) -> None:
        if connection is None and connect is None:
            raise ValueError("Either connection or connect must be provided")
        self._connection = connection
        self._connect = connect

    @property
    def _conn(self) -> DatabaseConnection:
        if self._connection is None:
            self._connection = self._connect()
            logger.debug("Opened gateway connection on first statement")
        return self._connection

    def prepare(self, sql: str) -> Statement:
        return Statement(self, sql)

    def run(self, statement: BoundStatement) -> StatementResult:
        cursor = self._conn.cursor()
        started = time.perf_counter()

        try:
            cursor.execute(statement.sql, statement.params)
            meta = _write_meta(cursor, started)
            self._conn.commit()
            return StatementResult(meta=meta)
        except Exception:
            self._conn.rollback()
            raise
        finally:
            cursor.close()

    def all(self, statement: BoundStatement) -> QueryResult:
        cursor = self._conn.cursor()
        started = time.perf_counter()

        try:
            cursor.execute(statement.sql, statement.params)
            rows = _rows_as_dicts(cursor)
            return QueryResult(
                results=rows,
                meta={"rows_read": len(rows), "duration": _elapsed_ms(started)},
            )
        finally:
            cursor.close()

    def batch(self, statements: Sequence[BoundStatement]) -> list[StatementResult]:
        """
        Execute statements in order and commit once.

        The batch is all-or-nothing: if any statement fails the whole batch
        is rolled back and the driver error is re-raised.
        """
        cursor = self._conn.cursor()
        results: list[StatementResult] = []

        try:
            for statement in statements:
                started = time.perf_counter()
                cursor.execute(statement.sql, statement.params)
                results.append(StatementResult(meta=_write_meta(cursor, started)))
            self._conn.commit()
        except Exception as e:
            logger.error(
                "Batch failed, rolling back",
                extra={"executed": len(results), "total": len(statements), "error": str(e)}
            )
            self._conn.rollback()
            raise
        finally:
            cursor.close()

        logger.debug("Batch committed", extra={"statements": len(results)})
        return results


def first_value(result: QueryResult) -> Optional[Any]:
    """First column of the first row, or None for an empty result."""
    if not result.results:
        return None
    return next(iter(result.results[0].values()))
