from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import MagicMock

from sqlconnector.db.base import SqlDriver


class FakeDriverError(Exception):
    """Stands in for a DB-API driver's Error class."""


class FakeCursor:
    """
    Scripted DB-API cursor.  Each result is a dict with optional
    ``columns``, ``rows`` and ``rowcount`` keys; ``execute_error`` and
    ``nextset_error`` make the corresponding call raise.
    """

    def __init__(self, results=None, execute_error=None, nextset_error=None):
        self.results = list(results or [])
        self.execute_error = execute_error
        self.nextset_error = nextset_error
        self.executed: list[tuple[str, tuple]] = []
        self._pos = 0

    def execute(self, sql: str, params: tuple = ()) -> "FakeCursor":
        self.executed.append((sql, tuple(params)))
        if self.execute_error is not None:
            raise self.execute_error
        self._pos = 0
        return self

    def _current(self) -> dict[str, Any]:
        if self._pos < len(self.results):
            return self.results[self._pos]
        return {}

    @property
    def description(self):
        columns = self._current().get("columns")
        if columns is None:
            return None
        return [(name, None, None, None, None, None, None) for name in columns]

    @property
    def rowcount(self) -> int:
        return self._current().get("rowcount", -1)

    def fetchall(self) -> list[tuple]:
        return list(self._current().get("rows", []))

    def nextset(self) -> bool:
        if self.nextset_error is not None:
            raise self.nextset_error
        self._pos += 1
        return self._pos < len(self.results)


class FakeDriver(SqlDriver):
    name = "fake"
    errors = (FakeDriverError,)

    def __init__(self, cursor: FakeCursor | None = None, connect_error: Exception | None = None):
        self.cursor = cursor or FakeCursor()
        self.connect_error = connect_error
        self.connect_calls: list[tuple[str, dict]] = []
        self.connections: list[MagicMock] = []

    def _connect(self, connection_string: str, attrs_before: dict[int, bytes]) -> Any:
        self.connect_calls.append((connection_string, attrs_before))
        if self.connect_error is not None:
            raise self.connect_error
        conn = MagicMock(name="connection")
        conn.cursor.return_value = self.cursor
        self.connections.append(conn)
        return conn


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)
