# db/pyodbc_client.py
# ─────────────────────────────────────────────────────────────────────────────
# PyodbcDriver: SQL backend using `pyodbc` (the default).
#
# pyodbc supports AAD access tokens via the SQL_COPT_SS_ACCESS_TOKEN connection
# attribute, packed by SqlDriver.encode_token.  The ODBC driver must be
# installed on the host; it is added to the connection string when missing.
#
# Switch backends with SQL_BACKEND – no other file needs to change.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

from typing import Any

import pyodbc

from .base import SqlDriver

# ODBC 18 driver string – must be installed in the container.
_DRIVER = "{ODBC Driver 18 for SQL Server}"


class PyodbcDriver(SqlDriver):
    """SQL driver backed by :mod:`pyodbc`."""

    name = "pyodbc"
    errors = (pyodbc.Error,)

    def __init__(self, odbc_driver: str = _DRIVER):
        self.odbc_driver = odbc_driver

    def build_connection_string(self, connection_string: str, *, with_token: bool = False) -> str:
        conn_str = super().build_connection_string(connection_string, with_token=with_token)
        if "driver=" in conn_str.lower():
            return conn_str
        return f"DRIVER={self.odbc_driver};{conn_str}"

    def _connect(self, connection_string: str, attrs_before: dict[int, bytes]) -> Any:
        kwargs: dict[str, Any] = {"autocommit": True}
        if attrs_before:
            kwargs["attrs_before"] = attrs_before
        return pyodbc.connect(connection_string, **kwargs)
