# db/mssql_client.py
# ─────────────────────────────────────────────────────────────────────────────
# MssqlDriver: SQL backend using the `mssql_python` package.
#
# mssql_python bundles its own ODBC driver, so no DRIVER keyword is added.
# AAD tokens are injected through the same SQL_COPT_SS_ACCESS_TOKEN (1256)
# attribute as the pyodbc backend.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

from typing import Any

import mssql_python

from .base import SqlDriver


class MssqlDriver(SqlDriver):
    """SQL driver backed by :mod:`mssql_python`."""

    name = "mssql_python"
    errors = (mssql_python.Error,)

    def _connect(self, connection_string: str, attrs_before: dict[int, bytes]) -> Any:
        return mssql_python.connect(
            connection_string,
            autocommit=True,
            attrs_before=attrs_before or None,
        )
