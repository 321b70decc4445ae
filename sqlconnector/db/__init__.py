from __future__ import annotations

from ..errors import ConfigError
from .base import SqlDriver
from .connection import ConnectionFactory, ConnectionHandle

__all__ = ["ConnectionFactory", "ConnectionHandle", "SqlDriver", "get_driver"]


def get_driver(name: str = "pyodbc") -> SqlDriver:
    """
    Return the driver for *name*.

    Backends are imported here rather than at module level so that only the
    selected one (and its native libraries) is ever loaded.
    """
    if name == "pyodbc":
        from .pyodbc_client import PyodbcDriver

        return PyodbcDriver()
    if name == "mssql_python":
        from .mssql_client import MssqlDriver

        return MssqlDriver()
    raise ConfigError(f"Unsupported SQL backend: {name}")
