# db/base.py
# ─────────────────────────────────────────────────────────────────────────────
# SqlDriver: Abstract contract for the DB-API driver underneath the gateway.
#
# Both concrete backends (pyodbc and mssql_python) implement this interface,
# so the rest of the package only ever depends on SqlDriver.  The shared part
# lives here: turning the gateway's connection string into an ODBC one and
# packing the AAD token into the SQL_COPT_SS_ACCESS_TOKEN attribute.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import logging
import struct
from abc import ABC, abstractmethod
from typing import Any

log = logging.getLogger(__name__)

# ODBC attribute constant for AAD access token injection.
SQL_COPT_SS_ACCESS_TOKEN = 1256

# ADO.NET style keywords -> ODBC Driver 18 keywords.
_ODBC_KEYWORDS = {
    "data source": "Server",
    "initial catalog": "Database",
    "user id": "UID",
    "password": "PWD",
}

_TOKEN_DEFAULTS = (("Encrypt", "yes"), ("TrustServerCertificate", "no"))


def parse_connection_string(connection_string: str) -> list[tuple[str, str]]:
    """Split ``k=v;k=v`` into ordered pairs, honouring ``{...}`` quoted values (``}}`` escapes ``}``)."""
    pairs: list[tuple[str, str]] = []
    key, buf, in_braces = None, [], False
    i = 0
    while i < len(connection_string):
        ch = connection_string[i]
        i += 1
        if in_braces:
            buf.append(ch)
            if ch == "}":
                if connection_string[i:i + 1] == "}":
                    buf.append("}")
                    i += 1
                else:
                    in_braces = False
        elif ch == "{":
            buf.append(ch)
            in_braces = True
        elif ch == "=" and key is None:
            key, buf = "".join(buf).strip(), []
        elif ch == ";":
            if key:
                pairs.append((key, "".join(buf).strip()))
            key, buf = None, []
        else:
            buf.append(ch)
    if key:
        pairs.append((key, "".join(buf).strip()))
    return pairs


class SqlDriver(ABC):
    """
    Base class for DB-API drivers that can open token-authenticated
    connections to SQL Server.

    Subclasses implement :meth:`_connect`; :meth:`connect` prepares the
    connection string and token attributes for them.
    """

    name: str = "abstract"
    # The driver's DB-API Error classes.  Only these are wrapped into
    # stage-tagged gateway errors; anything else propagates as-is.
    errors: tuple[type[BaseException], ...] = ()

    # ─── Helpers (shared) ────────────────────────────────────────────────────

    @staticmethod
    def encode_token(token: str) -> bytes:
        """
        Encode an AAD access token for ODBC Driver 18.

        Format: 4-byte LE length of the UTF-16-LE token + UTF-16-LE token bytes.
        """
        token_bytes = token.encode("utf-16-le")
        return struct.pack("<I", len(token_bytes)) + token_bytes

    def build_connection_string(self, connection_string: str, *, with_token: bool = False) -> str:
        pairs = [
            (_ODBC_KEYWORDS.get(k.lower(), k), v)
            for k, v in parse_connection_string(connection_string)
        ]
        if with_token:
            present = {k.lower() for k, _ in pairs}
            pairs.extend((k, v) for k, v in _TOKEN_DEFAULTS if k.lower() not in present)
        return "".join(f"{k}={v};" for k, v in pairs)

    def connect(self, connection_string: str, access_token: str | None = None) -> Any:
        """Open a DB-API connection in autocommit mode."""
        conn_str = self.build_connection_string(
            connection_string, with_token=access_token is not None
        )
        attrs_before = {}
        if access_token is not None:
            attrs_before[SQL_COPT_SS_ACCESS_TOKEN] = self.encode_token(access_token)
        log.debug("Opening %s connection (token=%s)", self.name, access_token is not None)
        return self._connect(conn_str, attrs_before)

    # ─── Abstract interface ───────────────────────────────────────────────────

    @abstractmethod
    def _connect(self, connection_string: str, attrs_before: dict[int, bytes]) -> Any:
        """Open and return a DB-API connection."""
        ...
