# models.py
# ─────────────────────────────────────────────────────────────────────────────
# Value types shared by the auth, db and executor layers.
#
#   AccessToken        – token string + UTC expiry, replaced wholesale
#   ProcedureParameter – one named, directed stored-procedure argument
#   ProcedureCall      – procedure name + ordered parameters
#   Row / Table / ResultSet – driver-independent tabular results
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterator

import pandas as pd

_PARAM_NAME_RE = re.compile(r"^@?[A-Za-z_][A-Za-z0-9_@$#]*$")
_SQL_TYPE_RE = re.compile(
    r"^[A-Za-z][A-Za-z0-9_ ]*(\(\s*(\d+|max)\s*(,\s*\d+\s*)?\))?$",
    re.IGNORECASE,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ─── Auth ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AccessToken:
    value: str = field(repr=False)
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


# ─── Procedure calls ─────────────────────────────────────────────────────────

class ParameterDirection(str, Enum):
    INPUT = "input"
    OUTPUT = "output"
    INPUT_OUTPUT = "input_output"
    RETURN_VALUE = "return_value"


@dataclass(frozen=True)
class ProcedureParameter:
    """
    A single stored-procedure argument.

    ``sql_type`` is only needed for non-input directions, where the batch has
    to DECLARE a variable to receive the value.  Value types are never checked
    here; the driver reports mismatches.
    """

    name: str
    value: Any = None
    direction: ParameterDirection = ParameterDirection.INPUT
    sql_type: str | None = None

    def __post_init__(self) -> None:
        if not _PARAM_NAME_RE.match(self.name or ""):
            raise ValueError(f"Invalid parameter name: {self.name!r}")
        direction = ParameterDirection(self.direction)
        object.__setattr__(self, "direction", direction)

        sql_type = self.sql_type
        if direction is ParameterDirection.RETURN_VALUE and sql_type is None:
            sql_type = "INT"
        if direction is not ParameterDirection.INPUT:
            if not sql_type:
                raise ValueError(f"Parameter {self.name} needs a sql_type for {direction.value}")
            if not _SQL_TYPE_RE.match(sql_type):
                raise ValueError(f"Invalid sql_type for {self.name}: {sql_type!r}")
        object.__setattr__(self, "sql_type", sql_type)

    @property
    def bind_name(self) -> str:
        return self.name if self.name.startswith("@") else f"@{self.name}"

    @property
    def is_output(self) -> bool:
        return self.direction is not ParameterDirection.INPUT


@dataclass(frozen=True)
class ProcedureCall:
    name: str
    parameters: tuple[ProcedureParameter, ...] = ()

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Procedure name must not be empty")
        object.__setattr__(self, "parameters", tuple(self.parameters))
        returns = [p for p in self.parameters if p.direction is ParameterDirection.RETURN_VALUE]
        if len(returns) > 1:
            raise ValueError("At most one RETURN_VALUE parameter is allowed")

    @property
    def outputs(self) -> tuple[ProcedureParameter, ...]:
        return tuple(p for p in self.parameters if p.is_output)


# ─── Results ─────────────────────────────────────────────────────────────────

def normalize_columns(names: Sequence[str | None]) -> tuple[str, ...]:
    """
    Apply DataTable column naming: blank names become Column1, Column2, ...
    and repeated names get a numeric suffix (id, id1, id2).
    """
    seen: set[str] = set()
    out: list[str] = []
    blank = 0
    for raw in names:
        if raw:
            candidate, base, n = raw, raw, 0
        else:
            blank += 1
            candidate, base, n = f"Column{blank}", "Column", blank
        while candidate.lower() in seen:
            n += 1
            candidate = f"{base}{n}"
        seen.add(candidate.lower())
        out.append(candidate)
    return tuple(out)


class Row(Mapping):
    """Read-only mapping of column name to value for a single result row."""

    __slots__ = ("_columns", "_values", "_index")

    def __init__(self, columns: tuple[str, ...], values: Sequence[Any], index: dict[str, int] | None = None):
        if len(values) != len(columns):
            raise ValueError(f"Row has {len(values)} values for {len(columns)} columns")
        self._columns = columns
        self._values = tuple(values)
        self._index = index if index is not None else {c: i for i, c in enumerate(columns)}

    def __getitem__(self, key: str) -> Any:
        return self._values[self._index[key]]

    def __iter__(self) -> Iterator[str]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def values_tuple(self) -> tuple[Any, ...]:
        return self._values

    def __repr__(self) -> str:
        return f"Row({dict(zip(self._columns, self._values))!r})"


class Table(Sequence):
    """An ordered list of rows that all share one column tuple."""

    def __init__(self, columns: Sequence[str], rows: Sequence[Sequence[Any]] = ()):
        self.columns: tuple[str, ...] = tuple(columns)
        index = {c: i for i, c in enumerate(self.columns)}
        self.rows: list[Row] = [Row(self.columns, r, index) for r in rows]

    @classmethod
    def empty(cls) -> "Table":
        return cls(())

    @classmethod
    def from_cursor(cls, description: Sequence[Sequence[Any]], records: Sequence[Sequence[Any]]) -> "Table":
        return cls(normalize_columns([col[0] for col in description]), records)

    def __getitem__(self, index):
        return self.rows[index]

    def __len__(self) -> int:
        return len(self.rows)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Table):
            return NotImplemented
        return self.columns == other.columns and [r.values_tuple() for r in self.rows] == [
            r.values_tuple() for r in other.rows
        ]

    def __repr__(self) -> str:
        return f"Table(columns={self.columns!r}, rows={len(self.rows)})"

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame.from_records(
            [r.values_tuple() for r in self.rows], columns=list(self.columns)
        )


@dataclass
class ResultSet(Sequence):
    """Every table a procedure returned, plus any OUTPUT / return values."""

    tables: list[Table] = field(default_factory=list)
    output_values: dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, index):
        return self.tables[index]

    def __len__(self) -> int:
        return len(self.tables)

    def first(self) -> Table:
        return self.tables[0] if self.tables else Table.empty()
