# executor.py
# ─────────────────────────────────────────────────────────────────────────────
# ProcedureExecutor: runs one stored procedure per call on its own handle.
#
#   fetch_table(proc, params) -> Table        first result table (or empty)
#   fetch_all(proc, params)   -> ResultSet    every result table + outputs
#   execute(proc, params)     -> int          affected rows, -1 if none reported
#
# The handle is released on every exit path.  Driver errors are re-raised as
# ExecutionError tagged "command" (the EXEC itself failed) or "materialize"
# (reading / advancing results failed), chained to the driver exception.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import logging
import time
from typing import Any, Iterable

from .commands import ProcedureBatch, build_batch
from .config import log_extra
from .db.connection import ConnectionFactory, ConnectionHandle
from .errors import ExecutionError
from .models import ProcedureCall, ProcedureParameter, ResultSet, Table

log = logging.getLogger(__name__)

NO_ROWS_REPORTED = -1


class ProcedureExecutor:
    def __init__(self, factory: ConnectionFactory):
        self._factory = factory

    # ─── Public API ──────────────────────────────────────────────────────────

    def fetch_table(
        self, procedure: str, parameters: Iterable[ProcedureParameter] | None = None
    ) -> Table:
        return self.fetch_all(procedure, parameters).first()

    def fetch_all(
        self, procedure: str, parameters: Iterable[ProcedureParameter] | None = None
    ) -> ResultSet:
        if not procedure:
            return ResultSet()

        call = ProcedureCall(procedure, tuple(parameters or ()))
        batch = build_batch(call)
        started = time.perf_counter()

        with self._factory.open() as handle:
            cursor = handle.cursor()
            self._run(handle, cursor, call, batch)
            tables = self._read_tables(handle, cursor, call)

        result = ResultSet(tables=tables)
        if batch.outputs:
            result.output_values = self._lift_outputs(tables, batch, call)

        log.info(
            "Procedure %s returned %d table(s)",
            call.name,
            len(result.tables),
            extra=log_extra(
                procedure=call.name,
                tables=len(result.tables),
                elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
            ),
        )
        return result

    def execute(
        self, procedure: str, parameters: Iterable[ProcedureParameter] | None = None
    ) -> int:
        if not procedure:
            return NO_ROWS_REPORTED

        call = ProcedureCall(procedure, tuple(parameters or ()))
        batch = build_batch(call)
        started = time.perf_counter()

        with self._factory.open() as handle:
            handle.open()
            cursor = handle.cursor()
            self._run(handle, cursor, call, batch)
            affected = self._drain_rowcounts(handle, cursor, call)

        log.info(
            "Procedure %s affected %d row(s)",
            call.name,
            affected,
            extra=log_extra(
                procedure=call.name,
                rowcount=affected,
                elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
            ),
        )
        return affected

    # ─── Helpers ─────────────────────────────────────────────────────────────

    def _run(self, handle: ConnectionHandle, cursor: Any, call: ProcedureCall, batch: ProcedureBatch) -> None:
        log.debug("Executing %s with %d parameter(s)", call.name, len(call.parameters))
        try:
            cursor.execute(batch.sql, batch.params)
        except handle.driver.errors as exc:
            raise self._failure(call, "command", exc) from exc

    def _read_tables(self, handle: ConnectionHandle, cursor: Any, call: ProcedureCall) -> list[Table]:
        """Read every result that has columns; count-only results are skipped."""
        tables: list[Table] = []
        try:
            while True:
                if cursor.description is not None:
                    tables.append(Table.from_cursor(cursor.description, cursor.fetchall()))
                if not cursor.nextset():
                    break
        except handle.driver.errors as exc:
            raise self._failure(call, "materialize", exc) from exc
        return tables

    def _drain_rowcounts(self, handle: ConnectionHandle, cursor: Any, call: ProcedureCall) -> int:
        """Sum the counts of every DML result, reading past any row results."""
        affected = NO_ROWS_REPORTED
        try:
            while True:
                if cursor.description is None:
                    if cursor.rowcount is not None and cursor.rowcount >= 0:
                        affected = max(affected, 0) + cursor.rowcount
                else:
                    cursor.fetchall()
                if not cursor.nextset():
                    break
        except handle.driver.errors as exc:
            raise self._failure(call, "materialize", exc) from exc
        return affected

    @staticmethod
    def _lift_outputs(tables: list[Table], batch: ProcedureBatch, call: ProcedureCall) -> dict[str, Any]:
        if not tables:
            raise ExecutionError(
                "Output parameter values were not returned", procedure=call.name, stage="materialize"
            )
        values = tables.pop()
        if len(values) != 1 or len(values.columns) != len(batch.outputs):
            raise ExecutionError(
                "Unexpected shape for output parameter values", procedure=call.name, stage="materialize"
            )
        return dict(zip(batch.outputs, values[0].values_tuple()))

    @staticmethod
    def _failure(call: ProcedureCall, stage: str, exc: BaseException) -> ExecutionError:
        log.warning(
            "Procedure %s failed during %s: %s",
            call.name,
            stage,
            exc,
            extra=log_extra(procedure=call.name),
        )
        return ExecutionError(str(exc), procedure=call.name, stage=stage)
