# commands.py
# ─────────────────────────────────────────────────────────────────────────────
# Turns a ProcedureCall into a parameterised T-SQL EXEC batch.
#
#   EXEC [dbo].[GetOrders] @CustomerId = ?, @Since = ?
#
# Output-style parameters need a declared variable to land in, and their
# values come back as one trailing SELECT:
#
#   DECLARE @__p1 INT;
#   DECLARE @__p2 INT;
#   EXEC @__p2 = [dbo].[AddOrder] @Amount = ?, @OrderId = @__p1 OUTPUT;
#   SELECT @__p1 AS [OrderId], @__p2 AS [ReturnValue];
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from .models import ParameterDirection, ProcedureCall

_BRACKETED_RE = re.compile(r"^\[(?:[^\]]|\]\])*\]$")


def split_name_parts(name: str) -> list[str]:
    """Split on dots outside brackets; empty parts (``db..proc``) are kept."""
    parts: list[str] = []
    buf: list[str] = []
    in_brackets = False
    i = 0
    while i < len(name):
        ch = name[i]
        if in_brackets:
            buf.append(ch)
            if ch == "]":
                if name[i + 1:i + 2] == "]":
                    buf.append("]")
                    i += 1
                else:
                    in_brackets = False
        elif ch == "[":
            buf.append(ch)
            in_brackets = True
        elif ch == ".":
            parts.append("".join(buf))
            buf = []
        else:
            buf.append(ch)
        i += 1
    parts.append("".join(buf))
    return parts


def quote_procedure_name(name: str) -> str:
    """
    Bracket-quote each plain part of a (possibly qualified) name.

    Already-bracketed parts and empty parts are kept as written.  Anything
    that is neither a plain identifier nor a well-formed bracketed one is
    passed through untouched so the server reports it.
    """
    quoted = []
    for part in split_name_parts(name):
        stripped = part.strip()
        if not stripped or "[" in stripped or "]" in stripped:
            quoted.append(stripped if _BRACKETED_RE.match(stripped) else part)
        else:
            quoted.append(f"[{stripped}]")
    return ".".join(quoted)


@dataclass(frozen=True)
class ProcedureBatch:
    sql: str
    params: tuple[Any, ...]
    # Parameter names, in the column order of the trailing output SELECT.
    outputs: tuple[str, ...] = ()


def build_batch(call: ProcedureCall) -> ProcedureBatch:
    declares: list[str] = []
    arguments: list[str] = []
    selects: list[str] = []
    declare_params: list[Any] = []
    arg_params: list[Any] = []
    return_var: str | None = None

    for i, param in enumerate(call.parameters):
        direction = param.direction
        if direction is ParameterDirection.INPUT:
            arguments.append(f"{param.bind_name} = ?")
            arg_params.append(param.value)
            continue

        var = f"@__p{i}"
        if direction is ParameterDirection.INPUT_OUTPUT:
            declares.append(f"DECLARE {var} {param.sql_type} = ?;")
            declare_params.append(param.value)
        else:
            declares.append(f"DECLARE {var} {param.sql_type};")

        if direction is ParameterDirection.RETURN_VALUE:
            return_var = var
        else:
            arguments.append(f"{param.bind_name} = {var} OUTPUT")

        alias = param.name.lstrip("@").replace("]", "]]")
        selects.append(f"{var} AS [{alias}]")

    target = quote_procedure_name(call.name)
    exec_stmt = f"EXEC {return_var} = {target}" if return_var else f"EXEC {target}"
    if arguments:
        exec_stmt += " " + ", ".join(arguments)

    outputs = tuple(p.name for p in call.outputs)
    if not outputs:
        return ProcedureBatch(sql=exec_stmt, params=tuple(arg_params))

    lines = declares + [exec_stmt + ";", "SELECT " + ", ".join(selects) + ";"]
    return ProcedureBatch(
        sql="\n".join(lines),
        params=tuple(declare_params + arg_params),
        outputs=outputs,
    )
