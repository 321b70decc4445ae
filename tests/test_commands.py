from __future__ import annotations

import pytest

from sqlconnector.commands import build_batch, quote_procedure_name
from sqlconnector.models import ParameterDirection, ProcedureCall, ProcedureParameter


@pytest.mark.parametrize(
    "name,expected",
    [
        ("GetOrders", "[GetOrders]"),
        ("dbo.GetOrders", "[dbo].[GetOrders]"),
        ("[dbo].[Get.Orders]", "[dbo].[Get.Orders]"),
        ("sales.[Odd]]Name]", "[sales].[Odd]]Name]"),
        ("master..sp_who", "[master]..[sp_who]"),
        ("srv.db..Proc", "[srv].[db]..[Proc]"),
        ("[a]b", "[a]b"),
        ("   ", "   "),
    ],
)
def test_quote_procedure_name(name: str, expected: str) -> None:
    assert quote_procedure_name(name) == expected


def test_input_parameters_keep_order_and_names() -> None:
    call = ProcedureCall(
        "dbo.GetOrders",
        (ProcedureParameter("@CustomerId", 42), ProcedureParameter("Since", "2024-01-01")),
    )

    batch = build_batch(call)

    assert batch.sql == "EXEC [dbo].[GetOrders] @CustomerId = ?, @Since = ?"
    assert batch.params == (42, "2024-01-01")
    assert batch.outputs == ()


def test_no_parameters() -> None:
    batch = build_batch(ProcedureCall("dbo.Ping"))

    assert batch.sql == "EXEC [dbo].[Ping]"
    assert batch.params == ()


def test_output_and_return_values() -> None:
    call = ProcedureCall(
        "dbo.AddOrder",
        (
            ProcedureParameter("Amount", 9.5),
            ProcedureParameter("OrderId", direction=ParameterDirection.OUTPUT, sql_type="INT"),
            ProcedureParameter("Status", direction=ParameterDirection.RETURN_VALUE),
        ),
    )

    batch = build_batch(call)

    assert batch.sql.splitlines() == [
        "DECLARE @__p1 INT;",
        "DECLARE @__p2 INT;",
        "EXEC @__p2 = [dbo].[AddOrder] @Amount = ?, @OrderId = @__p1 OUTPUT;",
        "SELECT @__p1 AS [OrderId], @__p2 AS [Status];",
    ]
    assert batch.params == (9.5,)
    assert batch.outputs == ("OrderId", "Status")


def test_input_output_value_is_bound_before_arguments() -> None:
    call = ProcedureCall(
        "Counter",
        (
            ProcedureParameter("Name", "orders"),
            ProcedureParameter(
                "@Value", 10, direction=ParameterDirection.INPUT_OUTPUT, sql_type="BIGINT"
            ),
        ),
    )

    batch = build_batch(call)

    assert batch.sql.splitlines()[0] == "DECLARE @__p1 BIGINT = ?;"
    assert "@Value = @__p1 OUTPUT" in batch.sql
    assert batch.params == (10, "orders")
    assert batch.outputs == ("@Value",)
