import functools

import pytest
import pyarrow as pa
import pyarrow.compute as pc
from tidypyground.compute import ColumnNotFoundError
from tidypyground.compute.expressions import FunctionCallExpression
from tidypyground.compute.base import ColumnRef, Literal


@pytest.fixture
def flights_batch():
    return pa.record_batch(
        {
            "dep_delay": [2, 4, -1, 30, None],
            "carrier": ["UA", "AA", "B6", "DL", "UA"],
        }
    )


def test_function_call_keeps_its_arguments():
    expr = FunctionCallExpression(pc.add, ColumnRef("dep_delay"), 1)
    assert expr.func is pc.add
    assert len(expr.args) == 2
    assert isinstance(expr.args[0], ColumnRef)
    assert expr.args[1] == 1


def test_function_call_str():
    expr = FunctionCallExpression(pc.add, ColumnRef("dep_delay"), 1)
    assert str(expr) == "pyarrow.compute.add(ColumnRef(dep_delay),1)"


def test_function_call_str_of_partial():
    expr = FunctionCallExpression(
        functools.partial(pc.split_pattern, pattern=" "), ColumnRef("carrier")
    )
    assert str(expr) == "pyarrow.compute.split_pattern(ColumnRef(carrier))"


def test_function_call_on_column(flights_batch):
    expr = FunctionCallExpression(pc.multiply, ColumnRef("dep_delay"), 60)
    assert expr.apply(flights_batch).to_pylist() == [120, 240, -60, 1800, None]


def test_nested_function_calls(flights_batch):
    late = FunctionCallExpression(pc.greater, ColumnRef("dep_delay"), Literal(3))
    expr = FunctionCallExpression(pc.if_else, late, ColumnRef("carrier"), "on time")
    assert expr.apply(flights_batch).to_pylist() == ["on time", "AA", "on time", "DL", None]


def test_fill_missing_values(flights_batch):
    expr = FunctionCallExpression(pc.fill_null, ColumnRef("dep_delay"), Literal(0))
    assert expr.apply(flights_batch).to_pylist() == [2, 4, -1, 30, 0]


def test_unknown_column(flights_batch):
    expr = FunctionCallExpression(pc.add, ColumnRef("arr_delay"), 1)
    with pytest.raises(ColumnNotFoundError, match="arr_delay"):
        expr.apply(flights_batch)
    # Callers not aware of the engine errors can still catch a KeyError.
    with pytest.raises(KeyError):
        expr.apply(flights_batch)


def test_function_errors_propagate(flights_batch):
    expr = FunctionCallExpression(pc.add, ColumnRef("carrier"), 1)
    with pytest.raises(pa.ArrowNotImplementedError):
        expr.apply(flights_batch)


def test_literal():
    literal = Literal(2013)
    assert literal.apply(None) == pa.scalar(2013)
    assert str(literal) == "Literal(<pyarrow.Int64Scalar: 2013>)"
    assert Literal(1, type=pa.int8()).value.type == pa.int8()
