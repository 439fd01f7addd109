import pyarrow as pa
import pytest

from tidypyground.compute import (
    BindColsNode,
    BindRowsNode,
    DuplicateColumnError,
    PyArrowTableDataSource,
    RowCountMismatchError,
    TypeMismatchError,
)

FLIGHTS_DATA = pa.record_batch(
    {
        "month": pa.array([1, 1, 1, 2, 2]),
        "carrier": pa.array(["UA", "AA", "DL", "UA", "B6"]),
        "flight": pa.array([1545, 1141, 461, 1696, 507]),
    }
)


def test_bind_rows_gives_back_the_split_data():
    head = PyArrowTableDataSource(FLIGHTS_DATA.slice(0, 2))
    tail = PyArrowTableDataSource(FLIGHTS_DATA.slice(2))
    result = next(BindRowsNode([head, tail]).batches())
    assert result.equals(FLIGHTS_DATA)


def test_bind_rows_fills_missing_columns():
    jan = PyArrowTableDataSource(pa.record_batch({"month": [1], "flight": [1545]}))
    extra = PyArrowTableDataSource(pa.record_batch({"extra_col": ["extra"], "month": [1]}))
    result = next(BindRowsNode([jan, extra]).batches())
    assert result.to_pydict() == {
        "month": [1, 1],
        "flight": [1545, None],
        "extra_col": [None, "extra"],
    }


def test_bind_rows_promotes_types():
    ints = PyArrowTableDataSource(pa.record_batch({"delay": pa.array([1], type=pa.int32())}))
    floats = PyArrowTableDataSource(pa.record_batch({"delay": pa.array([2.5])}))
    nulls = PyArrowTableDataSource(pa.record_batch({"delay": pa.array([None])}))
    result = next(BindRowsNode([ints, floats, nulls]).batches())
    assert result.schema.field("delay").type == pa.float64()
    assert result.column("delay").to_pylist() == [1.0, 2.5, None]


def test_bind_rows_incompatible_types():
    strings = PyArrowTableDataSource(pa.record_batch({"flight": ["1545"]}))
    ints = PyArrowTableDataSource(pa.record_batch({"flight": [1545]}))
    with pytest.raises(TypeMismatchError, match="flight"):
        next(BindRowsNode([strings, ints]).batches())


def test_bind_rows_id_column():
    head = PyArrowTableDataSource(FLIGHTS_DATA.slice(0, 2))
    tail = PyArrowTableDataSource(FLIGHTS_DATA.slice(2))
    result = next(BindRowsNode([head, tail], id_column="source").batches())
    assert result.column_names == ["source", "month", "carrier", "flight"]
    assert result.column("source").to_pylist() == [0, 0, 1, 1, 1]


def test_bind_rows_id_column_exists():
    source = PyArrowTableDataSource(FLIGHTS_DATA)
    with pytest.raises(DuplicateColumnError):
        next(BindRowsNode([source], id_column="month").batches())


def test_bind_rows_requires_tables():
    with pytest.raises(ValueError):
        BindRowsNode([])


def test_bind_rows_empty_tables():
    empty = PyArrowTableDataSource(FLIGHTS_DATA.slice(0, 0))
    result = next(BindRowsNode([empty, empty]).batches())
    assert result.num_rows == 0
    assert result.schema == FLIGHTS_DATA.schema


def test_bind_cols():
    dates = PyArrowTableDataSource(FLIGHTS_DATA.select(["month"]))
    rest = PyArrowTableDataSource(FLIGHTS_DATA.select(["carrier", "flight"]))
    result = next(BindColsNode([dates, rest]).batches())
    assert result.equals(FLIGHTS_DATA)


def test_bind_cols_different_row_counts():
    five = PyArrowTableDataSource(FLIGHTS_DATA.select(["month"]))
    three = PyArrowTableDataSource(FLIGHTS_DATA.slice(0, 3).select(["carrier"]))
    with pytest.raises(RowCountMismatchError, match=r"\[5, 3\]"):
        next(BindColsNode([five, three]).batches())


def test_bind_cols_repairs_names():
    left = PyArrowTableDataSource(FLIGHTS_DATA.select(["month", "carrier"]))
    right = PyArrowTableDataSource(FLIGHTS_DATA.select(["month"]))
    result = next(BindColsNode([left, right]).batches())
    assert result.column_names == ["month...1", "carrier", "month...3"]


def test_bind_cols_duplicate_names_error():
    left = PyArrowTableDataSource(FLIGHTS_DATA.select(["month", "carrier"]))
    right = PyArrowTableDataSource(FLIGHTS_DATA.select(["month"]))
    with pytest.raises(DuplicateColumnError, match="month"):
        next(BindColsNode([left, right], names_repair="error").batches())


def test_bind_cols_names_repair_from_settings(engine_env):
    engine_env(bind_cols_names_repair="error")
    source = PyArrowTableDataSource(FLIGHTS_DATA)
    with pytest.raises(DuplicateColumnError):
        next(BindColsNode([source, source]).batches())


def test_bind_cols_invalid_names_repair():
    with pytest.raises(ValueError):
        BindColsNode([PyArrowTableDataSource(FLIGHTS_DATA)], names_repair="minimal")


def test_bind_rows_nanosecond_timestamps():
    time_hour = pa.array([1_000_000_001, 1_000_000_002], type=pa.timestamp("ns"))
    weather = PyArrowTableDataSource(pa.record_batch({"time_hour": time_hour, "temp": [39.02, 39.92]}))
    extra = PyArrowTableDataSource(pa.record_batch({"temp": [40.1]}))
    result = next(BindRowsNode([weather, extra]).batches())
    assert result.schema.field("time_hour").type == pa.timestamp("ns")
    assert result.column("time_hour").cast(pa.int64()).to_pylist() == [1_000_000_001, 1_000_000_002, None]
