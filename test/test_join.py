import pyarrow as pa
import pytest

from tidypyground.compute import (
    AntiJoinNode,
    DuplicateColumnError,
    FullJoinNode,
    InnerJoinNode,
    JoinNode,
    LeftJoinNode,
    MissingJoinKeyError,
    PyArrowTableDataSource,
    RightJoinNode,
    SemiJoinNode,
    TypeMismatchError,
)

FLIGHTS_DATA = pa.record_batch(
    {
        "carrier": pa.array(["AA", "ZZ"]),
        "flight": pa.array([1141, 725]),
    }
)

AIRLINES_DATA = pa.record_batch(
    {
        "carrier": pa.array(["AA", "DL"]),
        "name": pa.array(["American Airlines Inc.", "Delta Air Lines Inc."]),
    }
)


@pytest.fixture
def flights():
    return PyArrowTableDataSource(FLIGHTS_DATA)


@pytest.fixture
def airlines():
    return PyArrowTableDataSource(AIRLINES_DATA)


@pytest.mark.parametrize(
    "join_class,expected_output",
    [
        (
            InnerJoinNode,
            {
                "carrier": ["AA"],
                "flight": [1141],
                "name": ["American Airlines Inc."],
            },
        ),
        (
            LeftJoinNode,
            {
                "carrier": ["AA", "ZZ"],
                "flight": [1141, 725],
                "name": ["American Airlines Inc.", None],
            },
        ),
        (
            RightJoinNode,
            {
                "carrier": ["AA", "DL"],
                "flight": [1141, None],
                "name": ["American Airlines Inc.", "Delta Air Lines Inc."],
            },
        ),
        (
            FullJoinNode,
            {
                "carrier": ["AA", "ZZ", "DL"],
                "flight": [1141, 725, None],
                "name": ["American Airlines Inc.", None, "Delta Air Lines Inc."],
            },
        ),
    ],
)
def test_mutating_joins(flights, airlines, join_class, expected_output):
    join_node = join_class(flights, airlines, keys=["carrier"])
    result_batches = list(join_node.batches())

    assert len(result_batches) == 1
    assert result_batches[0].to_pydict() == expected_output


def test_natural_join(flights, airlines):
    join_node = JoinNode("left", flights, airlines)
    assert next(join_node.batches()).column_names == ["carrier", "flight", "name"]


def test_join_keys_with_different_names(flights):
    codes = PyArrowTableDataSource(
        pa.record_batch({"code": ["AA", "DL"], "name": ["American", "Delta"]})
    )
    join_node = LeftJoinNode(flights, codes, keys={"carrier": "code"})
    assert next(join_node.batches()).to_pydict() == {
        "carrier": ["AA", "ZZ"],
        "flight": [1141, 725],
        "name": ["American", None],
    }


def test_join_key_as_string(flights, airlines):
    join_node = InnerJoinNode(flights, airlines, keys="carrier")
    assert next(join_node.batches()).num_rows == 1


def test_join_missing_key(flights, airlines):
    join_node = LeftJoinNode(flights, airlines, keys=["flight"])
    with pytest.raises(MissingJoinKeyError, match="right table"):
        next(join_node.batches())


def test_join_no_common_columns(flights):
    other = PyArrowTableDataSource(pa.record_batch({"code": ["AA"]}))
    with pytest.raises(MissingJoinKeyError, match="no common columns"):
        next(LeftJoinNode(flights, other).batches())


def test_join_incompatible_key_types(flights):
    other = PyArrowTableDataSource(pa.record_batch({"carrier": [1], "seats": [100]}))
    with pytest.raises(TypeMismatchError):
        next(InnerJoinNode(flights, other, keys=["carrier"]).batches())


def test_join_promotes_key_types():
    left = PyArrowTableDataSource(pa.record_batch({"id": pa.array([1, 2], type=pa.int32()), "a": [1, 2]}))
    right = PyArrowTableDataSource(pa.record_batch({"id": pa.array([2, 3], type=pa.int64()), "b": [5, 6]}))
    result = next(FullJoinNode(left, right, keys=["id"]).batches())
    assert result.schema.field("id").type == pa.int64()
    assert result.to_pydict() == {"id": [1, 2, 3], "a": [1, 2, None], "b": [None, 5, 6]}


def test_join_colliding_columns():
    planes = PyArrowTableDataSource(pa.record_batch({"tailnum": ["N14228"], "year": [1999]}))
    flights = PyArrowTableDataSource(pa.record_batch({"tailnum": ["N14228"], "year": [2013]}))
    result = next(LeftJoinNode(flights, planes, keys=["tailnum"]).batches())
    assert result.to_pydict() == {"tailnum": ["N14228"], "year_x": [2013], "year_y": [1999]}

    result = next(
        LeftJoinNode(flights, planes, keys=["tailnum"], suffixes=("", "_plane")).batches()
    )
    assert result.column_names == ["tailnum", "year", "year_plane"]


def test_join_suffixes_from_settings(engine_env):
    engine_env(join_suffixes='[".flight", ".plane"]')
    planes = PyArrowTableDataSource(pa.record_batch({"tailnum": ["N14228"], "year": [1999]}))
    flights = PyArrowTableDataSource(pa.record_batch({"tailnum": ["N14228"], "year": [2013]}))
    result = next(InnerJoinNode(flights, planes, keys=["tailnum"]).batches())
    assert result.column_names == ["tailnum", "year.flight", "year.plane"]


def test_join_multiple_matches():
    left = PyArrowTableDataSource(pa.record_batch({"key": ["a", "a"], "x": [1, 2]}))
    right = PyArrowTableDataSource(pa.record_batch({"key": ["a", "a"], "y": [3, 4]}))
    result = next(InnerJoinNode(left, right, keys=["key"]).batches())
    assert result.to_pydict() == {
        "key": ["a", "a", "a", "a"],
        "x": [1, 1, 2, 2],
        "y": [3, 4, 3, 4],
    }


def test_join_missing_keys_never_match():
    left = PyArrowTableDataSource(pa.record_batch({"key": [None, "a"], "x": [1, 2]}))
    right = PyArrowTableDataSource(pa.record_batch({"key": [None, "a"], "y": [3, 4]}))

    inner = next(InnerJoinNode(left, right, keys=["key"]).batches())
    assert inner.to_pydict() == {"key": ["a"], "x": [2], "y": [4]}

    full = next(FullJoinNode(left, right, keys=["key"]).batches())
    assert full.to_pydict() == {
        "key": [None, "a", None],
        "x": [1, 2, None],
        "y": [None, 4, 3],
    }


def test_join_invalid_how(flights, airlines):
    with pytest.raises(ValueError):
        JoinNode("outer", flights, airlines)


def test_join_str(flights, airlines):
    assert str(LeftJoinNode(flights, airlines, keys="carrier")) == (
        "JoinNode(how=left, keys=['carrier'], "
        "left=PyArrowTableDataSource(columns=['carrier', 'flight'], rows=2), "
        "right=PyArrowTableDataSource(columns=['carrier', 'name'], rows=2))"
    )


def test_semi_join():
    flights = PyArrowTableDataSource(pa.record_batch({"carrier": ["AA", "ZZ", "AA"], "flight": [1, 2, 3]}))
    airlines = PyArrowTableDataSource(pa.record_batch({"carrier": ["AA", "AA"], "name": ["a", "b"]}))
    result = next(SemiJoinNode(flights, airlines, keys=["carrier"]).batches())
    assert result.to_pydict() == {"carrier": ["AA", "AA"], "flight": [1, 3]}


def test_anti_join(flights, airlines):
    result = next(AntiJoinNode(flights, airlines).batches())
    assert result.to_pydict() == {"carrier": ["ZZ"], "flight": [725]}


def test_semi_and_anti_join_partition_the_rows():
    flights = PyArrowTableDataSource(
        pa.record_batch({"carrier": ["AA", "ZZ", None, "DL", "AA"]})
    )
    airlines = PyArrowTableDataSource(pa.record_batch({"carrier": ["AA", "DL", None]}))
    semi = next(SemiJoinNode(flights, airlines).batches())
    anti = next(AntiJoinNode(flights, airlines).batches())

    assert semi.column("carrier").to_pylist() == ["AA", "DL", "AA"]
    assert anti.column("carrier").to_pylist() == ["ZZ", None]
    assert semi.num_rows + anti.num_rows == 5


def test_filtering_join_str(flights, airlines):
    assert str(SemiJoinNode(flights, airlines, keys=["carrier"])).startswith(
        "SemiJoinNode(keys=['carrier'], left="
    )


DEPARTURES = pa.array([1_000_000_001, 1_000_000_002], type=pa.timestamp("ns"))


def test_join_on_nanosecond_timestamps():
    flights = PyArrowTableDataSource(
        pa.record_batch({"time_hour": DEPARTURES, "flight": pa.array([1545, 1714])})
    )
    weather = PyArrowTableDataSource(
        pa.record_batch({"time_hour": DEPARTURES.slice(1), "temp": pa.array([39.02])})
    )
    result = next(LeftJoinNode(flights, weather, keys="time_hour").batches())
    assert result.schema.field("time_hour").type == pa.timestamp("ns")
    assert result.column("time_hour").equals(DEPARTURES)
    assert result.column("temp").to_pylist() == [None, 39.02]

    semi = next(SemiJoinNode(flights, weather).batches())
    assert semi.column("flight").to_pylist() == [1714]


def test_join_suffixes_clashing_with_existing_columns():
    left = PyArrowTableDataSource(pa.record_batch({"k": [1], "v": [1], "v_x": [2]}))
    right = PyArrowTableDataSource(pa.record_batch({"k": [1], "v": [3]}))
    with pytest.raises(DuplicateColumnError, match="v_x"):
        next(InnerJoinNode(left, right, keys="k").batches())

    result = next(InnerJoinNode(left, right, keys="k", suffixes=(".l", ".r")).batches())
    assert result.column_names == ["k", "v.l", "v_x", "v.r"]


@pytest.mark.parametrize(
    "carriers,all_match",
    [
        (["AA", "DL", "AA"], True),
        (["AA", "ZZ", None], False),
    ],
)
def test_left_join_keeps_at_least_the_inner_join_rows(airlines, carriers, all_match):
    flights = PyArrowTableDataSource(
        pa.record_batch({"carrier": pa.array(carriers, type=pa.string()), "flight": [1, 2, 3]})
    )
    inner = next(InnerJoinNode(flights, airlines, keys="carrier").batches())
    left = next(LeftJoinNode(flights, airlines, keys="carrier").batches())
    assert left.num_rows >= inner.num_rows
    assert (left.num_rows == inner.num_rows) == all_match
