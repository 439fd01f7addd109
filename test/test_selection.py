import pyarrow as pa
import pyarrow.compute as pc
import pytest

from tidypyground.compute import (
    ColumnNotFoundError,
    FunctionCallExpression,
    PyArrowTableDataSource,
    col,
    lit,
)
from tidypyground.compute.selection import ProjectNode


@pytest.fixture
def mock_data():
    """Create a mock PyArrow Table for testing."""
    data = {
        "dep_delay": [2, 4, None],
        "arr_delay": [11, 20, 33],
        "carrier": ["UA", "AA", None],
    }
    return pa.table(data)


def test_init_and_str(mock_data):
    expressions = {"gain": FunctionCallExpression(pc.subtract, col("arr_delay"), col("dep_delay"))}
    project_node = ProjectNode(
        ["dep_delay", "arr_delay"], expressions, PyArrowTableDataSource(mock_data)
    )
    assert str(project_node) == (
        "ProjectNode(select=['dep_delay', 'arr_delay'], "
        "project={'gain': pyarrow.compute.subtract(ColumnRef(arr_delay),ColumnRef(dep_delay))}, "
        "child=PyArrowTableDataSource(columns=['dep_delay', 'arr_delay', 'carrier'], rows=3))"
    )


def test_select_columns(mock_data):
    project_node = ProjectNode(["carrier", "arr_delay"], {}, PyArrowTableDataSource(mock_data))
    batches = list(project_node.batches())
    assert len(batches) == 1
    batch = batches[0]
    assert batch.column_names == ["carrier", "arr_delay"]
    assert batch.column(0).to_pylist() == ["UA", "AA", None]


def test_project_columns(mock_data):
    expressions = {"gain": FunctionCallExpression(pc.subtract, col("arr_delay"), col("dep_delay"))}
    project_node = ProjectNode(["carrier"], expressions, PyArrowTableDataSource(mock_data))
    batch = next(project_node.batches())
    assert batch.column_names == ["carrier", "gain"]
    assert batch.column(1).to_pylist() == [9, 16, None]


def test_multiple_project_columns(mock_data):
    """Projections can refer to the columns projected before them."""
    expressions = {
        "gain": FunctionCallExpression(pc.subtract, col("arr_delay"), col("dep_delay")),
        "double_gain": FunctionCallExpression(pc.multiply, col("gain"), lit(2)),
    }
    project_node = ProjectNode([], expressions, PyArrowTableDataSource(mock_data))
    batch = next(project_node.batches())
    assert batch.column_names == ["gain", "double_gain"]
    assert batch.column(1).to_pylist() == [18, 32, None]


def test_project_replaces_existing_column(mock_data):
    expressions = {
        "carrier": FunctionCallExpression(pc.fill_null, col("carrier"), lit("Unknown carrier"))
    }
    project_node = ProjectNode(None, expressions, PyArrowTableDataSource(mock_data))
    batch = next(project_node.batches())
    assert batch.column_names == ["dep_delay", "arr_delay", "carrier"]
    assert batch.column("carrier").to_pylist() == ["UA", "AA", "Unknown carrier"]


def test_project_literal_is_broadcast(mock_data):
    project_node = ProjectNode(None, {"year": lit(2013)}, PyArrowTableDataSource(mock_data))
    batch = next(project_node.batches())
    assert batch.column("year").to_pylist() == [2013, 2013, 2013]


def test_project_with_no_columns(mock_data):
    project_node = ProjectNode([], {}, PyArrowTableDataSource(mock_data))
    batch = next(project_node.batches())
    assert batch.num_columns == 0


def test_select_missing_column(mock_data):
    project_node = ProjectNode(["origin"], {}, PyArrowTableDataSource(mock_data))
    with pytest.raises(ColumnNotFoundError, match="origin"):
        next(project_node.batches())
