import pyarrow as pa
import pyarrow.compute as pc

from tidypyground.compute import FunctionCallExpression, PyArrowTableDataSource, col, lit
from tidypyground.compute.filtering import FilterNode

TEST_DATA = pa.Table.from_batches(
    [
        pa.record_batch({"carrier": ["UA", "AA"], "arr_delay": [11, None]}),
        pa.record_batch({"carrier": ["AA", "DL"], "arr_delay": [-18, 33]}),
    ]
)


def test_filter_each_batch():
    predicate = FunctionCallExpression(pc.greater, col("arr_delay"), lit(0))
    node = FilterNode(predicate, PyArrowTableDataSource(TEST_DATA))

    batches = list(node.batches())
    assert len(batches) == 2
    assert pa.Table.from_batches(batches).to_pydict() == {
        "carrier": ["UA", "DL"],
        "arr_delay": [11, 33],
    }


def test_filter_str():
    predicate = FunctionCallExpression(pc.equal, col("carrier"), lit("AA"))
    node = FilterNode(predicate, PyArrowTableDataSource(TEST_DATA))
    assert str(node) == (
        "FilterNode(filter=pyarrow.compute.equal(ColumnRef(carrier),Literal(<pyarrow.StringScalar: 'AA'>)), "
        "child=PyArrowTableDataSource(columns=['carrier', 'arr_delay'], rows=4))"
    )
