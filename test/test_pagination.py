import pyarrow as pa
import pytest

from tidypyground.compute import PyArrowTableDataSource
from tidypyground.compute.pagination import PaginateNode

TEST_DATA = pa.Table.from_batches(
    [
        pa.record_batch({"day": [1, 2, 3]}),
        pa.record_batch({"day": [4, 5, 6]}),
    ]
)


@pytest.mark.parametrize(
    "offset,length,expected",
    [
        (0, 2, [1, 2]),
        (2, 2, [3, 4]),
        (4, None, [5, 6]),
        (1, 10, [2, 3, 4, 5, 6]),
        (0, 0, []),
    ],
)
def test_paginate_across_batches(offset, length, expected):
    node = PaginateNode(offset, length, PyArrowTableDataSource(TEST_DATA))
    values = [v for batch in node.batches() for v in batch.column("day").to_pylist()]
    assert values == expected


def test_paginate_past_the_end_emits_empty_batch():
    node = PaginateNode(10, 2, PyArrowTableDataSource(TEST_DATA))
    batches = list(node.batches())
    assert len(batches) == 1
    assert batches[0].num_rows == 0
    assert batches[0].column_names == ["day"]


def test_paginate_str():
    node = PaginateNode(1, 2, PyArrowTableDataSource(TEST_DATA))
    assert str(node) == "PaginateNode(1:3, PyArrowTableDataSource(columns=['day'], rows=6))"


@pytest.mark.parametrize("offset,length", [(-1, 2), (0, -2)])
def test_paginate_negative_values(offset, length):
    with pytest.raises(ValueError):
        PaginateNode(offset, length, PyArrowTableDataSource(TEST_DATA))
