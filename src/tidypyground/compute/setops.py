"""Query plan nodes that implement set operations over rows.

Set operations treat each table as a set of rows, where
the identity of a row is the tuple of all its values.
Two missing values are considered equal when comparing rows.

Both tables must have the same columns, with the same types,
otherwise :class:`SchemaMismatchError` is raised.
The columns can be in a different order, in which case the
right table is reordered to match the left one.

The results are always deduplicated, and keep the order
in which rows first appear in the left and then in the right table.

>>> import pyarrow as pa
>>> from tidypyground.compute import PyArrowTableDataSource
>>> days1 = PyArrowTableDataSource(pa.record_batch({"day": [1, 2, 3, 3]}))
>>> days2 = PyArrowTableDataSource(pa.record_batch({"day": [3, 4]}))
>>> next(IntersectNode(days1, days2).batches()).to_pydict()
{'day': [3]}
>>> next(UnionNode(days1, days2).batches()).to_pydict()
{'day': [1, 2, 3, 4]}
>>> next(SetDiffNode(days1, days2).batches()).to_pydict()
{'day': [1, 2]}
>>> setequal(days1, days2)
False
"""

import abc

import pyarrow as pa

from ..utils.logging import get_logger
from .base import QueryPlanNode, collect_batch
from .errors import SchemaMismatchError
from .keys import RowKey, first_occurrences, row_keys, take_rows

log = get_logger("setops")


def aligned_batches(
    left_child: QueryPlanNode, right_child: QueryPlanNode, context: str
) -> tuple[pa.RecordBatch, pa.RecordBatch]:
    """Collect the data of the two nodes with the columns in the same order.

    Verifies that both have the same column names and types.
    """
    left = collect_batch(left_child)
    right = collect_batch(right_child)

    left_names, right_names = left.schema.names, right.schema.names
    if len(set(left_names)) != len(left_names) or set(left_names) != set(right_names):
        raise SchemaMismatchError(
            f"{context}: tables must have the same columns, got {left_names} and {right_names}"
        )
    right = right.select(left_names)

    mismatching = [
        f"{name} ({lfield.type} vs {rfield.type})"
        for name, lfield, rfield in zip(left_names, left.schema, right.schema)
        if not lfield.type.equals(rfield.type)
    ]
    if mismatching:
        raise SchemaMismatchError(
            f"{context}: columns have different types: {', '.join(mismatching)}"
        )
    return left, right


class SetOperationNode(QueryPlanNode):
    """Base class for set operations between two tables."""

    def __init__(self, left_child: QueryPlanNode, right_child: QueryPlanNode) -> None:
        """
        :param left_child: The node emitting the left table.
        :param right_child: The node emitting the right table.
        """
        self.left_child = left_child
        self.right_child = right_child

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(left={self.left_child}, right={self.right_child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        left, right = aligned_batches(self.left_child, self.right_child, str(self))
        names = left.schema.names
        result = self.combine(left, right, row_keys(left, names), row_keys(right, names))
        log.debug(
            "set_operation.completed",
            operation=self.__class__.__name__,
            left_rows=left.num_rows,
            right_rows=right.num_rows,
            rows=result.num_rows,
        )
        yield result

    @abc.abstractmethod
    def combine(
        self,
        left: pa.RecordBatch,
        right: pa.RecordBatch,
        left_keys: list[RowKey],
        right_keys: list[RowKey],
    ) -> pa.RecordBatch:
        """Compute the resulting rows given the data and the rows identities."""
        ...


class IntersectNode(SetOperationNode):
    """Distinct rows present in both tables."""

    def combine(self, left, right, left_keys, right_keys):
        in_right = set(right_keys)
        absent = {key for key in left_keys if key not in in_right}
        return take_rows(left, first_occurrences(left_keys, exclude=absent))


class UnionNode(SetOperationNode):
    """Distinct rows present in either table."""

    def combine(self, left, right, left_keys, right_keys):
        combined = pa.RecordBatch.from_arrays(
            [pa.concat_arrays([lcol, rcol]) for lcol, rcol in zip(left.columns, right.columns)],
            names=left.schema.names,
        )
        return take_rows(combined, first_occurrences(left_keys + right_keys))


class SetDiffNode(SetOperationNode):
    """Distinct rows of the left table that are not present in the right one."""

    def combine(self, left, right, left_keys, right_keys):
        return take_rows(left, first_occurrences(left_keys, exclude=set(right_keys)))


def setequal(left_child: QueryPlanNode, right_child: QueryPlanNode) -> bool:
    """Check if two tables contain the same rows.

    The order of the rows and how many times each row
    is repeated are not taken into account.
    """
    left, right = aligned_batches(left_child, right_child, "setequal")
    names = left.schema.names
    return set(row_keys(left, names)) == set(row_keys(right, names))
