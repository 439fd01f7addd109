"""Building blocks of query plans.

A plan is a tree of :class:`QueryPlanNode` and the values
its nodes compute are described by :class:`Expression` objects.
This module also hosts the helpers most nodes share.
"""

import abc
from typing import Any, Iterator

import pyarrow as pa

from .errors import ColumnNotFoundError


class QueryPlanNode(abc.ABC):
    """A step of a query plan.

    Nodes take their input from the nodes below them,
    their children, and the root of the tree produces
    the final result. Reshaping some flights data
    would look like::

        PyArrowTableDataSource(flights) -> PivotWiderNode(names_from, values_from)

    Most nodes have a single child, joins and set
    operations have two, binds accept any number of them.

    Data flows through the plan as :class:`pyarrow.RecordBatch`
    objects. Batches are immutable: a node builds new batches
    instead of changing the ones it got, so a child can be
    shared by multiple parents without surprises.

    Subclasses provide :meth:`batches` and ``__str__``,
    a node that counts the rows going through would be::

        class CountingNode(QueryPlanNode):
            def __init__(self, child):
                self.child = child
                self.rows = 0

            def batches(self):
                for batch in self.child.batches():
                    self.rows += batch.num_rows
                    yield batch

            def __str__(self):
                return f"CountingNode({self.child})"
    """

    RecordBatchesGenerator = Iterator[pa.RecordBatch]

    @abc.abstractmethod
    def batches(self) -> RecordBatchesGenerator:
        """Produce the output of the node, one batch at a time.

        Nothing is computed until the generator is consumed,
        consuming it again runs the whole subtree again.
        """
        ...

    @abc.abstractmethod
    def __str__(self) -> str:
        """Describe the node and its subtree."""
        ...


def collect_batch(node: QueryPlanNode) -> pa.RecordBatch:
    """Consume all the batches of a node into a single RecordBatch.

    Reshaping, joining and binding need all rows in memory,
    so the nodes implementing them start by accumulating
    the data emitted by their children.
    """
    batches = list(node.batches())
    if len(batches) == 1:
        return batches[0]
    if not batches:
        raise ValueError(f"{node} emitted no data, unable to detect its schema")

    table = pa.Table.from_batches(batches).combine_chunks()
    combined = table.to_batches()
    if not combined:
        return empty_batch(table.schema)
    return combined[0]


def empty_batch(schema: pa.Schema) -> pa.RecordBatch:
    """Build a RecordBatch with no rows for the given schema."""
    return pa.record_batch(
        [pa.array([], type=field.type) for field in schema], schema=schema
    )


def check_columns(batch: pa.RecordBatch, names: list[str], context: str) -> None:
    """Ensure that all the named columns exist in the batch."""
    missing = [name for name in names if name not in batch.schema.names]
    if missing:
        raise ColumnNotFoundError(
            f"{context}: columns {missing} not found, available columns are {batch.schema.names}"
        )


class Expression(abc.ABC):
    """A computation evaluated against a RecordBatch.

    The engine works by columns, so evaluating an expression
    gives back a whole column, a :class:`pyarrow.Array`
    with one value per row, or a :class:`pyarrow.Scalar`
    that compute functions broadcast to every row.
    """

    @abc.abstractmethod
    def apply(self, batch: pa.RecordBatch) -> pa.Array | pa.Scalar:
        """Evaluate the expression on ``batch``.

        An expression computing the delay in hours could be::

            class HoursExpression(Expression):
                def __init__(self, minutes_column):
                    self.minutes_column = minutes_column

                def apply(self, batch):
                    return pyarrow.compute.divide(batch[self.minutes_column], 60.0)
        """
        ...

    @abc.abstractmethod
    def __str__(self) -> str:
        """Describe the expression."""
        ...


class ColumnRef(Expression):
    """The values of a column of the batch, looked up by name.

    Fails with :class:`ColumnNotFoundError` when the
    batch has no column with that name.
    """

    def __init__(self, name: str) -> None:
        self.name = name

    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        check_columns(batch, [self.name], str(self))
        return batch.column(self.name)

    def __str__(self) -> str:
        return f"ColumnRef({self.name})"


class Literal(Expression):
    """A constant value.

    Applying a literal returns a :class:`pyarrow.Scalar`,
    compute functions broadcast scalars against arrays
    so that ``col("a") + lit(1)`` adds one to every row.
    """

    def __init__(self, value: Any, type: pa.DataType | None = None) -> None:
        """
        :param value: The python value of the literal.
        :param type: The arrow type of the literal, inferred when not provided.
        """
        self.value = pa.scalar(value, type=type)

    def apply(self, batch: pa.RecordBatch) -> pa.Scalar:
        return self.value

    def __str__(self) -> str:
        return f"Literal({self.value!r})"


col = ColumnRef
lit = Literal
