"""Grouped summaries, what ``group_by`` plus ``summarise`` do.

Rows sharing the same values in the grouping columns
collapse to a single row holding one summary value
per requested aggregation. Averaging the delays of
each carrier in each month turns::

    month, carrier, arr_delay
    1, AA, 11
    1, AA, 20
    1, DL, -18
    2, AA, 33

into::

    month, carrier, avg_delay
    1, AA, 15.5
    1, DL, -18.0
    2, AA, 33.0

:class:`tidypyground.compute.PivotWiderNode` relies on the same
aggregations to merge the values that land in the same cell.
"""

import abc
from typing import Any

import pyarrow as pa
import pyarrow.compute as pc

from ..utils.logging import get_logger
from .base import QueryPlanNode, check_columns, empty_batch
from .keys import RowKey, group_rows, restore, row_keys

__all__ = (
    "AggregateNode",
    "Aggregation",
    "CountAggregation",
    "SumAggregation",
    "MinAggregation",
    "MaxAggregation",
    "MeanAggregation",
)

log = get_logger("aggregate")


class AggregateNode(QueryPlanNode):
    """Summarise the rows of each group.

    Groups come out in the order their key is first seen,
    rows with missing keys are grouped together like any other value.
    Without grouping columns there is always exactly one row,
    also when there is no data to summarise.

    >>> import pyarrow as pa
    >>> from tidypyground.compute import MeanAggregation, PyArrowTableDataSource
    >>> data = pa.record_batch({
    ...    'month': pa.array([1, 1, 1, 2]),
    ...    'carrier': pa.array(['AA', 'AA', 'DL', 'AA']),
    ...    'arr_delay': pa.array([11, 20, -18, 33])
    ... })
    >>> aggregate = AggregateNode(["month", "carrier"], {"avg_delay": MeanAggregation("arr_delay")},
    ...                           PyArrowTableDataSource(data))
    >>> next(aggregate.batches()).to_pydict()
    {'month': [1, 1, 2], 'carrier': ['AA', 'DL', 'AA'], 'avg_delay': [15.5, -18.0, 33.0]}
    """

    def __init__(
        self,
        keys: list[str],
        aggregations: dict[str, "Aggregation"],
        child: QueryPlanNode,
    ) -> None:
        """
        :param keys: Grouping columns, with ``[]`` the whole data is one group.
        :param aggregations: Output column name mapped to the aggregation filling it.
        :param child: Node providing the rows to summarise.
        """
        self.keys = keys
        self.aggregations = aggregations
        self.child = child

    def __str__(self) -> str:
        return f"AggregateNode(keys={self.keys}, aggregations={self.aggregations}, {self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Emit one row per group.

        Batches are consumed one by one: only the partial
        results of each group survive between batches::

            partials = {group_key: {output_name: [batch1_partial, batch2_partial, ...]}}

        and they get merged in the final values at the end.
        """
        partials: dict[RowKey, dict[str, list[Any]]] = {}
        schema = None
        for batch in self.child.batches():
            schema = batch.schema
            check_columns(
                batch,
                self.keys + [a.column for a in self.aggregations.values()],
                str(self),
            )
            for group, indices in group_rows(row_keys(batch, self.keys)).items():
                rows = batch.take(pa.array(indices, type=pa.int64()))
                group_partials = partials.setdefault(group, {})
                for output, aggregation in self.aggregations.items():
                    group_partials.setdefault(output, []).append(
                        aggregation.compute_chunk(rows)
                    )

        if schema is None:
            raise ValueError(f"{self.child} emitted no data to aggregate")
        if not self.keys and not partials:
            # Without grouping columns the whole data is one group, even when empty.
            nothing = empty_batch(schema)
            partials[()] = {
                output: [aggregation.compute_chunk(nothing)]
                for output, aggregation in self.aggregations.items()
            }

        result = self.finalize(partials, schema)
        log.debug("aggregate.completed", keys=self.keys, groups=result.num_rows)
        yield result

    def finalize(
        self, partials: dict[RowKey, dict[str, list[Any]]], schema: pa.Schema
    ) -> pa.RecordBatch:
        """Merge the partial results of every group in the output batch.

        Three batches summing delays of January AA flights
        would leave ``{(1, "AA"): {"total_delay": [10, 20, 30]}}``
        which becomes a row with ``total_delay`` equal to 60.
        """
        key_fields = [schema.field(k) for k in self.keys]
        if not partials:
            return empty_batch(
                pa.schema(
                    key_fields
                    + [
                        pa.field(output, aggregation.result_type(schema))
                        for output, aggregation in self.aggregations.items()
                    ]
                )
            )

        key_columns: list[list[Any]] = [[] for _ in self.keys]
        results: dict[str, list[pa.Scalar]] = {k: [] for k in self.aggregations}
        for group, group_partials in partials.items():
            for position, value in enumerate(group):
                key_columns[position].append(restore(value))
            for output, aggregation in self.aggregations.items():
                results[output].append(aggregation.reduce(group_partials[output]))

        arrays = [
            pa.array(values, type=field.type)
            for values, field in zip(key_columns, key_fields)
        ]
        arrays.extend(scalars_to_array(scalars) for scalars in results.values())
        return pa.RecordBatch.from_arrays(
            arrays, names=self.keys + list(self.aggregations)
        )


def scalars_to_array(
    scalars: list[pa.Scalar | None], default_type: pa.DataType = pa.null()
) -> pa.Array:
    """Turn aggregation results into a column.

    ``None`` stands for a cell where nothing was
    aggregated, it becomes a missing value.
    """
    types = [s.type for s in scalars if s is not None]
    arrow_type = types[0] if types else default_type
    return pa.array(
        [s.as_py() if s is not None else None for s in scalars], type=arrow_type
    )


class Aggregation(abc.ABC):
    """Summary of the values of one column.

    Data can arrive in several batches, so an aggregation
    works in two steps: :meth:`compute_chunk` gives a partial
    result for one batch and :meth:`reduce` merges the
    partial results of all batches in the final value.
    """

    def __init__(self, column: str) -> None:
        self.column = column

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.column})"

    __repr__ = __str__

    @abc.abstractmethod
    def compute_chunk(self, batch: pa.RecordBatch) -> Any: ...

    @abc.abstractmethod
    def reduce(self, chunks: list[Any]) -> pa.Scalar: ...

    def result_type(self, schema: pa.Schema) -> pa.DataType:
        """Arrow type of the result when the input has ``schema``."""
        return schema.field(self.column).type

    def compute(self, batch: pa.RecordBatch) -> pa.Scalar:
        """Aggregate a batch that already holds every value."""
        return self.reduce([self.compute_chunk(batch)])


class SimpleAggregation(Aggregation):
    """An aggregation that can be applied to its own partial results.

    The maximum of the maximums of each batch is the maximum
    of the whole data, so the same function serves both steps.
    """

    @abc.abstractmethod
    def _aggregate(self, data: pa.Array) -> pa.Scalar: ...

    def compute_chunk(self, batch: pa.RecordBatch) -> pa.Scalar:
        return self._aggregate(batch.column(self.column))

    def reduce(self, chunks: list[pa.Scalar]) -> pa.Scalar:
        if len(chunks) == 1:
            return chunks[0]
        return self._aggregate(
            pa.array([c.as_py() for c in chunks], type=chunks[0].type)
        )


class SumAggregation(SimpleAggregation):
    """Total of the column, integers sum to int64 and floats to float64."""

    def _aggregate(self, data: pa.Array) -> pa.Scalar:
        return pc.sum(data)

    def result_type(self, schema: pa.Schema) -> pa.DataType:
        return pa.float64() if pa.types.is_floating(super().result_type(schema)) else pa.int64()


class MinAggregation(SimpleAggregation):
    """Smallest value of the column."""

    def _aggregate(self, data: pa.Array) -> pa.Scalar:
        return pc.min(data)


class MaxAggregation(SimpleAggregation):
    """Largest value of the column."""

    def _aggregate(self, data: pa.Array) -> pa.Scalar:
        return pc.max(data)


class CountAggregation(Aggregation):
    """How many values of the column are not missing."""

    def compute_chunk(self, batch: pa.RecordBatch) -> pa.Scalar:
        return pc.count(batch.column(self.column))

    def reduce(self, chunks: list[pa.Scalar]) -> pa.Scalar:
        return pa.scalar(sum(c.as_py() for c in chunks), type=pa.int64())

    def result_type(self, schema: pa.Schema) -> pa.DataType:
        return pa.int64()


class MeanAggregation(Aggregation):
    """Average of the values of the column that are not missing.

    Each batch contributes its count and its sum, the mean
    is the overall sum divided by the overall count.
    A group where every value is missing has a missing mean.
    """

    def compute_chunk(self, batch: pa.RecordBatch) -> tuple[int, Any]:
        column = batch.column(self.column)
        return (pc.count(column).as_py(), pc.sum(column).as_py())

    def reduce(self, chunks: list[tuple[int, Any]]) -> pa.Scalar:
        count = sum(chunk[0] for chunk in chunks)
        total = sum(chunk[1] for chunk in chunks if chunk[1] is not None)
        if count == 0:
            return pa.scalar(None, type=pa.float64())
        return pa.scalar(total / count, type=pa.float64())

    def result_type(self, schema: pa.Schema) -> pa.DataType:
        return pa.float64()
