"""Leaves of the query plan.

Every plan starts from a node that owns some data and hands it
to its parent. Reading files is left to the caller: data reaches
the engine already loaded in memory as Arrow tables or batches.
"""

from abc import abstractmethod

import pyarrow as pa

from .base import QueryPlanNode, empty_batch


class DataSourceNode(QueryPlanNode):
    """A node that has no children and produces data itself."""

    @abstractmethod
    def poll_schema(self) -> pa.Schema:
        """Columns and types the source will emit, without emitting them."""
        ...


class PyArrowTableDataSource(DataSourceNode):
    """Feed an in-memory :class:`pyarrow.Table` or :class:`pyarrow.RecordBatch`.

    A table is emitted one chunk at a time, a record batch as is.
    When a table holds no chunks at all an empty batch is still
    emitted, so parents always get to see the columns.
    """

    def __init__(self, table: pa.Table | pa.RecordBatch) -> None:
        if not isinstance(table, (pa.Table, pa.RecordBatch)):
            raise ValueError(
                f"Invalid input, expected a pyarrow Table or RecordBatch, got {type(table)}"
            )
        self.table = table

    def __str__(self) -> str:
        return f"PyArrowTableDataSource(columns={self.table.column_names}, rows={self.table.num_rows})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        if isinstance(self.table, pa.RecordBatch):
            yield self.table
            return

        chunks = self.table.to_batches()
        if chunks:
            yield from chunks
        else:
            yield empty_batch(self.table.schema)

    def poll_schema(self) -> pa.Schema:
        return self.table.schema
