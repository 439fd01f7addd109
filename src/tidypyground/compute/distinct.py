"""Query plan nodes that remove duplicated rows.

Two rows are duplicates when they have the same value
in every considered column, missing values being equal
to each other. The first occurrence of each row is kept.
"""

from ..utils.logging import get_logger
from .base import QueryPlanNode, check_columns, collect_batch
from .keys import first_occurrences, row_keys, take_rows

log = get_logger("distinct")


class DistinctNode(QueryPlanNode):
    """Keep only distinct rows.

    When ``columns`` is provided only those columns are
    considered and emitted, like ``distinct(carrier)``
    returns the unique carriers of a table.

    >>> import pyarrow as pa
    >>> from tidypyground.compute import PyArrowTableDataSource
    >>> data = pa.record_batch({"carrier": ["ZZ", "XX", "ZZ"], "flight": [1, 2, 3]})
    >>> next(DistinctNode(PyArrowTableDataSource(data), ["carrier"]).batches()).to_pydict()
    {'carrier': ['ZZ', 'XX']}
    """

    def __init__(self, child: QueryPlanNode, columns: list[str] | None = None) -> None:
        """
        :param child: The node emitting the data to deduplicate.
        :param columns: The columns to consider, ``None`` means all of them.
        """
        self.child = child
        self.columns = columns

    def __str__(self) -> str:
        return f"DistinctNode(columns={self.columns}, {self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        batch = collect_batch(self.child)
        if self.columns is not None:
            check_columns(batch, self.columns, str(self))
            batch = batch.select(self.columns)

        indices = first_occurrences(row_keys(batch, batch.schema.names))
        log.debug("distinct.completed", rows_in=batch.num_rows, rows_out=len(indices))
        yield take_rows(batch, indices)
