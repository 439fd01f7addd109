"""Ordering of rows, what ``arrange`` does on a Dataframe."""

import pyarrow.compute as pc

from .base import QueryPlanNode, check_columns, collect_batch


class SortNode(QueryPlanNode):
    """Reorder all rows by one or more columns.

    ``keys[0]`` decides the order, the following keys only
    break ties of the previous ones. Each key has its own
    direction, and missing values go last whatever
    the direction is.

    >>> import pyarrow as pa
    >>> from tidypyground.compute import PyArrowTableDataSource
    >>> data = pa.record_batch({"avg_delay": [1.5, None, 9.25, -3.0]})
    >>> worst_first = SortNode(["avg_delay"], [True], PyArrowTableDataSource(data))
    >>> next(worst_first.batches()).to_pydict()
    {'avg_delay': [9.25, 1.5, -3.0, None]}
    """

    def __init__(
        self, keys: list[str], descending: list[bool], child: QueryPlanNode
    ) -> None:
        """
        :param keys: Columns to order by, most significant first.
        :param descending: One flag per key, ``True`` for a descending order.
        :param child: Node providing the rows to order.
        """
        if len(keys) != len(descending):
            raise ValueError(
                f"Got {len(keys)} sort keys but {len(descending)} directions"
            )

        self.sorting = [
            (key, "descending" if desc else "ascending")
            for key, desc in zip(keys, descending)
        ]
        self.child = child

    def __str__(self) -> str:
        return f"SortNode(sorting={self.sorting}, {self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Emit a single batch with every row of the child in order.

        Ordering needs to see all the rows, so the whole
        child output is gathered in memory first.
        """
        batch = collect_batch(self.child)
        check_columns(batch, [key for key, _ in self.sorting], str(self))
        order = pc.sort_indices(batch, sort_keys=self.sorting, null_placement="at_end")
        yield batch.take(order)
