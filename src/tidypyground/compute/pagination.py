"""Row ranges, what ``slice`` and ``head`` do on a Dataframe."""

from .base import QueryPlanNode


class PaginateNode(QueryPlanNode):
    """Keep ``length`` rows starting at row ``offset``.

    Rows are counted from 0 across all the batches of the child,
    with ``offset=1, length=1`` only the second row survives.
    A ``length`` of ``None`` keeps everything after ``offset``.

    >>> import pyarrow as pa
    >>> from tidypyground.compute import PyArrowTableDataSource
    >>> data = pa.record_batch({"day": [1, 2, 3, 4, 5]})
    >>> [b.to_pydict() for b in PaginateNode(1, 2, PyArrowTableDataSource(data)).batches()]
    [{'day': [2, 3]}]
    """

    def __init__(self, offset: int, length: int | None, child: QueryPlanNode) -> None:
        """
        :param offset: Position of the first row to keep.
        :param length: How many rows to keep, ``None`` for all of them.
        :param child: Node providing the rows.
        """
        if offset < 0 or (length is not None and length < 0):
            raise ValueError("offset and length must not be negative")
        self.offset = offset
        self.length = length
        self.child = child

    def __str__(self) -> str:
        end = "" if self.length is None else self.offset + self.length
        return f"PaginateNode({self.offset}:{end}, {self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Emit the rows in range.

        The child stops being consumed as soon as enough rows
        were emitted. When no row is in range an empty batch
        is emitted, parents still need the columns.
        """
        seen = 0
        remaining = self.length
        emitted = False
        last_batch = None

        child_batches = self.child.batches()
        for batch in child_batches:
            last_batch = batch
            if seen + batch.num_rows <= self.offset:
                seen += batch.num_rows
                continue

            start = max(0, self.offset - seen)
            count = batch.num_rows - start
            if remaining is not None:
                count = min(count, remaining)
                remaining -= count
            yield batch.slice(start, count)
            emitted = True
            seen += batch.num_rows

            if remaining == 0:
                child_batches.close()
                break

        if not emitted and last_batch is not None:
            yield last_batch.slice(0, 0)
