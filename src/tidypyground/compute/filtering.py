"""Row filtering.

Keeping only the rows that satisfy a condition, like the
flights that actually left late, is the first step of
most data preparation pipelines.
"""

from .base import QueryPlanNode
from .expressions import Expression


class FilterNode(QueryPlanNode):
    """Keep the rows for which a predicate holds.

    The predicate is evaluated on each batch and must
    produce a boolean array as long as the batch.
    A missing predicate value means the condition can't
    be decided, those rows are dropped too.

    >>> import pyarrow as pa
    >>> import pyarrow.compute as pc
    >>> from tidypyground.compute import col, lit, FunctionCallExpression, PyArrowTableDataSource
    >>> data = pa.record_batch({"arr_delay": [11, None, -18, 33]})
    >>> predicate = FunctionCallExpression(pc.greater, col("arr_delay"), lit(0))
    >>> next(FilterNode(predicate, PyArrowTableDataSource(data)).batches()).to_pydict()
    {'arr_delay': [11, 33]}
    """

    def __init__(self, expression: Expression, child: QueryPlanNode) -> None:
        """
        :param expression: Predicate returning a boolean for each row.
        :param child: Node providing the rows to filter.
        """
        self.expression = expression
        self.child = child

    def __str__(self) -> str:
        return f"FilterNode(filter={self.expression}, child={self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        # Batches are filtered one at a time, nothing is accumulated.
        for batch in self.child.batches():
            keep = self.expression.apply(batch)
            yield batch.filter(keep, null_selection_behavior="drop")
