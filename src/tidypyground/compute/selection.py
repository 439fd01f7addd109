"""Column selection and computed columns, ``select`` and ``mutate``.

Both are handled by :class:`ProjectNode`: new columns are computed
first, then only the requested columns are kept.
"""

import pyarrow as pa

from .base import QueryPlanNode, check_columns
from .expressions import Expression


class ProjectNode(QueryPlanNode):
    """Compute new columns and choose which columns to keep.

    A computed column named like an existing one takes
    its place, any other computed column is appended.

    >>> import pyarrow as pa
    >>> import pyarrow.compute as pc
    >>> from tidypyground.compute import col, lit, FunctionCallExpression, PyArrowTableDataSource
    >>> data = pa.record_batch({"carrier": ["AA", "ZZ"], "name": ["American Airlines Inc.", None]})
    >>> node = ProjectNode(None, {"name": FunctionCallExpression(pc.fill_null, col("name"), lit("Unknown carrier"))},
    ...                    PyArrowTableDataSource(data))
    >>> next(node.batches()).to_pydict()
    {'carrier': ['AA', 'ZZ'], 'name': ['American Airlines Inc.', 'Unknown carrier']}
    """

    def __init__(
        self,
        select: list[str] | None,
        project: dict[str, Expression] | None,
        child: QueryPlanNode,
    ) -> None:
        """
        :param select: Columns to keep, in order. ``None`` keeps them all
                       while ``[]`` keeps only the computed ones.
        :param project: Name of each computed column mapped to its expression.
        :param child: Node providing the rows.
        """
        self.select = select
        self.project = project or {}
        self.child = child

        # Computed columns are always kept, after the selected ones.
        self.output_columns = None
        if self.select is not None:
            self.output_columns = self.select + [
                name for name in self.project if name not in self.select
            ]

    def __str__(self) -> str:
        return f"ProjectNode(select={self.select}, project={self.project}, child={self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Evaluate the expressions batch by batch.

        Expressions run in order, each one sees the
        columns computed by the ones before it.
        """
        for batch in self.child.batches():
            names = list(batch.schema.names)
            arrays = list(batch.columns)
            for name, expr in self.project.items():
                current = pa.RecordBatch.from_arrays(arrays, names=names)
                values = self._as_array(expr.apply(current), current.num_rows)
                if name in names:
                    arrays[names.index(name)] = values
                else:
                    names.append(name)
                    arrays.append(values)
            batch = pa.RecordBatch.from_arrays(arrays, names=names)

            if self.output_columns is not None:
                check_columns(batch, self.output_columns, str(self))
                batch = batch.select(self.output_columns)

            yield batch

    @staticmethod
    def _as_array(value: pa.Array | pa.ChunkedArray | pa.Scalar, length: int) -> pa.Array:
        """Expressions can return scalars or chunked data, columns must be arrays."""
        if isinstance(value, pa.Scalar):
            return pa.repeat(value, length)
        if isinstance(value, pa.ChunkedArray):
            return value.combine_chunks()
        return value
