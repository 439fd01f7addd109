"""Query plan nodes that bind tables together.

Binding is the simplest way to combine tables: stacking
them one on top of the other (binding rows) or placing them
side by side (binding columns). Contrary to joins, the rows
are not aligned by their values, but only by their position.

Bind Rows
=========

The columns of the tables are matched by name, when
a table doesn't have one of the columns, its rows get
missing values for that column:

>>> import pyarrow as pa
>>> from tidypyground.compute import PyArrowTableDataSource
>>> jan = PyArrowTableDataSource(pa.record_batch({"month": [1], "flight": [1545]}))
>>> jan_extra = PyArrowTableDataSource(pa.record_batch({"month": [1], "extra_col": ["extra"]}))
>>> next(BindRowsNode([jan, jan_extra]).batches()).to_pydict()
{'month': [1, 1], 'flight': [1545, None], 'extra_col': [None, 'extra']}

Bind Cols
=========

Tables must have the same number of rows, as there is
no way to know how rows should be aligned otherwise:

>>> dates = PyArrowTableDataSource(pa.record_batch({"month": [1, 1]}))
>>> carriers = PyArrowTableDataSource(pa.record_batch({"carrier": ["UA", "AA"]}))
>>> next(BindColsNode([dates, carriers]).batches()).to_pydict()
{'month': [1, 1], 'carrier': ['UA', 'AA']}
"""

import collections

import pyarrow as pa

from ..config import get_settings
from ..utils.logging import get_logger
from .base import QueryPlanNode, collect_batch
from .errors import DuplicateColumnError, RowCountMismatchError
from .types import common_type, conform

log = get_logger("binding")


class BindRowsNode(QueryPlanNode):
    """Stack the rows of multiple tables.

    The resulting columns are the union of the columns
    of all tables, in the order they are first seen.
    The types of columns with the same name must be compatible
    according to the promotion rules of :mod:`tidypyground.compute.types`,
    for example an integer column stacked on a float column becomes a float column.
    """

    def __init__(self, children: list[QueryPlanNode], id_column: str | None = None) -> None:
        """
        :param children: The nodes emitting the tables to stack, in order.
        :param id_column: If provided, name of a new leading column
                          holding the position of the table each row comes from.
        """
        if not children:
            raise ValueError("At least one table is required to bind rows")
        self.children = list(children)
        self.id_column = id_column

    def __str__(self) -> str:
        return f"BindRowsNode(id_column={self.id_column}, children=[{', '.join(map(str, self.children))}])"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        tables = [collect_batch(child) for child in self.children]

        names: list[str] = []
        for table in tables:
            names.extend(n for n in table.schema.names if n not in names)
        if self.id_column is not None and self.id_column in names:
            raise DuplicateColumnError(f"{self}: column {self.id_column!r} already exists")

        types = {
            name: common_type(
                (t.schema.field(name).type for t in tables if name in t.schema.names),
                context=f"binding rows of column {name!r}",
            )
            for name in names
        }

        columns = []
        for name in names:
            chunks = [
                conform(t.column(name), types[name])
                if name in t.schema.names
                else pa.nulls(t.num_rows, type=types[name])
                for t in tables
            ]
            columns.append(pa.concat_arrays(chunks))

        if self.id_column is not None:
            names.insert(0, self.id_column)
            columns.insert(
                0,
                pa.array(
                    [position for position, t in enumerate(tables) for _ in range(t.num_rows)],
                    type=pa.int64(),
                ),
            )

        result = pa.RecordBatch.from_arrays(columns, names=names)
        log.debug("bind_rows.completed", tables=len(tables), rows=result.num_rows)
        yield result


class BindColsNode(QueryPlanNode):
    """Place multiple tables side by side.

    All tables must have the same number of rows, otherwise
    :class:`RowCountMismatchError` is raised; values are never recycled.

    When two tables have columns with the same name, the
    ``names_repair`` policy decides what happens:

    * ``"unique"`` renames every duplicated column to ``<name>...<position>``
      where position is the 1-based position of the column in the result.
    * ``"error"`` fails with :class:`DuplicateColumnError`.

    When not provided, the policy defaults to the engine settings.
    """

    NAMES_REPAIR = ("unique", "error")

    def __init__(self, children: list[QueryPlanNode], names_repair: str | None = None) -> None:
        """
        :param children: The nodes emitting the tables to place side by side, in order.
        :param names_repair: How to handle duplicate column names.
        """
        if not children:
            raise ValueError("At least one table is required to bind columns")
        if names_repair is not None and names_repair not in self.NAMES_REPAIR:
            raise ValueError(
                f"names_repair must be one of {self.NAMES_REPAIR}, got {names_repair!r}"
            )
        self.children = list(children)
        self.names_repair = names_repair

    def __str__(self) -> str:
        return f"BindColsNode(children=[{', '.join(map(str, self.children))}])"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        tables = [collect_batch(child) for child in self.children]
        row_counts = [t.num_rows for t in tables]
        if len(set(row_counts)) > 1:
            raise RowCountMismatchError(
                f"{self}: can't bind columns of tables with different number of rows {row_counts}"
            )

        names = [n for t in tables for n in t.schema.names]
        arrays = [a for t in tables for a in t.columns]
        duplicated = {n for n, count in collections.Counter(names).items() if count > 1}
        if duplicated:
            names_repair = self.names_repair or get_settings().bind_cols_names_repair
            if names_repair == "error":
                raise DuplicateColumnError(
                    f"{self}: columns {sorted(duplicated)} exist in more than one table"
                )
            repaired = [
                f"{name}...{position}" if name in duplicated else name
                for position, name in enumerate(names, start=1)
            ]
            log.warning(
                "bind_cols.renamed_columns",
                renamed=[
                    f"{old} -> {new}" for old, new in zip(names, repaired) if old != new
                ],
            )
            names = repaired

        yield pa.RecordBatch.from_arrays(arrays, names=names)
