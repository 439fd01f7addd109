"""Query plan nodes that reshape data.

The same information can be laid out in a table in different ways.
Average delays by month and carrier can be stored in a *long* table,
where each row is a month-carrier pair::

    month | carrier | avg_delay
    ----- | ------- | ---------
    1     | AA      | 1.10
    1     | DL      | -3.50
    2     | AA      | 4.80

or in a *wide* table, with one row per month and one column per carrier::

    month | AA   | DL
    ----- | ---- | -----
    1     | 1.10 | -3.50
    2     | 4.80 | NA

:class:`PivotWiderNode` moves from the long to the wide format,
:class:`PivotLongerNode` does the opposite. Pivoting a table wider and
then longer gives back the original values, apart from the order of rows
and the cells that were introduced as missing by the wide format.

The other reshaping nodes work on the values of the columns:
:class:`SeparateNode` splits a column in multiple columns by a separator,
while :class:`UniteNode` glues multiple columns together into one.

Pivot Wider
===========

>>> import pyarrow as pa
>>> from tidypyground.compute import PyArrowTableDataSource
>>> data = pa.record_batch({
...     "month": [1, 1, 2],
...     "carrier": ["AA", "DL", "AA"],
...     "avg_delay": [1.1, -3.5, 4.8],
... })
>>> wide = PivotWiderNode(["carrier"], ["avg_delay"], PyArrowTableDataSource(data))
>>> next(wide.batches()).to_pydict()
{'month': [1, 2], 'AA': [1.1, 4.8], 'DL': [-3.5, None]}

Pivot Longer
============

>>> longer = PivotLongerNode(AllExcept("month"), wide, names_to="carrier", values_to="avg_delay")
>>> next(longer.batches()).to_pydict()
{'month': [1, 1, 2, 2], 'carrier': ['AA', 'DL', 'AA', 'DL'], 'avg_delay': [1.1, -3.5, 4.8, None]}
"""

from typing import Any, Callable

import pyarrow as pa
import pyarrow.compute as pc

from ..config import get_settings
from ..utils.logging import get_logger
from .aggregate import Aggregation, scalars_to_array
from .base import QueryPlanNode, check_columns, collect_batch
from .errors import (
    ColumnNotFoundError,
    DuplicateColumnError,
    DuplicateKeyError,
    SeparateArityError,
)
from .keys import RowKey, group_rows, row_keys, take_rows
from .types import as_text, common_type, conform

log = get_logger("reshape")

MISSING_LABEL = "NA"


def _as_list(names: str | list[str]) -> list[str]:
    if isinstance(names, str):
        return [names]
    return list(names)


class AllExcept:
    """Select all the columns except the provided ones.

    Used to select the columns to pivot when it's
    easier to name the columns that must stay as they are::

        PivotLongerNode(AllExcept("month"), child)
    """

    def __init__(self, *names: str) -> None:
        self.names = list(names)

    def resolve(self, available: list[str]) -> list[str]:
        """The names of the selected columns, in their original order."""
        unknown = [n for n in self.names if n not in available]
        if unknown:
            raise ColumnNotFoundError(
                f"{self}: columns {unknown} not found, available columns are {available}"
            )
        return [n for n in available if n not in self.names]

    def __str__(self) -> str:
        return f"AllExcept({', '.join(self.names)})"

    __repr__ = __str__


all_except = AllExcept


class PivotWiderNode(QueryPlanNode):
    """Widen data, turning the values of columns into new columns.

    Rows are grouped by the *id columns*, by default all the columns
    that are not part of ``names_from`` or ``values_from``.
    Each group becomes one row of the result, and for each distinct
    value of the ``names_from`` columns a new column is created,
    holding the ``values_from`` value of the group for that name.

    Suppose we have::

        month | carrier | avg_delay
        ----- | ------- | ---------
        1     | AA      | 1.10
        1     | DL      | -3.50
        2     | AA      | 4.80

    Pivoting with ``names_from=["carrier"]`` and ``values_from=["avg_delay"]``
    would perform the following steps:

    1. Group the rows by the id columns, in order of appearance::

        (1,) -> rows [0, 1]
        (2,) -> rows [2]

    2. Find the distinct names, in order of appearance::

        ("AA",), ("DL",)

    3. For every group and name find the row holding the value
       of the cell, a missing row means a missing cell::

        (1,), AA -> row 0      (1,), DL -> row 1
        (2,), AA -> row 2      (2,), DL -> none

    4. Take the values of the cells to build each new column::

        month | AA   | DL
        ----- | ---- | -----
        1     | 1.10 | -3.50
        2     | 4.80 | NA

    If a cell is identified by more than one row the value is ambiguous,
    and :class:`DuplicateKeyError` is raised, unless a ``values_fn``
    aggregation is provided to reduce the values to a single one.

    The name of the new columns is the value of the ``names_from``
    columns (joined by ``names_sep`` when there are more ``names_from`` columns).
    When multiple ``values_from`` columns are provided, the name
    is prefixed by the values column: ``avg_delay_AA``.
    """

    def __init__(
        self,
        names_from: str | list[str],
        values_from: str | list[str],
        child: QueryPlanNode,
        id_cols: list[str] | None = None,
        values_fn: Callable[[str], Aggregation] | None = None,
        values_fill: Any = None,
        names_sep: str | None = None,
    ) -> None:
        """
        :param names_from: The columns whose values become the new column names.
        :param values_from: The columns providing the values of the new columns.
        :param child: The node emitting the data to pivot.
        :param id_cols: The columns identifying each row of the result,
                        by default all the other columns.
        :param values_fn: An :class:`Aggregation` class, like ``SumAggregation``,
                          used to reduce cells that have multiple values.
        :param values_fill: Value for the cells that have no value at all.
        :param names_sep: Separator used to build the new column names.
        """
        self.names_from = _as_list(names_from)
        self.values_from = _as_list(values_from)
        if not self.names_from or not self.values_from:
            raise ValueError("names_from and values_from must name at least one column")
        overlap = set(self.names_from) & set(self.values_from)
        if overlap:
            raise ValueError(f"Columns {sorted(overlap)} are both in names_from and values_from")
        self.child = child
        self.id_cols = id_cols
        self.values_fn = values_fn
        self.values_fill = values_fill
        self.names_sep = names_sep

    def __str__(self) -> str:
        return (
            f"PivotWiderNode(names_from={self.names_from}, values_from={self.values_from}, "
            f"id_cols={self.id_cols}, values_fn={self.values_fn and self.values_fn.__name__}, {self.child})"
        )

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        batch = collect_batch(self.child)
        check_columns(
            batch, self.names_from + self.values_from + (self.id_cols or []), str(self)
        )
        names_sep = self.names_sep if self.names_sep is not None else get_settings().names_sep
        pivoted = set(self.names_from) | set(self.values_from)
        if self.id_cols is None:
            id_cols = [n for n in batch.schema.names if n not in pivoted]
        else:
            id_cols = list(self.id_cols)

        id_groups = group_rows(row_keys(batch, id_cols))
        name_keys = row_keys(batch, self.names_from)
        first_row_of: dict[RowKey, int] = {}
        for row, name in enumerate(name_keys):
            first_row_of.setdefault(name, row)
        distinct_names = list(first_row_of)

        cells: dict[tuple[int, RowKey], list[int]] = {}
        for group_position, rows in enumerate(id_groups.values()):
            for row in rows:
                cells.setdefault((group_position, name_keys[row]), []).append(row)

        name_texts = [as_text(batch.column(n)).to_pylist() for n in self.names_from]
        labels = {
            name: names_sep.join(
                MISSING_LABEL if texts[row] is None else texts[row] for texts in name_texts
            )
            for name, row in first_row_of.items()
        }
        if self.values_fn is None:
            group_keys = list(id_groups)
            for (group_position, name), rows in cells.items():
                if len(rows) > 1:
                    raise DuplicateKeyError(
                        f"Values are not uniquely identified: {dict(zip(id_cols, group_keys[group_position]))} "
                        f"has {len(rows)} values for {labels[name]!r}, provide values_fn to aggregate them"
                    )

        first_rows = [rows[0] for rows in id_groups.values()]
        names: list[str] = []
        arrays: list[pa.Array] = []
        if id_cols:
            id_part = take_rows(batch.select(id_cols), first_rows)
            names.extend(id_cols)
            arrays.extend(id_part.columns)

        for value_column in self.values_from:
            for name in distinct_names:
                column_name = labels[name]
                if len(self.values_from) > 1:
                    column_name = f"{value_column}{names_sep}{column_name}"
                if column_name in names:
                    raise DuplicateColumnError(
                        f"{self}: pivoting would create a duplicate column {column_name!r}"
                    )
                cell_rows = [
                    cells.get((group_position, name))
                    for group_position in range(len(first_rows))
                ]
                names.append(column_name)
                arrays.append(self._cell_values(batch, value_column, cell_rows))

        log.debug(
            "pivot_wider.completed",
            rows_in=batch.num_rows,
            rows_out=len(first_rows),
            new_columns=len(names) - len(id_cols),
        )
        yield pa.RecordBatch.from_arrays(arrays, names=names)

    def _cell_values(
        self, batch: pa.RecordBatch, value_column: str, cell_rows: list[list[int] | None]
    ) -> pa.Array:
        """Build the values of a new column from the rows of each cell."""
        column = batch.column(value_column)
        if self.values_fn is None:
            indices = [rows[0] if rows else None for rows in cell_rows]
            values = column.take(pa.array(indices, type=pa.int64()))
        else:
            aggregation = self.values_fn(value_column)
            scalars = [
                aggregation.compute(take_rows(batch, rows)) if rows else None
                for rows in cell_rows
            ]
            values = scalars_to_array(
                scalars, default_type=aggregation.result_type(batch.schema)
            )

        if self.values_fill is not None:
            if pa.types.is_null(values.type):
                fill = pa.scalar(self.values_fill)
                values = values.cast(fill.type)
            else:
                fill = pa.scalar(self.values_fill, type=values.type)
            absent = pa.array([rows is None for rows in cell_rows], type=pa.bool_())
            values = pc.if_else(absent, fill, values)
        return values


class PivotLongerNode(QueryPlanNode):
    """Lengthen data, collapsing columns into name-value pairs.

    Each selected column is collapsed in two columns:
    ``names_to``, holding the name of the column, and ``values_to``,
    holding its value. The non selected columns are repeated
    for each of the selected columns::

        month | AA   | DL                month | carrier | avg_delay
        ----- | ---- | -----             ----- | ------- | ---------
        1     | 1.10 | -3.50     ->      1     | AA      | 1.10
        2     | 4.80 | NA                1     | DL      | -3.50
                                         2     | AA      | 4.80
                                         2     | DL      | NA

    The number of resulting rows is the number of input rows
    multiplied by the number of selected columns, unless
    ``values_drop_na`` is set, in which case the rows with missing
    values are dropped.

    As all the selected columns end up in the same ``values_to`` column,
    their types must be compatible according to the promotion rules
    of :mod:`tidypyground.compute.types`.
    """

    def __init__(
        self,
        cols: list[str] | AllExcept,
        child: QueryPlanNode,
        names_to: str = "name",
        values_to: str = "value",
        values_drop_na: bool = False,
    ) -> None:
        """
        :param cols: The columns to collapse, either a list of names or
                     an :class:`AllExcept` selector.
        :param child: The node emitting the data to pivot.
        :param names_to: Name of the new column holding the collapsed column names.
        :param values_to: Name of the new column holding the collapsed values.
        :param values_drop_na: Drop the resulting rows with a missing value.
        """
        if names_to == values_to:
            raise DuplicateColumnError(
                f"names_to and values_to must be different, both are {names_to!r}"
            )
        self.cols = cols if isinstance(cols, AllExcept) else _as_list(cols)
        self.child = child
        self.names_to = names_to
        self.values_to = values_to
        self.values_drop_na = values_drop_na

    def __str__(self) -> str:
        return (
            f"PivotLongerNode(cols={self.cols}, names_to={self.names_to}, "
            f"values_to={self.values_to}, {self.child})"
        )

    def _selected(self, available: list[str]) -> list[str]:
        if isinstance(self.cols, AllExcept):
            selected = self.cols.resolve(available)
        else:
            unknown = [n for n in self.cols if n not in available]
            if unknown:
                raise ColumnNotFoundError(
                    f"{self}: columns {unknown} not found, available columns are {available}"
                )
            selected = self.cols
        if not selected:
            raise ColumnNotFoundError(f"{self}: no columns selected to pivot")
        return selected

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        batch = collect_batch(self.child)
        available = batch.schema.names
        selected = self._selected(available)
        kept = [n for n in available if n not in selected]
        for target in (self.names_to, self.values_to):
            if target in kept:
                raise DuplicateColumnError(
                    f"{self}: column {target!r} already exists in the data"
                )

        value_type = common_type(
            (batch.schema.field(n).type for n in selected),
            context=f"pivot_longer of columns {selected}",
        )

        # Row i of the input generates rows i*k ... i*k+k-1 of the output,
        # one for each selected column j. Stacking the selected columns
        # one after the other, the value for (i, j) is at j*n + i.
        num_rows, num_selected = batch.num_rows, len(selected)
        repeat_indices = [i for i in range(num_rows) for _ in range(num_selected)]
        value_indices = [
            j * num_rows + i for i in range(num_rows) for j in range(num_selected)
        ]

        arrays: list[pa.Array] = []
        if kept:
            arrays.extend(take_rows(batch.select(kept), repeat_indices).columns)
        arrays.append(pa.array(selected * num_rows, type=pa.string()))
        stacked = pa.concat_arrays([conform(batch.column(n), value_type) for n in selected])
        arrays.append(stacked.take(pa.array(value_indices, type=pa.int64())))

        result = pa.RecordBatch.from_arrays(
            arrays, names=kept + [self.names_to, self.values_to]
        )
        if self.values_drop_na:
            result = result.filter(pc.is_valid(result.column(self.values_to)))

        log.debug(
            "pivot_longer.completed",
            rows_in=num_rows,
            rows_out=result.num_rows,
            collapsed_columns=num_selected,
        )
        yield result


class SeparateNode(QueryPlanNode):
    """Split a column into multiple columns.

    Each value of ``column`` is rendered as text and split
    on every occurrence of ``sep``, the resulting parts
    become the values of the ``into`` columns, which
    take the place of the original column::

        time_hour_char           date       | time
        -------------------  ->  ---------- | --------
        2013-01-01 05:00:00      2013-01-01 | 05:00:00

    Values that don't split in exactly ``len(into)`` parts
    are handled according to the ``extra`` and ``fill`` policies:

    * ``extra="error"`` fails with :class:`SeparateArityError` when there
      are too many parts, ``"drop"`` discards the excess parts,
      ``"merge"`` only splits at the first ``len(into) - 1`` separators
      so that the last column holds the rest of the value.
    * ``fill="right"`` pads the missing parts on the right with missing values,
      ``"left"`` pads on the left and ``"error"`` fails with :class:`SeparateArityError`.

    When not provided, the policies default to the engine settings,
    which are ``extra="error"`` and ``fill="right"`` unless configured.
    Missing values are separated into missing values.
    A ``None`` entry in ``into`` discards the corresponding part.
    """

    EXTRA_POLICIES = ("error", "drop", "merge")
    FILL_POLICIES = ("right", "left", "error")

    def __init__(
        self,
        column: str,
        into: list[str | None],
        child: QueryPlanNode,
        sep: str = " ",
        extra: str | None = None,
        fill: str | None = None,
        remove: bool = True,
    ) -> None:
        """
        :param column: The column to split.
        :param into: The names of the new columns, ``None`` to skip a part.
        :param child: The node emitting the data to separate.
        :param sep: The separator between the parts.
        :param extra: What to do when there are too many parts.
        :param fill: What to do when there are too few parts.
        :param remove: Remove the original column.
        """
        if not into:
            raise ValueError("into must provide at least one column name")
        if not sep:
            raise ValueError("sep must not be empty")
        if extra is not None and extra not in self.EXTRA_POLICIES:
            raise ValueError(f"extra must be one of {self.EXTRA_POLICIES}, got {extra!r}")
        if fill is not None and fill not in self.FILL_POLICIES:
            raise ValueError(f"fill must be one of {self.FILL_POLICIES}, got {fill!r}")
        self.column = column
        self.into = list(into)
        self.child = child
        self.sep = sep
        self.extra = extra
        self.fill = fill
        self.remove = remove

    def __str__(self) -> str:
        return f"SeparateNode(column={self.column}, into={self.into}, sep={self.sep!r}, {self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        batch = collect_batch(self.child)
        check_columns(batch, [self.column], str(self))
        settings = get_settings()
        extra = self.extra or settings.separate_extra
        fill = self.fill or settings.separate_fill

        new_names = [n for n in self.into if n is not None]
        existing = [
            n for n in batch.schema.names if not (self.remove and n == self.column)
        ]
        clashing = [n for n in new_names if n in existing]
        if clashing or len(set(new_names)) != len(new_names):
            raise DuplicateColumnError(
                f"{self}: separating would create duplicate columns {clashing or new_names}"
            )

        num_parts = len(self.into)
        parts_columns: list[list[str | None]] = [[] for _ in range(num_parts)]
        dropped_rows, filled_rows = [], []
        for row, value in enumerate(as_text(batch.column(self.column)).to_pylist()):
            if value is None:
                parts = [None] * num_parts
            elif extra == "merge":
                parts = value.split(self.sep, num_parts - 1)
            else:
                parts = value.split(self.sep)

            if len(parts) > num_parts:
                if extra == "error":
                    raise SeparateArityError(
                        f"{self}: row {row} value {value!r} has {len(parts)} parts, "
                        f"expected {num_parts}"
                    )
                parts = parts[:num_parts]
                dropped_rows.append(row)
            elif len(parts) < num_parts:
                if fill == "error":
                    raise SeparateArityError(
                        f"{self}: row {row} value {value!r} has {len(parts)} parts, "
                        f"expected {num_parts}"
                    )
                padding = [None] * (num_parts - len(parts))
                parts = parts + padding if fill == "right" else padding + parts
                filled_rows.append(row)

            for i, part in enumerate(parts):
                parts_columns[i].append(part)

        if dropped_rows:
            log.warning(
                "separate.dropped_extra_parts", column=self.column, rows=dropped_rows[:20],
                count=len(dropped_rows),
            )
        if filled_rows:
            log.warning(
                "separate.filled_missing_parts", column=self.column, rows=filled_rows[:20],
                count=len(filled_rows), fill=fill,
            )

        new_arrays = [
            pa.array(parts, type=pa.string())
            for name, parts in zip(self.into, parts_columns)
            if name is not None
        ]

        names: list[str] = []
        arrays: list[pa.Array] = []
        for name, array in zip(batch.schema.names, batch.columns):
            if name == self.column:
                if not self.remove:
                    names.append(name)
                    arrays.append(array)
                names.extend(new_names)
                arrays.extend(new_arrays)
            else:
                names.append(name)
                arrays.append(array)
        yield pa.RecordBatch.from_arrays(arrays, names=names)


class UniteNode(QueryPlanNode):
    """Paste together multiple columns into one.

    The values of ``columns`` are rendered as text and joined
    with ``sep``, in the order the columns are provided.
    The result takes the place of the first of the united columns::

        year | month | day          date
        ---- | ----- | ---    ->    ----------
        2013 | 1     | 1            2013-1-1

    If any of the values is missing, the result is missing
    too, unless ``na_rm`` is set, in which case the missing
    values are skipped.
    """

    def __init__(
        self,
        into: str,
        columns: list[str],
        child: QueryPlanNode,
        sep: str = "_",
        remove: bool = True,
        na_rm: bool = False,
    ) -> None:
        """
        :param into: Name of the new column.
        :param columns: The columns to unite, in order.
        :param child: The node emitting the data to unite.
        :param sep: The separator to put between the values.
        :param remove: Remove the united columns.
        :param na_rm: Skip missing values instead of producing missing results.
        """
        if not columns:
            raise ValueError("columns must provide at least one column to unite")
        self.into = into
        self.columns = list(columns)
        self.child = child
        self.sep = sep
        self.remove = remove
        self.na_rm = na_rm

    def __str__(self) -> str:
        return f"UniteNode(into={self.into}, columns={self.columns}, sep={self.sep!r}, {self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        batch = collect_batch(self.child)
        check_columns(batch, self.columns, str(self))
        kept = [
            n for n in batch.schema.names if not (self.remove and n in self.columns)
        ]
        if self.into in kept:
            raise DuplicateColumnError(f"{self}: column {self.into!r} already exists")

        united = pc.binary_join_element_wise(
            *[as_text(batch.column(n)) for n in self.columns],
            self.sep,
            null_handling="skip" if self.na_rm else "emit_null",
        )

        position = batch.schema.names.index(self.columns[0])
        names: list[str] = []
        arrays: list[pa.Array] = []
        for index, (name, array) in enumerate(zip(batch.schema.names, batch.columns)):
            if index == position:
                names.append(self.into)
                arrays.append(united)
            if name in kept:
                names.append(name)
                arrays.append(array)
        yield pa.RecordBatch.from_arrays(arrays, names=names)
