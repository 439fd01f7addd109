"""The Dataframe object itself."""
from typing import Any, Callable, Self

import pyarrow as pa
import pyarrow.compute as pc

from ..compute import (
  AggregateNode,
  Aggregation,
  AllExcept,
  AntiJoinNode,
  BindColsNode,
  BindRowsNode,
  DistinctNode,
  FilterNode,
  FunctionCallExpression,
  IntersectNode,
  JoinNode,
  PaginateNode,
  PivotLongerNode,
  PivotWiderNode,
  ProjectNode,
  PyArrowTableDataSource,
  SemiJoinNode,
  SeparateNode,
  SetDiffNode,
  SortNode,
  UnionNode,
  UniteNode,
  col,
  lit,
)
from ..compute import setequal as setequal_nodes
from ..compute.base import QueryPlanNode
from ..compute.expressions import Expression
from ..compute.join import JoinKeys
from ..utils.tabulate import tabulate


class Dataframe:
  """A table of named columns and the transformations to apply to it.

  Methods only grow the query plan behind the dataframe,
  data is computed when it is needed by ``collect()``,
  ``to_arrow()`` or printing the dataframe.

  Dataframes are immutable, every transformation returns
  a new Dataframe and leaves the original one untouched::

    wide = monthly_delays.pivot_wider(names_from="carrier", values_from="avg_delay")
    long = wide.pivot_longer(AllExcept("month"), names_to="carrier", values_to="avg_delay")
  """
  def __init__(self, node_or_table: QueryPlanNode | pa.Table | pa.RecordBatch) -> None:
    """
    :param node_or_table: The plan producing the rows, or Arrow data
                          that becomes the source of a new plan.
    """
    if isinstance(node_or_table, (pa.Table, pa.RecordBatch)):
      node_or_table = PyArrowTableDataSource(node_or_table)

    if not isinstance(node_or_table, QueryPlanNode):
      raise ValueError("Invalid input, expected a QueryPlanNode or a PyArrow Table")

    self.node = node_or_table

  @classmethod
  def from_pydict(cls, data: dict[str, list[Any]], schema: pa.Schema | None = None) -> Self:
    """Create a Dataframe out of a dictionary of columns.

    ``None`` values are missing values, the type of each column
    is inferred from its values unless a ``schema`` is provided.

    :param data: The {column_name: values} of the dataframe.
    :param schema: The optional types of the columns.
    """
    return cls(pa.table(data, schema=schema))

  def __str__(self) -> str:
    return tabulate(self.to_arrow())

  def __repr__(self) -> str:
    return f"<Dataframe {self.node}>"

  # Row level transformations

  def filter(self, expression: Expression) -> Self:
    """Keep the rows where ``expression`` is true.

    :param expression: A predicate, like ``arr_delay > 0``.
    """
    return self.__class__(FilterNode(expression, self.node))

  def select(self, *columns: str) -> Self:
    """Keep only the provided columns, in the provided order."""
    return self.__class__(ProjectNode(list(columns), None, self.node))

  def mutate(self, **expressions: Expression) -> Self:
    """Add new columns, or replace existing ones, computing them from expressions."""
    return self.__class__(ProjectNode(None, expressions, self.node))

  def replace_na(self, values: dict[str, Any]) -> Self:
    """Replace the missing values of the columns with the provided values.

    :param values: The {column_name: replacement} to apply.
    """
    return self.mutate(**{
      name: FunctionCallExpression(pc.fill_null, col(name), lit(value))
      for name, value in values.items()
    })

  def slice(self, offset: int, length: int | None = None) -> Self:
    """Keep ``length`` rows starting at ``offset`` (first row is 0)."""
    return self.__class__(PaginateNode(offset, length, self.node))

  def head(self, n: int = 6) -> Self:
    """Keep the first ``n`` rows."""
    return self.slice(0, n)

  def arrange(self, *keys: str, descending: bool | list[bool] = False) -> Self:
    """Sort the rows by the provided columns."""
    if isinstance(descending, bool):
      descending = [descending] * len(keys)
    return self.__class__(SortNode(list(keys), descending, self.node))

  def distinct(self, *columns: str) -> Self:
    """Keep only distinct rows, considering only ``columns`` if provided."""
    return self.__class__(DistinctNode(self.node, list(columns) or None))

  def summarise(self, by: list[str] | None = None, **aggregations: Aggregation) -> Self:
    """Compute aggregations for each group of rows.

    :param by: The columns to group by, all rows are a single group if omitted.
    :param aggregations: The aggregations to compute, like ``avg_delay=MeanAggregation("arr_delay")``.
    """
    return self.__class__(AggregateNode(list(by or []), aggregations, self.node))

  # Reshaping

  def pivot_wider(
    self,
    names_from: str | list[str],
    values_from: str | list[str],
    id_cols: list[str] | None = None,
    values_fn: Callable[[str], Aggregation] | None = None,
    values_fill: Any = None,
    names_sep: str | None = None,
  ) -> Self:
    """Turn the values of ``names_from`` into columns holding ``values_from``.

    See :class:`tidypyground.compute.PivotWiderNode`.
    """
    return self.__class__(PivotWiderNode(
      names_from, values_from, self.node,
      id_cols=id_cols, values_fn=values_fn, values_fill=values_fill, names_sep=names_sep,
    ))

  def pivot_longer(
    self,
    cols: list[str] | AllExcept,
    names_to: str = "name",
    values_to: str = "value",
    values_drop_na: bool = False,
  ) -> Self:
    """Collapse ``cols`` into name-value pairs.

    See :class:`tidypyground.compute.PivotLongerNode`.
    """
    return self.__class__(PivotLongerNode(
      cols, self.node, names_to=names_to, values_to=values_to, values_drop_na=values_drop_na,
    ))

  def separate(
    self,
    column: str,
    into: list[str | None],
    sep: str = " ",
    extra: str | None = None,
    fill: str | None = None,
    remove: bool = True,
  ) -> Self:
    """Split ``column`` by ``sep`` into the ``into`` columns.

    See :class:`tidypyground.compute.SeparateNode`.
    """
    return self.__class__(SeparateNode(
      column, into, self.node, sep=sep, extra=extra, fill=fill, remove=remove,
    ))

  def unite(
    self,
    into: str,
    *columns: str,
    sep: str = "_",
    remove: bool = True,
    na_rm: bool = False,
  ) -> Self:
    """Paste ``columns`` together into the ``into`` column.

    See :class:`tidypyground.compute.UniteNode`.
    """
    return self.__class__(UniteNode(
      into, list(columns), self.node, sep=sep, remove=remove, na_rm=na_rm,
    ))

  # Joins

  def _join(self, how: str, other: "Dataframe", by: JoinKeys | None, suffixes: tuple[str, str] | None) -> Self:
    return self.__class__(JoinNode(how, self.node, other.node, keys=by, suffixes=suffixes))

  def inner_join(self, other: "Dataframe", by: JoinKeys | None = None, suffixes: tuple[str, str] | None = None) -> Self:
    """Keep the rows whose key is present in both dataframes, adding the columns of ``other``."""
    return self._join("inner", other, by, suffixes)

  def left_join(self, other: "Dataframe", by: JoinKeys | None = None, suffixes: tuple[str, str] | None = None) -> Self:
    """Keep all rows, adding the columns of ``other`` where the key matches."""
    return self._join("left", other, by, suffixes)

  def right_join(self, other: "Dataframe", by: JoinKeys | None = None, suffixes: tuple[str, str] | None = None) -> Self:
    """Keep all rows of ``other``, adding the columns of this dataframe where the key matches."""
    return self._join("right", other, by, suffixes)

  def full_join(self, other: "Dataframe", by: JoinKeys | None = None, suffixes: tuple[str, str] | None = None) -> Self:
    """Keep the rows of both dataframes, combining them where the key matches."""
    return self._join("full", other, by, suffixes)

  def semi_join(self, other: "Dataframe", by: JoinKeys | None = None) -> Self:
    """Keep the rows whose key has a match in ``other``."""
    return self.__class__(SemiJoinNode(self.node, other.node, keys=by))

  def anti_join(self, other: "Dataframe", by: JoinKeys | None = None) -> Self:
    """Keep the rows whose key has no match in ``other``."""
    return self.__class__(AntiJoinNode(self.node, other.node, keys=by))

  # Binding

  def bind_rows(self, *others: "Dataframe", id_column: str | None = None) -> Self:
    """Stack the rows of ``others`` after the rows of this dataframe."""
    return self.__class__(BindRowsNode([self.node] + [o.node for o in others], id_column=id_column))

  def bind_cols(self, *others: "Dataframe", names_repair: str | None = None) -> Self:
    """Place the columns of ``others`` after the columns of this dataframe."""
    return self.__class__(BindColsNode([self.node] + [o.node for o in others], names_repair=names_repair))

  # Set operations

  def intersect(self, other: "Dataframe") -> Self:
    """Distinct rows present in both dataframes."""
    return self.__class__(IntersectNode(self.node, other.node))

  def union(self, other: "Dataframe") -> Self:
    """Distinct rows present in either dataframe."""
    return self.__class__(UnionNode(self.node, other.node))

  def setdiff(self, other: "Dataframe") -> Self:
    """Distinct rows not present in ``other``."""
    return self.__class__(SetDiffNode(self.node, other.node))

  def setequal(self, other: "Dataframe") -> bool:
    """If both dataframes contain the same rows, ignoring order and duplicates."""
    return setequal_nodes(self.node, other.node)

  # Data access

  def collect(self) -> Self:
    """Run the plan and wrap the result in a new Dataframe.

    Transformations applied afterwards start from the
    computed table instead of running the plan again.
    """
    return self.__class__(self.to_arrow())

  def to_arrow(self) -> pa.Table:
    """Run the plan and return its rows as a pyarrow.Table."""
    return pa.Table.from_batches(list(self.node.batches()))

  def to_pydict(self) -> dict[str, list[Any]]:
    """Run the plan and return {column_name: values}."""
    return self.to_arrow().to_pydict()

  @property
  def column_names(self) -> list[str]:
    return self.to_arrow().column_names

  @property
  def num_rows(self) -> int:
    return self.to_arrow().num_rows


def bind_rows(*dataframes: Dataframe, id_column: str | None = None) -> Dataframe:
  """Stack the rows of multiple dataframes."""
  if not dataframes:
    raise ValueError("At least one dataframe is required to bind rows")
  first, *others = dataframes
  return first.bind_rows(*others, id_column=id_column)


def bind_cols(*dataframes: Dataframe, names_repair: str | None = None) -> Dataframe:
  """Place the columns of multiple dataframes side by side."""
  if not dataframes:
    raise ValueError("At least one dataframe is required to bind columns")
  first, *others = dataframes
  return first.bind_cols(*others, names_repair=names_repair)


def setequal(left: Dataframe, right: Dataframe) -> bool:
  """If both dataframes contain the same rows, ignoring order and duplicates."""
  return left.setequal(right)
