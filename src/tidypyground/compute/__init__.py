"""The TidyPyground Compute Engine

Every transformation of a table is a chain of
query plan nodes. Every node reads Arrow record batches from
its children and emits new record batches::

    PyArrowTableDataSource --(RecordBatch)--> PivotWiderNode --(RecordBatch)--> ...

The logic of each step lives in the node that implements it,
there is no separate executor: asking the root node for its
batches runs the whole plan.

Plans grow upward from one or more data sources:

>>> import pyarrow as pa
>>> from tidypyground.compute import PyArrowTableDataSource, PivotWiderNode
>>> data = pa.table({
...    "month": pa.array([1, 1, 2]),
...    "carrier": pa.array(["AA", "DL", "AA"]),
...    "avg_delay": pa.array([1.5, -3.0, 4.25]),
... })
>>> query = PivotWiderNode(
...     names_from=["carrier"],
...     values_from=["avg_delay"],
...     child=PyArrowTableDataSource(data)
... )
>>> for data in query.batches():
...     print(data.to_pydict())
{'month': [1, 2], 'AA': [1.5, 4.25], 'DL': [-3.0, None]}

The nodes never modify the data they receive, so the same node
can be used as the child of multiple other nodes.
"""

from .aggregate import (
    AggregateNode,
    Aggregation,
    CountAggregation,
    MaxAggregation,
    MeanAggregation,
    MinAggregation,
    SumAggregation,
)
from .base import ColumnRef, Literal, QueryPlanNode, col, lit
from .binding import BindColsNode, BindRowsNode
from .datasources import PyArrowTableDataSource
from .distinct import DistinctNode
from .errors import (
    ColumnNotFoundError,
    DuplicateColumnError,
    DuplicateKeyError,
    MissingJoinKeyError,
    RowCountMismatchError,
    SchemaMismatchError,
    SeparateArityError,
    TableEngineError,
    TypeMismatchError,
)
from .expressions import FunctionCallExpression
from .filtering import FilterNode
from .join import (
    AntiJoinNode,
    FullJoinNode,
    InnerJoinNode,
    JoinNode,
    LeftJoinNode,
    RightJoinNode,
    SemiJoinNode,
)
from .pagination import PaginateNode
from .reshape import AllExcept, PivotLongerNode, PivotWiderNode, SeparateNode, UniteNode, all_except
from .selection import ProjectNode
from .setops import IntersectNode, SetDiffNode, UnionNode, setequal
from .sorting import SortNode

__all__ = (
    "QueryPlanNode",
    "PyArrowTableDataSource",
    "FilterNode",
    "FunctionCallExpression",
    "col",
    "lit",
    "ColumnRef",
    "Literal",
    "PaginateNode",
    "SortNode",
    "ProjectNode",
    "DistinctNode",
    "AggregateNode",
    "Aggregation",
    "CountAggregation",
    "MaxAggregation",
    "MeanAggregation",
    "MinAggregation",
    "SumAggregation",
    "PivotWiderNode",
    "PivotLongerNode",
    "SeparateNode",
    "UniteNode",
    "AllExcept",
    "all_except",
    "JoinNode",
    "InnerJoinNode",
    "LeftJoinNode",
    "RightJoinNode",
    "FullJoinNode",
    "SemiJoinNode",
    "AntiJoinNode",
    "BindRowsNode",
    "BindColsNode",
    "IntersectNode",
    "UnionNode",
    "SetDiffNode",
    "setequal",
    "TableEngineError",
    "DuplicateKeyError",
    "SeparateArityError",
    "MissingJoinKeyError",
    "TypeMismatchError",
    "RowCountMismatchError",
    "SchemaMismatchError",
    "DuplicateColumnError",
    "ColumnNotFoundError",
)
