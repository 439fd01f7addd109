"""Query plan nodes that implement join operations.

Joins combine two tables aligning their rows by the values
of one or more *key* columns.

Mutating joins add the columns of the right table to the left table:

======  =============================================================
inner   only rows whose key is present in both tables
left    all rows of the left table
right   all rows of the right table
full    all rows of both tables
======  =============================================================

When a row has no match in the other table, the columns coming from
the other table are filled with missing values.

Filtering joins filter the rows of the left table without adding columns:

======  =============================================================
semi    left rows whose key has at least one match in the right table
anti    left rows whose key has no match in the right table
======  =============================================================

The joins are implemented as hash joins: the rows of the right table
are indexed by the value of their key, then the rows of the left
table probe the index to find their matches.

Keys containing a missing value never match anything,
as it's unknown if they are equal to any other key.

Left Join
=========

>>> import pyarrow as pa
>>> from tidypyground.compute import LeftJoinNode, PyArrowTableDataSource
>>> flights = PyArrowTableDataSource(pa.record_batch({"carrier": ["AA", "ZZ"], "flight": [1141, 725]}))
>>> airlines = PyArrowTableDataSource(pa.record_batch({"carrier": ["AA", "DL"], "name": ["American Airlines Inc.", "Delta Air Lines Inc."]}))
>>> next(LeftJoinNode(flights, airlines, keys=["carrier"]).batches()).to_pydict()
{'carrier': ['AA', 'ZZ'], 'flight': [1141, 725], 'name': ['American Airlines Inc.', None]}
"""

import pyarrow as pa
import pyarrow.compute as pc

from ..config import get_settings
from ..utils.logging import get_logger
from .base import QueryPlanNode, collect_batch
from .errors import DuplicateColumnError, MissingJoinKeyError
from .keys import RowKey, has_missing, row_keys, take_rows
from .types import common_type, conform

log = get_logger("join")

JoinKeys = list[str] | dict[str, str] | str


class BaseJoinNode(QueryPlanNode):
    """Shared behaviour of the join nodes.

    Takes care of resolving which columns are the join keys
    and of indexing the rows of the right table by their key.
    """

    def __init__(
        self,
        left_child: QueryPlanNode,
        right_child: QueryPlanNode,
        keys: JoinKeys | None = None,
    ) -> None:
        """
        :param left_child: The left source of data to join.
        :param right_child: The right source of data to join.
        :param keys: The key columns, either a list of names existing in both
                     tables or a ``{left_name: right_name}`` mapping.
                     When not provided the columns with the same name in both
                     tables are used.
        """
        self.left_child = left_child
        self.right_child = right_child
        if isinstance(keys, str):
            keys = [keys]
        self.keys = keys

    def resolve_keys(
        self, left: pa.RecordBatch, right: pa.RecordBatch
    ) -> tuple[list[str], list[str]]:
        """Find the key columns of the left and right tables.

        Also verifies that the types of the key columns
        can be compared, returning the left and right names of the keys.
        """
        if self.keys is None:
            left_keys = [n for n in left.schema.names if n in right.schema.names]
            if not left_keys:
                raise MissingJoinKeyError(
                    f"{self}: no common columns between {left.schema.names} "
                    f"and {right.schema.names}, provide the join keys explicitly"
                )
            log.info("join.inferred_keys", keys=left_keys)
            right_keys = list(left_keys)
        elif isinstance(self.keys, dict):
            left_keys, right_keys = list(self.keys.keys()), list(self.keys.values())
        else:
            left_keys, right_keys = list(self.keys), list(self.keys)

        if not left_keys:
            raise MissingJoinKeyError(f"{self}: no join keys provided")
        for side, batch, names in (("left", left, left_keys), ("right", right, right_keys)):
            missing = [n for n in names if n not in batch.schema.names]
            if missing:
                raise MissingJoinKeyError(
                    f"{self}: join keys {missing} not found in the {side} table "
                    f"columns {batch.schema.names}"
                )

        for lkey, rkey in zip(left_keys, right_keys):
            common_type(
                [left.schema.field(lkey).type, right.schema.field(rkey).type],
                context=f"join key {lkey}={rkey}",
            )
        return left_keys, right_keys

    @staticmethod
    def index_rows(keys: list[RowKey]) -> dict[RowKey, list[int]]:
        """Index the rows by their key, skipping keys with missing values."""
        index: dict[RowKey, list[int]] = {}
        for row, key in enumerate(keys):
            if has_missing(key):
                continue
            index.setdefault(key, []).append(row)
        return index


class JoinNode(BaseJoinNode):
    """Join two data sources with a mutating join.

    Supposing we have two tables::

        left:                       right:
        +---------+--------+        +---------+----------------------+
        | carrier | flight |        | carrier | name                 |
        +---------+--------+        +---------+----------------------+
        | AA      | 1141   |        | AA      | American Airlines    |
        | ZZ      | 725    |        | DL      | Delta Air Lines      |
        +---------+--------+        +---------+----------------------+

    We would perform the following steps:

    1. Index the rows of the right table by their key::

        {("AA",): [0], ("DL",): [1]}

    2. For each row of the left table, look up its matches in the index.
       This produces pairs of left and right row positions, where a missing
       position means that the row has no match on that side::

        (0, 0)      AA matched AA
        (1, None)   ZZ had no match, only kept by left and full joins

    3. For right and full joins, append the right rows that were never matched::

        (None, 1)   DL had no match

    4. Take the rows at the paired positions from both tables,
       a missing position produces a row of missing values.
       The key columns are taken from whichever side has a value::

        +---------+--------+----------------------+
        | carrier | flight | name                 |
        +---------+--------+----------------------+
        | AA      | 1141   | American Airlines    |
        | ZZ      | 725    | NA                   |
        | DL      | NA     | Delta Air Lines      |
        +---------+--------+----------------------+

    When a key matches multiple rows, a row is produced for each
    combination of the matching rows. Columns that are not keys and exist
    in both tables are disambiguated by appending ``suffixes`` to their names.
    """

    HOWS = ("inner", "left", "right", "full")

    def __init__(
        self,
        how: str,
        left_child: QueryPlanNode,
        right_child: QueryPlanNode,
        keys: JoinKeys | None = None,
        suffixes: tuple[str, str] | None = None,
    ) -> None:
        """
        :param how: The kind of join, one of ``inner``, ``left``, ``right``, ``full``.
        :param left_child: The left source of data to join.
        :param right_child: The right source of data to join.
        :param keys: The key columns, see :class:`BaseJoinNode`.
        :param suffixes: Suffixes for the left and right colliding columns.
        """
        if how not in self.HOWS:
            raise ValueError(f"Unsupported join {how!r}, expected one of {self.HOWS}")
        super().__init__(left_child, right_child, keys)
        self.how = how
        self.suffixes = suffixes

    def __str__(self) -> str:
        return f"JoinNode(how={self.how}, keys={self.keys}, left={self.left_child}, right={self.right_child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Perform the join operation.

        Accumulates all rows of both children to
        perform the join operation, so it is not suitable
        for data that doesn't fit in memory.
        """
        left = collect_batch(self.left_child)
        right = collect_batch(self.right_child)
        left_keys, right_keys = self.resolve_keys(left, right)

        right_index = self.index_rows(row_keys(right, right_keys))
        left_positions: list[int | None] = []
        right_positions: list[int | None] = []
        matched_right: set[int] = set()
        keep_unmatched_left = self.how in ("left", "full")
        for row, key in enumerate(row_keys(left, left_keys)):
            matches = right_index.get(key)
            if matches:
                left_positions.extend([row] * len(matches))
                right_positions.extend(matches)
                matched_right.update(matches)
            elif keep_unmatched_left:
                left_positions.append(row)
                right_positions.append(None)

        if self.how in ("right", "full"):
            for row in range(right.num_rows):
                if row not in matched_right:
                    left_positions.append(None)
                    right_positions.append(row)

        left_rows = take_rows(left, left_positions)
        right_rows = take_rows(right, right_positions)
        result = self._combine(left_rows, right_rows, left_keys, right_keys)
        log.debug(
            "join.completed",
            how=self.how,
            left_rows=left.num_rows,
            right_rows=right.num_rows,
            rows=result.num_rows,
        )
        yield result

    def _combine(
        self,
        left_rows: pa.RecordBatch,
        right_rows: pa.RecordBatch,
        left_keys: list[str],
        right_keys: list[str],
    ) -> pa.RecordBatch:
        """Combine the aligned rows of the two tables in a new one."""
        left_suffix, right_suffix = self.suffixes or get_settings().join_suffixes
        right_values = [n for n in right_rows.schema.names if n not in right_keys]
        colliding = set(left_rows.schema.names) & set(right_values)

        names: list[str] = []
        arrays: list[pa.Array] = []
        right_key_of = dict(zip(left_keys, right_keys))
        for name in left_rows.schema.names:
            if name in right_key_of:
                # Keys are taken from the left table, or from the right
                # one when the left row was missing.
                lvalues = left_rows.column(name)
                rvalues = right_rows.column(right_key_of[name])
                key_type = common_type(
                    [lvalues.type, rvalues.type], context=f"join key {name}"
                )
                arrays.append(
                    pc.coalesce(conform(lvalues, key_type), conform(rvalues, key_type))
                )
                names.append(name)
            else:
                arrays.append(left_rows.column(name))
                names.append(name + left_suffix if name in colliding else name)

        for name in right_values:
            arrays.append(right_rows.column(name))
            names.append(name + right_suffix if name in colliding else name)

        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise DuplicateColumnError(
                f"{self}: suffixes {(left_suffix, right_suffix)} produce duplicate columns "
                f"{duplicates}, choose different suffixes"
            )
        return pa.RecordBatch.from_arrays(arrays, names=names)


class InnerJoinNode(JoinNode):
    """Join keeping only the rows with a match in both tables."""

    def __init__(self, left_child, right_child, keys=None, suffixes=None) -> None:
        super().__init__("inner", left_child, right_child, keys, suffixes)


class LeftJoinNode(JoinNode):
    """Join keeping all the rows of the left table."""

    def __init__(self, left_child, right_child, keys=None, suffixes=None) -> None:
        super().__init__("left", left_child, right_child, keys, suffixes)


class RightJoinNode(JoinNode):
    """Join keeping all the rows of the right table."""

    def __init__(self, left_child, right_child, keys=None, suffixes=None) -> None:
        super().__init__("right", left_child, right_child, keys, suffixes)


class FullJoinNode(JoinNode):
    """Join keeping all the rows of both tables."""

    def __init__(self, left_child, right_child, keys=None, suffixes=None) -> None:
        super().__init__("full", left_child, right_child, keys, suffixes)


class FilteringJoinNode(BaseJoinNode):
    """Filter the rows of the left table by their matches in the right one.

    The right table is only used to know which keys exist,
    its columns never appear in the result and a left row
    is never repeated, no matter how many matches it has.
    """

    keep_matching: bool

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(keys={self.keys}, left={self.left_child}, right={self.right_child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        left = collect_batch(self.left_child)
        right = collect_batch(self.right_child)
        left_keys, right_keys = self.resolve_keys(left, right)

        right_index = self.index_rows(row_keys(right, right_keys))
        mask = [
            (key in right_index) == self.keep_matching
            for key in row_keys(left, left_keys)
        ]
        result = left.filter(pa.array(mask, type=pa.bool_()))
        log.debug(
            "filtering_join.completed",
            join=self.__class__.__name__,
            left_rows=left.num_rows,
            rows=result.num_rows,
        )
        yield result


class SemiJoinNode(FilteringJoinNode):
    """Keep the left rows that have a match in the right table.

    >>> import pyarrow as pa
    >>> from tidypyground.compute import PyArrowTableDataSource
    >>> flights = PyArrowTableDataSource(pa.record_batch({"carrier": ["AA", "ZZ", "AA"]}))
    >>> airlines = PyArrowTableDataSource(pa.record_batch({"carrier": ["AA", "AA", "DL"]}))
    >>> next(SemiJoinNode(flights, airlines, keys=["carrier"]).batches()).to_pydict()
    {'carrier': ['AA', 'AA']}
    """

    keep_matching = True


class AntiJoinNode(FilteringJoinNode):
    """Keep the left rows that have no match in the right table.

    >>> import pyarrow as pa
    >>> from tidypyground.compute import PyArrowTableDataSource
    >>> flights = PyArrowTableDataSource(pa.record_batch({"carrier": ["AA", "ZZ", "XX"]}))
    >>> airlines = PyArrowTableDataSource(pa.record_batch({"carrier": ["AA", "DL"]}))
    >>> next(AntiJoinNode(flights, airlines, keys=["carrier"]).batches()).to_pydict()
    {'carrier': ['ZZ', 'XX']}
    """

    keep_matching = False
