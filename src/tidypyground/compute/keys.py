"""Identify rows by the values of their columns.

Grouping rows, matching join keys and comparing rows
in set operations all require to know if two rows
have the same values in a set of columns.

Arrow doesn't provide hashing of multiple columns,
so the values are converted to Python tuples
that can be used as dictionary keys::

    carrier | flight          row keys
    ------- | ------   ->     ("AA", 1141)
    AA      | 1141            ("DL", None)
    DL      | NA

Dates, times, timestamps and durations are keyed by their integer
storage, their python conversion is lossy for nanosecond units.

Missing values become ``None``, so two missing values
are equal to each other in a key. That's the behaviour
needed for grouping and set operations, while joins
explicitly discard keys containing missing values
through :func:`has_missing`.
"""

import math
from typing import Any

import pyarrow as pa
import pyarrow.types as pat

RowKey = tuple[Any, ...]


class _NaN:
    """Stand-in for float NaN values that compares equal to itself."""

    def __repr__(self) -> str:
        return "NaN"


NAN = _NaN()


def _normalize(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        return NAN
    return value


def _key_values(array: pa.Array) -> list[Any]:
    t = array.type
    if pat.is_timestamp(t) or pat.is_date(t) or pat.is_time(t) or pat.is_duration(t):
        array = array.cast(pa.int64() if t.bit_width == 64 else pa.int32())
    return [_normalize(v) for v in array.to_pylist()]


def row_keys(batch: pa.RecordBatch, columns: list[str]) -> list[RowKey]:
    """Compute the key of every row of the batch for the given columns.

    >>> data = pa.record_batch({"t": pa.array([1_000_000_001, None], pa.timestamp("ns"))})
    >>> row_keys(data, ["t"])
    [(1000000001,), (None,)]
    """
    if not columns:
        return [() for _ in range(batch.num_rows)]
    values = [_key_values(batch.column(name)) for name in columns]
    return list(zip(*values))


def restore(value: Any) -> Any:
    """Convert a key value back to the value it was computed from."""
    if value is NAN:
        return math.nan
    return value


def has_missing(key: RowKey) -> bool:
    """If any of the values in the key is missing."""
    return any(v is None for v in key)


def group_rows(keys: list[RowKey]) -> dict[RowKey, list[int]]:
    """Group row indices by their key.

    Keys are returned in order of first appearance
    and the row indices of each key keep their original order.
    """
    groups: dict[RowKey, list[int]] = {}
    for index, key in enumerate(keys):
        groups.setdefault(key, []).append(index)
    return groups


def first_occurrences(keys: list[RowKey], exclude: set[RowKey] | None = None) -> list[int]:
    """Indices of the first row for every distinct key.

    :param exclude: keys that should not be reported at all.
    """
    seen = set(exclude) if exclude else set()
    indices = []
    for index, key in enumerate(keys):
        if key in seen:
            continue
        seen.add(key)
        indices.append(index)
    return indices


def take_rows(batch: pa.RecordBatch, indices: list[int | None]) -> pa.RecordBatch:
    """Pick rows of the batch by position.

    ``None`` positions produce a row where every column is missing,
    which is how joins fill the side without a match.
    """
    return batch.take(pa.array(indices, type=pa.int64()))
