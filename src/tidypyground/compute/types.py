"""Column types and their promotion rules.

Every column has a declared type that is fixed when the column is created.
When columns coming from different tables, or different columns of the
same table, have to be combined into a single column (stacking tables
by rows, collapsing columns in pivot_longer, aligning join keys) their
types must be reconciled.

The engine never guesses: types are reconciled by an explicit
promotion rule and anything not covered by the rule is an error.

+-----------------------------------+-----------------+
| Types being combined              | Resulting type  |
+===================================+=================+
| equal types                       | the same type   |
+-----------------------------------+-----------------+
| null + any type                   | the other type  |
+-----------------------------------+-----------------+
| integer + integer                 | int64           |
+-----------------------------------+-----------------+
| float + float                     | float64         |
+-----------------------------------+-----------------+
| integer + float                   | float64         |
+-----------------------------------+-----------------+
| string + large_string             | large_string    |
+-----------------------------------+-----------------+
| anything else                     | TypeMismatchError |
+-----------------------------------+-----------------+

The ``null`` type is the type of columns that only hold missing values,
for example a column built from ``[None, None]``.
"""

from typing import Iterable

import pyarrow as pa
import pyarrow.compute as pc
import pyarrow.types as pat

from .errors import TypeMismatchError


def _is_string(t: pa.DataType) -> bool:
    return pat.is_string(t) or pat.is_large_string(t)


def promote(left: pa.DataType, right: pa.DataType) -> pa.DataType | None:
    """Reconcile two types according to the promotion rule.

    Returns ``None`` when the two types can't be combined.

    >>> promote(pa.int32(), pa.float32())
    DataType(double)
    >>> promote(pa.string(), pa.bool_()) is None
    True
    """
    if left.equals(right):
        return left
    if pat.is_null(left):
        return right
    if pat.is_null(right):
        return left
    if pat.is_integer(left) and pat.is_integer(right):
        return pa.int64()
    if pat.is_floating(left) and pat.is_floating(right):
        return pa.float64()
    if (pat.is_integer(left) and pat.is_floating(right)) or (
        pat.is_floating(left) and pat.is_integer(right)
    ):
        return pa.float64()
    if _is_string(left) and _is_string(right):
        return pa.large_string()
    return None


def common_type(types: Iterable[pa.DataType], context: str) -> pa.DataType:
    """Find the type all the provided types can be promoted to.

    :param types: The types to reconcile.
    :param context: Description of what is being combined,
                    used to report a meaningful error.
    """
    result = None
    for t in types:
        if result is None:
            result = t
            continue
        promoted = promote(result, t)
        if promoted is None:
            raise TypeMismatchError(
                f"{context}: can't combine values of type {result} with values of type {t}"
            )
        result = promoted
    if result is None:
        return pa.null()
    return result


def conform(array: pa.Array, to_type: pa.DataType) -> pa.Array:
    """Cast the array to the given type if it has a different type."""
    if array.type.equals(to_type):
        return array
    return array.cast(to_type)


def as_text(array: pa.Array) -> pa.Array:
    """Render the values of an array as strings, missing values stay missing.

    Booleans read ``TRUE`` and ``FALSE``, like in printed tables.

    >>> as_text(pa.array([True, None, False])).to_pylist()
    ['TRUE', None, 'FALSE']
    """
    if pat.is_string(array.type):
        return array
    if pat.is_boolean(array.type):
        return pc.if_else(array, "TRUE", "FALSE")
    return array.cast(pa.string())
