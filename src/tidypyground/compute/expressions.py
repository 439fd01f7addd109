"""Expressions evaluated against record batches.

Nodes like :class:`FilterNode` or :class:`ProjectNode` don't know
what they have to compute, they receive an expression and
evaluate it on every batch they see.

A filter receives a predicate, a boolean column telling
which rows survive. A projection receives one expression
per output column, for example ``arr_delay / 60`` or
``fill_null(name, "Unknown")`` to replace missing values.

Column references and literals live in :mod:`.base`,
this module provides the calls to compute functions
that combine them.
"""

from typing import Any, Callable

import pyarrow as pa

from .. import utils
from .base import Expression


def resolve(batch: pa.RecordBatch, value: Expression | Any) -> Any:
    """Evaluate ``value`` on the batch if it is an Expression.

    Anything else (arrays, scalars, plain python values)
    is returned untouched and used as is.
    """
    if isinstance(value, Expression):
        return value.apply(batch)
    return value


class FunctionCallExpression(Expression):
    """Invoke a compute function with the resolved arguments.

    Each argument can be an expression, which gets evaluated
    on the batch first, or a value passed straight through
    to the function. Converting hours in minutes would be::

        FunctionCallExpression(pyarrow.compute.multiply, ColumnRef("hour"), 60)

    while giving a name to carriers that have none::

        FunctionCallExpression(pyarrow.compute.fill_null, ColumnRef("name"), "Unknown")
    """

    def __init__(self, func: Callable[..., Any], *args: Expression | Any) -> None:
        """
        :param func: Any callable, usually one from :mod:`pyarrow.compute`.
        :param *args: Expressions or values the function is called with.
        """
        self.func = func
        self.args = args

    def __str__(self) -> str:
        rendered_args = ",".join(str(arg) for arg in self.args)
        return f"{utils.inspect.get_qualname(self.func)}({rendered_args})"

    def apply(self, batch: pa.RecordBatch) -> pa.Array | pa.Scalar:
        """Resolve every argument on ``batch`` and call the function."""
        return self.func(*(resolve(batch, arg) for arg in self.args))
