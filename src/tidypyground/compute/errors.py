"""Errors raised by the compute engine.

Every error is raised by the node whose preconditions were violated,
at the time its ``batches()`` are consumed. Errors are caller input errors,
so the engine never retries anything: the operation is aborted and no data
is emitted.

Each error also derives from the builtin exception that better describes
the failure, so that callers can catch them generically::

    try:
        next(BindColsNode([left, right]).batches())
    except ValueError:
        ...
"""


class TableEngineError(Exception):
    """Base class for all the compute engine errors."""


class DuplicateKeyError(TableEngineError, ValueError):
    """Multiple values were found for the same cell of a pivoted table."""


class SeparateArityError(TableEngineError, ValueError):
    """A value was split in a different number of parts than expected."""


class MissingJoinKeyError(TableEngineError, KeyError):
    """The join keys are not available in both tables."""

    def __str__(self) -> str:
        # KeyError would quote the message.
        return str(self.args[0]) if self.args else ""


class TypeMismatchError(TableEngineError, TypeError):
    """Columns of incompatible types had to be combined."""


class RowCountMismatchError(TableEngineError, ValueError):
    """Tables with a different number of rows had to be aligned."""


class SchemaMismatchError(TableEngineError, ValueError):
    """Tables were expected to have the same columns and types."""


class DuplicateColumnError(TableEngineError, ValueError):
    """The operation would produce two columns with the same name."""


class ColumnNotFoundError(TableEngineError, KeyError):
    """A column referenced by the operation does not exist."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""
