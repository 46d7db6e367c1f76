"""Helpers shared by the database, transaction and rows implementations.

Only depends on ``sqladapter.exceptions`` so every other module can import it
without circular dependency concerns.
"""
import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from functools import wraps
from typing import Any

from sqladapter.exceptions import DRIVER_ERRORS, AffectedCountError
from sqladapter.exceptions import DatabaseError

logger = logging.getLogger(__name__)


@contextmanager
def wrap_errors(error_cls: type[DatabaseError],
                statement: str | None = None) -> Iterator[None]:
    """Re-raise driver errors as ``error_cls`` annotated with the statement.

    Adapter errors raised inside the block pass through untouched.
    """
    try:
        yield
    except DRIVER_ERRORS as exc:
        raise error_cls(exc, statement) from exc


def dumpsql(func):
    """Decorator for logging statements, their arguments and timing."""
    @wraps(func)
    def wrapper(self, statement: str, *args: Any):
        start = time.time()
        logger.debug(f'SQL:\n{statement}\nargs: {args}')
        try:
            return func(self, statement, *args)
        except DatabaseError:
            logger.error(f'Error with statement:\nSQL:\n{statement}\nargs: {args}')
            raise
        finally:
            elapsed = time.time() - start
            self.addcall(elapsed)
            logger.debug(f'Statement time: {elapsed:.4f}s')
    return wrapper


def rows_affected(result: Any) -> int:
    """Read the affected-row count from an executed result.

    The sqlite3 driver reports -1 for statements without a count (DDL,
    pragmas); those are returned as 0.
    """
    with wrap_errors(AffectedCountError):
        count = result.rowcount
    if not isinstance(count, int):
        raise AffectedCountError(TypeError(f'row count is {type(count).__name__}, not int'))
    return max(count, 0)
