"""
Adapter exception classes.

Every failure coming out of the driver is re-raised as one of the classes
below. The original error stays reachable through ``.cause`` and through the
exception chain (``__cause__``), so callers can still inspect the root cause.
"""
import sqlite3

import sqlalchemy as sa

__all__ = [
    'DRIVER_ERRORS',
    'DatabaseError',
    'OpenError',
    'CloseError',
    'ExecError',
    'AffectedCountError',
    'QueryError',
    'BeginError',
    'CommitError',
    'RollbackError',
    'ScanError',
    'FetchError',
]

# Errors raised by SQLAlchemy or the sqlite3 driver underneath it
DRIVER_ERRORS = (
    sa.exc.SQLAlchemyError,
    sqlite3.Error,
    )


class DatabaseError(Exception):
    """Base class for all adapter errors.

    Attributes
        operation: Name of the failing operation
        statement: SQL text attempted, or None for statement-less operations
        cause: The low-level error that triggered this one
    """

    operation = 'database'
    action = 'database operation failed'

    def __init__(self, cause: BaseException | None = None,
                 statement: str | None = None) -> None:
        self.cause = cause
        self.statement = statement
        message = self.action
        if statement is not None:
            message = f'{message} {statement!r}'
        if cause is not None:
            message = f'{message}: {cause}'
        super().__init__(message)


class OpenError(DatabaseError):
    """The database file or driver could not be initialised.
    """
    operation = 'open'
    action = 'could not open the database'

    def __init__(self, cause: BaseException | None = None,
                 data_source: str | None = None) -> None:
        self.data_source = data_source
        super().__init__(cause, data_source)


class CloseError(DatabaseError):
    """Releasing the connection handle failed.
    """
    operation = 'close'
    action = 'could not close the database'


class ExecError(DatabaseError):
    """A non-query statement failed.
    """
    operation = 'execute'
    action = 'could not execute sql statement'


class AffectedCountError(DatabaseError):
    """The affected-row count could not be read after execution.
    """
    operation = 'rows_affected'
    action = 'could not get number of rows affected'


class QueryError(DatabaseError):
    """A query failed.
    """
    operation = 'query'
    action = 'could not query rows'


class BeginError(DatabaseError):
    """A transaction could not be started.
    """
    operation = 'begin'
    action = 'could not start a transaction'


class CommitError(DatabaseError):
    """A transaction could not be committed.
    """
    operation = 'commit'
    action = 'could not commit the transaction'


class RollbackError(DatabaseError):
    """A transaction could not be aborted.
    """
    operation = 'rollback'
    action = 'could not abort the transaction'


class ScanError(DatabaseError):
    """The current row could not be decoded into the destinations.
    """
    operation = 'scan'
    action = 'could not parse columns in current row'


class FetchError(DatabaseError):
    """The driver failed while advancing through a result set.
    """
    operation = 'next'
    action = 'could not fetch next row'
