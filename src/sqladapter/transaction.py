"""
Transaction handling for the SQLite driver.
"""
import logging
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqladapter.base import Transaction
from sqladapter.cursor import SQLiteRows
from sqladapter.exceptions import CommitError, ExecError, QueryError
from sqladapter.exceptions import RollbackError
from sqladapter.utils import dumpsql, rows_affected, wrap_errors

if TYPE_CHECKING:
    from sqladapter.connection import SQLiteDatabase

logger = logging.getLogger(__name__)

__all__ = ['SQLiteTransaction']


class SQLiteTransaction(Transaction):
    """A transaction bound to one pooled connection.

    The connection goes back to the pool once the transaction is committed
    or rolled back. No state is tracked beyond that: statements issued after
    finalisation fail with whatever the driver reports.
    """

    def __init__(self, database: 'SQLiteDatabase', sa_connection: sa.engine.Connection,
                 sa_transaction: sa.engine.RootTransaction) -> None:
        self.database = database
        self.sa_connection = sa_connection
        self.sa_transaction = sa_transaction

    def addcall(self, elapsed: float) -> None:
        self.database.addcall(elapsed)

    @dumpsql
    def execute(self, statement: str, *args: Any) -> int:
        """Execute a statement within the transaction and return rows affected."""
        with wrap_errors(ExecError, statement):
            result = self.sa_connection.exec_driver_sql(statement, args or None)
        return rows_affected(result)

    @dumpsql
    def query(self, statement: str, *args: Any) -> SQLiteRows:
        """Execute a query within the transaction and return its rows."""
        with wrap_errors(QueryError, statement):
            result = self.sa_connection.exec_driver_sql(statement, args or None)
        return SQLiteRows(result, statement)

    def commit(self) -> None:
        with wrap_errors(CommitError):
            try:
                self.sa_transaction.commit()
            finally:
                self.sa_connection.close()
        logger.debug(f'Committed transaction for connection {id(self.sa_connection)}')

    def rollback(self) -> None:
        with wrap_errors(RollbackError):
            try:
                self.sa_transaction.rollback()
            finally:
                self.sa_connection.close()
        logger.debug(f'Rolled back transaction for connection {id(self.sa_connection)}')
