"""
Thin database access layer over an embedded SQLite engine.

A database handle exposes execute/query/begin, a transaction exposes
execute/query/commit/rollback, and a query returns forward-only rows with
next/scan. Every driver failure is re-raised with the operation and the
SQL text attempted.

All operations can be called either as:
- Module functions: db.execute(cn, sql, *args)
- Database methods: cn.execute(sql, *args)
"""
__version__ = '0.1.0'

from typing import Any

from sqladapter.base import Database, Rows, RowState, Transaction
from sqladapter.base import get_available_drivers, register_driver
from sqladapter.connection import SQLiteDatabase, connect, new, open_database
from sqladapter.cursor import SQLiteRows
from sqladapter.exceptions import AffectedCountError, BeginError, CloseError
from sqladapter.exceptions import CommitError, DatabaseError, ExecError
from sqladapter.exceptions import FetchError, OpenError, QueryError
from sqladapter.exceptions import RollbackError, ScanError
from sqladapter.options import DatabaseOptions
from sqladapter.transaction import SQLiteTransaction
from sqladapter.types import Dest


def execute(cn: Database | Transaction, sql: str, *args: Any) -> int:
    """Execute a SQL statement and return affected row count.
    """
    return cn.execute(sql, *args)


delete = execute
insert = execute
update = execute


def query(cn: Database | Transaction, sql: str, *args: Any) -> Rows:
    """Execute a query and return its rows.
    """
    return cn.query(sql, *args)


def begin(cn: Database) -> Transaction:
    """Start a transaction on the database.
    """
    return cn.begin()


__all__ = [
    'connect',
    'open_database',
    'new',
    'DatabaseOptions',
    'execute',
    'delete',
    'insert',
    'update',
    'query',
    'begin',
    'Database',
    'Transaction',
    'Rows',
    'RowState',
    'Dest',
    'SQLiteDatabase',
    'SQLiteTransaction',
    'SQLiteRows',
    'register_driver',
    'get_available_drivers',
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
