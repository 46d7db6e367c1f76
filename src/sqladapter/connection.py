"""
Database connection handling with SQLAlchemy.

This module provides:
1. The `connect()` and `open_database()` functions for opening a database
2. The `SQLiteDatabase` handle, registered as the `sqlite` driver
3. Engine creation and per-connection configuration

SQLAlchemy is used for connection management and pooling; statements are
passed to the sqlite3 driver unmodified through `exec_driver_sql`.
"""
import logging
import sqlite3
import uuid
from collections.abc import Callable
from dataclasses import fields
from typing import Any, Self

import sqlalchemy as sa
from sqladapter.base import Database, get_driver_class, register_driver
from sqladapter.cursor import SQLiteRows
from sqladapter.exceptions import DRIVER_ERRORS, BeginError, CloseError
from sqladapter.exceptions import ExecError, OpenError, QueryError
from sqladapter.options import DatabaseOptions
from sqladapter.transaction import SQLiteTransaction
from sqladapter.types import convert_date, convert_datetime
from sqladapter.utils import dumpsql, rows_affected, wrap_errors
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from libb import load_options

__all__ = [
    'SQLiteDatabase',
    'connect',
    'open_database',
    'new',
    'create_url_from_options',
    'get_engine_for_options',
    'configure_engine',
]

logger = logging.getLogger(__name__)

MEMORY_DATABASES = {'', ':memory:'}


def is_memory_database(options: DatabaseOptions) -> bool:
    """Check if the options name an in-memory database."""
    return options.database in MEMORY_DATABASES


def create_url_from_options(options: DatabaseOptions,
                            url_creator: Callable[..., sa.URL] = sa.URL.create) -> sa.URL:
    """Convert DatabaseOptions to SQLAlchemy URL.
    """
    if options.drivername == 'sqlite' and is_memory_database(options):
        return url_creator(
            drivername='sqlite',
            database=f'file:sqladapter-{uuid.uuid4().hex}',
            query={'mode': 'memory', 'cache': 'shared', 'uri': 'true'}
        )

    if options.drivername == 'sqlite':
        return url_creator(
            drivername='sqlite',
            database=options.database
        )

    raise ValueError(f'Unsupported database type: {options.drivername}')


def get_engine_for_options(options: DatabaseOptions,
                           engine_factory: Callable[..., Engine] = sa.create_engine,
                           **kwargs: Any) -> Engine:
    """Create a SQLAlchemy engine for the given options.

    Without pooling every checkout opens a fresh sqlite3 connection. An
    in-memory database is opened as a named shared-cache database, so every
    checkout is its own connection to the same data.
    """
    url = create_url_from_options(options)

    connect_args: dict[str, Any] = {'detect_types': options.detect_types}
    if options.timeout:
        connect_args['timeout'] = options.timeout

    engine_kwargs: dict[str, Any] = {'echo': False}

    if is_memory_database(options) or not options.use_pool:
        engine_kwargs['poolclass'] = NullPool
    else:
        engine_kwargs['pool_size'] = options.pool_max_connections
        engine_kwargs['pool_recycle'] = options.pool_max_idle_time
        engine_kwargs['pool_timeout'] = options.pool_wait_timeout
        engine_kwargs['max_overflow'] = 10
        engine_kwargs['pool_pre_ping'] = True
        engine_kwargs['pool_reset_on_return'] = 'rollback'

    engine_kwargs['connect_args'] = connect_args
    engine_kwargs.update(kwargs)

    engine = engine_factory(url, **engine_kwargs)
    configure_engine(engine, options)
    logger.debug(f'Created new engine for {options.drivername} at {options.database}')

    return engine


def configure_engine(engine: Engine, options: DatabaseOptions) -> None:
    """Install connection and transaction hooks on a SQLite engine.

    The sqlite3 driver's implicit transaction handling is switched off and
    SQLAlchemy's begin emits an explicit BEGIN instead, so a transaction
    covers every statement issued in it, DDL included.
    """
    sqlite3.register_converter('date', convert_date)
    sqlite3.register_converter('datetime', convert_datetime)

    @sa.event.listens_for(engine, 'connect')
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        if options.foreign_keys:
            dbapi_connection.execute('PRAGMA foreign_keys = ON')

    @sa.event.listens_for(engine, 'begin')
    def _on_begin(sa_connection):
        sa_connection.exec_driver_sql('BEGIN')


@register_driver('sqlite')
class SQLiteDatabase(Database):
    """Connection handle to a SQLite database file.

    Direct `execute()` calls run in their own short transaction and are
    committed immediately. `query()` holds a pooled connection until the
    returned rows are exhausted or closed. `begin()` hands out a transaction
    bound to its own pooled connection.

    An in-memory database lives only while a connection to it is open, so
    the handle keeps one connection (the anchor) open until it is closed.

    Tracks the number of statements run and their total time.
    """

    def __init__(self, engine: Engine, options: DatabaseOptions | None = None,
                 anchor: Any | None = None) -> None:
        self.engine = engine
        self.options = options
        self._anchor = anchor
        self.calls = 0
        self.time = 0
        self.closed = False

    @classmethod
    def open(cls, options: DatabaseOptions) -> Self:
        """Open the database file and check that it can be used.
        """
        with wrap_errors(OpenError, options.database):
            engine = get_engine_for_options(options)
            try:
                anchor = engine.raw_connection()
            except DRIVER_ERRORS:
                engine.dispose()
                raise
            if not is_memory_database(options):
                anchor.close()
                anchor = None
        logger.debug(f'Opened database {options.database!r}')
        return cls(engine, options, anchor)

    def _connect(self) -> sa.engine.Connection:
        """Check out a connection from the engine's pool."""
        if self.closed:
            raise sa.exc.ResourceClosedError('This database is closed')
        return self.engine.connect()

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    @property
    def is_pooled(self) -> bool:
        """Check if this handle reuses connections between calls
        """
        return not isinstance(self.engine.pool, NullPool)

    @dumpsql
    def execute(self, statement: str, *args: Any) -> int:
        """Execute a statement, commit it and return the number of rows affected.
        """
        with wrap_errors(ExecError, statement):
            with self._connect() as sa_connection:
                result = sa_connection.exec_driver_sql(statement, args or None)
                count = rows_affected(result)
                sa_connection.commit()
        return count

    @dumpsql
    def query(self, statement: str, *args: Any) -> SQLiteRows:
        """Execute a query and return its rows.

        The rows keep a connection checked out until they are exhausted
        or closed.
        """
        with wrap_errors(QueryError, statement):
            sa_connection = self._connect()
            try:
                result = sa_connection.exec_driver_sql(statement, args or None)
            except DRIVER_ERRORS:
                sa_connection.close()
                raise
        return SQLiteRows(result, statement, sa_connection)

    def begin(self) -> SQLiteTransaction:
        """Start a transaction on its own connection.
        """
        with wrap_errors(BeginError):
            sa_connection = self._connect()
            try:
                sa_transaction = sa_connection.begin()
            except DRIVER_ERRORS:
                sa_connection.close()
                raise
        logger.debug(f'Started transaction for connection {id(sa_connection)}')
        return SQLiteTransaction(self, sa_connection, sa_transaction)

    def close(self) -> None:
        """Dispose the engine and every pooled connection.
        """
        if self.closed:
            return
        self.closed = True
        with wrap_errors(CloseError):
            try:
                if self._anchor is not None:
                    self._anchor.close()
            finally:
                self.engine.dispose()
        logger.debug(f'Database closed: {self.calls} statements in {self.time:.2f}s (avg: {self.time/max(1,self.calls):.3f}s per statement)')


@load_options(cls=DatabaseOptions)
def connect(options: DatabaseOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> Database:
    """Open a database through the driver named in the options

    Args:
        options: Can be:
                - DatabaseOptions object
                - String name of a section in the config
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Returns
        Database handle for the configured driver

    Raises
        OpenError: if the database cannot be opened
    """
    if isinstance(options, DatabaseOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=DatabaseOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    driver_cls = get_driver_class(options.drivername)
    return driver_cls.open(options)


def open_database(data_source: str) -> Database:
    """Open the SQLite database at ``data_source`` with default options.
    """
    return connect(DatabaseOptions(drivername='sqlite', database=data_source))


new = open_database
