"""
Base interfaces for database drivers.

Defines the abstract classes every driver implementation must inherit from.
Callers program against ``Database``, ``Transaction`` and ``Rows``; a concrete
driver registers itself under a name with ``register_driver`` and is picked
up by ``connect()`` through ``DatabaseOptions.drivername``.
"""
import enum
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, Self

if TYPE_CHECKING:
    from sqladapter.exceptions import DatabaseError
    from sqladapter.options import DatabaseOptions

logger = logging.getLogger(__name__)

# Registry of driver name -> database class
_DRIVER_REGISTRY: dict[str, type['Database']] = {}


def register_driver(name: str):
    """Decorator to register a database class for a driver name.

    Usage:
        @register_driver('sqlite')
        class SQLiteDatabase(Database):
            ...
    """
    def decorator(cls: type['Database']) -> type['Database']:
        _DRIVER_REGISTRY[name] = cls
        return cls
    return decorator


def get_available_drivers() -> list[str]:
    """Return list of registered driver names."""
    return list(_DRIVER_REGISTRY.keys())


def is_supported_driver(name: str) -> bool:
    """Check if a driver is registered."""
    return name in _DRIVER_REGISTRY


def get_driver_class(name: str) -> type['Database']:
    """Get the database class registered for a driver name."""
    if name not in _DRIVER_REGISTRY:
        raise ValueError(f'Unsupported driver: {name}. Available: {get_available_drivers()}')
    return _DRIVER_REGISTRY[name]


class RowState(enum.Enum):
    """Outcome of advancing a result set by one row."""

    ROW = 'row'
    DONE = 'done'
    ERROR = 'error'


class Rows(ABC):
    """Forward-only cursor over the rows of a query.

    Examples
        with db.query('select id, name from t') as rows:
            while rows.next():
                id_, name = rows.scan(int, str)
        if rows.err is not None:
            raise rows.err
    """

    @abstractmethod
    def advance(self) -> RowState:
        """Move to the next row and report whether one is available."""

    @abstractmethod
    def scan(self, *dest: Any) -> tuple:
        """Decode the current row into the destinations, positionally."""

    @abstractmethod
    def columns(self) -> list[str]:
        """Column names of the result set."""

    @abstractmethod
    def close(self) -> None:
        """Release the result set. Safe to call more than once."""

    @property
    @abstractmethod
    def err(self) -> 'DatabaseError | None':
        """Error that terminated iteration, if any."""

    def next(self) -> bool:
        """Move to the next row.

        Returns False both when the rows are exhausted and when the driver
        failed; check ``err`` afterwards to tell the two apart.
        """
        return self.advance() is RowState.ROW

    def __iter__(self) -> Iterator[tuple]:
        """Yield remaining rows as tuples, raising the terminal error if any."""
        while (state := self.advance()) is RowState.ROW:
            yield self.scan(*([None] * len(self.columns())))
        if state is RowState.ERROR:
            raise self.err

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()


class Transaction(ABC):
    """A unit of work on one connection, finalised by commit or rollback.

    Used as a context manager the transaction commits when the block exits
    cleanly and rolls back when it raises.

    Examples
        with db.begin() as tx:
            tx.execute('delete from t where id = ?', 1)
            tx.execute('insert into t values (?)', 2)
    """

    @abstractmethod
    def execute(self, statement: str, *args: Any) -> int:
        """Execute a statement and return the number of rows affected."""

    @abstractmethod
    def query(self, statement: str, *args: Any) -> Rows:
        """Execute a query and return its rows."""

    @abstractmethod
    def commit(self) -> None:
        """Apply all statements issued within the transaction."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard all statements issued within the transaction."""

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        if exc_type is not None:
            logger.warning('Rolling back the current transaction')
            self.rollback()
        else:
            self.commit()


class Database(ABC):
    """A connection handle to one database.

    Used as a context manager the handle is closed on exit.
    """

    @classmethod
    @abstractmethod
    def open(cls, options: 'DatabaseOptions') -> Self:
        """Open the database described by the options."""

    @abstractmethod
    def execute(self, statement: str, *args: Any) -> int:
        """Execute a statement and return the number of rows affected."""

    @abstractmethod
    def query(self, statement: str, *args: Any) -> Rows:
        """Execute a query and return its rows."""

    @abstractmethod
    def begin(self) -> Transaction:
        """Start a transaction."""

    @abstractmethod
    def close(self) -> None:
        """Release the connection handle. Safe to call more than once."""

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()
