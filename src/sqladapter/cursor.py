"""
Result-set cursor for the SQLite driver.

Rows talk directly to the SQLAlchemy result: nothing is prefetched beyond
what the driver itself buffers.
"""
import logging
from typing import Any

import pandas as pd
import sqlalchemy as sa
from sqladapter.base import Rows, RowState
from sqladapter.exceptions import DRIVER_ERRORS, CloseError, FetchError
from sqladapter.exceptions import ScanError
from sqladapter.types import decode_row

logger = logging.getLogger(__name__)

__all__ = ['SQLiteRows']


class SQLiteRows(Rows):
    """Rows produced by a query against a SQLite database.

    When the rows own their connection (a query issued directly on the
    database handle) the connection is released as soon as the rows are
    exhausted, fail, or are closed. Rows from a transaction never release
    the transaction's connection.
    """

    def __init__(self, result: sa.engine.CursorResult, statement: str,
                 sa_connection: sa.engine.Connection | None = None) -> None:
        """Wrap an executed result.

        Args:
            result: The executed SQLAlchemy result
            statement: SQL text that produced the result, for error context
            sa_connection: Connection to release on close, if owned
        """
        self.result = result
        self.statement = statement
        self._sa_connection = sa_connection
        self._columns = list(result.keys()) if result.returns_rows else []
        self._current: tuple | None = None
        self._err: FetchError | None = None
        self.closed = False

    @property
    def err(self) -> FetchError | None:
        return self._err

    def columns(self) -> list[str]:
        return list(self._columns)

    def advance(self) -> RowState:
        """Move to the next row.

        Returns ROW when a row is available, DONE when the rows are
        exhausted and ERROR when the driver failed (see ``err``).
        """
        self._current = None
        if self.closed:
            return RowState.ERROR if self._err is not None else RowState.DONE
        if not self.result.returns_rows:
            self.close()
            return RowState.DONE

        try:
            row = self.result.fetchone()
        except (*DRIVER_ERRORS, ValueError, TypeError) as exc:
            # sqlite3 column converters raise plain ValueError on bad text
            self._err = FetchError(exc, self.statement)
            logger.error(f'Error fetching rows:\nSQL:\n{self.statement}\n{exc}')
            self.close()
            return RowState.ERROR

        if row is None:
            self.close()
            return RowState.DONE

        self._current = tuple(row)
        return RowState.ROW

    def scan(self, *dest: Any) -> tuple:
        """Decode the current row into the destinations.

        Each destination is a ``Dest`` slot, a type used as converter, or
        None for the raw value. Returns the decoded values as a tuple.
        """
        if self._current is None:
            cause = ValueError('scan called without calling next')
            raise ScanError(cause) from cause
        try:
            return decode_row(self._current, dest)
        except Exception as exc:
            raise ScanError(exc) from exc

    def to_frame(self) -> pd.DataFrame:
        """Drain the remaining rows into a DataFrame.

        Always returns a DataFrame, with columns preserved for empty results.
        """
        data = list(self)
        if not data:
            return pd.DataFrame(columns=self._columns)
        return pd.DataFrame.from_records(data, columns=self._columns)

    def close(self) -> None:
        """Release the result and, if owned, its connection."""
        if self.closed:
            return
        self.closed = True
        self._current = None
        try:
            try:
                self.result.close()
            finally:
                if self._sa_connection is not None:
                    self._sa_connection.close()
                    logger.debug('Released query connection')
        except DRIVER_ERRORS as exc:
            raise CloseError(exc, self.statement) from exc
