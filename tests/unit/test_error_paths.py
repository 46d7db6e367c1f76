"""
Error wrapping on the database, transaction and rows paths, driven with
mock SQLAlchemy objects.
"""
from unittest.mock import MagicMock

import pytest
from sqladapter import AffectedCountError, BeginError, CommitError, ExecError
from sqladapter import FetchError, QueryError, RollbackError, RowState
from sqladapter.connection import SQLiteDatabase
from sqladapter.cursor import SQLiteRows
from sqladapter.transaction import SQLiteTransaction

from tests.fixtures.mocks import _create_mock_engine, _create_mock_result
from tests.fixtures.mocks import driver_error


def test_execute_returns_rowcount(mock_engine):
    cn = SQLiteDatabase(mock_engine)
    sa_connection = mock_engine.connect.return_value

    assert cn.execute('UPDATE t SET a = ?', 1) == 1
    sa_connection.exec_driver_sql.assert_called_once_with('UPDATE t SET a = ?', (1,))
    sa_connection.commit.assert_called_once()
    assert cn.calls == 1


def test_execute_without_args_passes_no_parameters(mock_engine):
    cn = SQLiteDatabase(mock_engine)

    cn.execute('DELETE FROM t')

    mock_engine.connect.return_value.exec_driver_sql.assert_called_once_with('DELETE FROM t', None)


def test_execute_driver_failure(mock_engine):
    cn = SQLiteDatabase(mock_engine)
    cause = driver_error('no such table: t')
    mock_engine.connect.return_value.exec_driver_sql.side_effect = cause

    with pytest.raises(ExecError) as excinfo:
        cn.execute('DELETE FROM t')

    assert excinfo.value.statement == 'DELETE FROM t'
    assert excinfo.value.cause is cause


def test_execute_unreadable_rowcount():
    """Test a nominally successful statement whose count cannot be read"""
    engine = _create_mock_engine(_create_mock_result(rowcount=driver_error('closed')))
    cn = SQLiteDatabase(engine)

    with pytest.raises(AffectedCountError):
        cn.execute('DELETE FROM t')

    engine.connect.return_value.commit.assert_not_called()


def test_query_failure_releases_connection(mock_engine):
    cn = SQLiteDatabase(mock_engine)
    sa_connection = mock_engine.connect.return_value
    sa_connection.exec_driver_sql.side_effect = driver_error()

    with pytest.raises(QueryError, match='could not query rows'):
        cn.query('SELECT * FROM t')

    sa_connection.close.assert_called_once()


def test_begin_failure(mock_engine):
    cn = SQLiteDatabase(mock_engine)
    sa_connection = mock_engine.connect.return_value
    sa_connection.begin.side_effect = driver_error('database is locked')

    with pytest.raises(BeginError, match='could not start a transaction'):
        cn.begin()

    sa_connection.close.assert_called_once()


def test_commit_failure_releases_connection():
    sa_connection = MagicMock()
    sa_transaction = MagicMock()
    sa_transaction.commit.side_effect = driver_error('FOREIGN KEY constraint failed')
    tx = SQLiteTransaction(MagicMock(), sa_connection, sa_transaction)

    with pytest.raises(CommitError):
        tx.commit()

    sa_connection.close.assert_called_once()


def test_rollback_failure():
    sa_transaction = MagicMock()
    sa_transaction.rollback.side_effect = driver_error()
    tx = SQLiteTransaction(MagicMock(), MagicMock(), sa_transaction)

    with pytest.raises(RollbackError, match='could not abort the transaction'):
        tx.rollback()


def test_transaction_context_rolls_back_on_error():
    sa_transaction = MagicMock()
    tx = SQLiteTransaction(MagicMock(), MagicMock(), sa_transaction)

    with pytest.raises(KeyError):
        with tx:
            raise KeyError('boom')

    sa_transaction.rollback.assert_called_once()
    sa_transaction.commit.assert_not_called()


def test_fetch_failure_is_reported_through_err():
    """Test a driver failure mid-iteration ends iteration with ERROR"""
    result = _create_mock_result(rows=[(1,)])
    result.fetchone.side_effect = [(1,), driver_error('disk I/O error')]
    sa_connection = MagicMock()
    rows = SQLiteRows(result, 'SELECT id FROM t', sa_connection)

    assert rows.next() is True
    assert rows.advance() is RowState.ERROR
    assert isinstance(rows.err, FetchError)
    assert rows.err.statement == 'SELECT id FROM t'
    assert rows.next() is False
    sa_connection.close.assert_called_once()


def test_iteration_raises_terminal_error():
    result = _create_mock_result()
    result.fetchone.side_effect = [(1,), driver_error()]
    rows = SQLiteRows(result, 'SELECT id FROM t')

    seen = []
    with pytest.raises(FetchError):
        for row in rows:
            seen.append(row)

    assert seen == [(1,)]


def test_statement_after_close_fails(mock_engine):
    cn = SQLiteDatabase(mock_engine)
    cn.close()
    cn.close()

    mock_engine.dispose.assert_called_once()
    with pytest.raises(ExecError, match='database is closed'):
        cn.execute('DELETE FROM t')


def test_converter_failure_during_fetch():
    result = _create_mock_result()
    result.fetchone.side_effect = ValueError('Invalid isoformat string')
    rows = SQLiteRows(result, 'SELECT day FROM t')

    assert rows.advance() is RowState.ERROR
    assert isinstance(rows.err, FetchError)
    assert 'Invalid isoformat string' in str(rows.err)


def test_close_releases_memory_anchor(mock_engine):
    anchor = MagicMock()
    cn = SQLiteDatabase(mock_engine, anchor=anchor)
    cn.close()

    anchor.close.assert_called_once_with()
    mock_engine.dispose.assert_called_once()


if __name__ == '__main__':
    __import__('pytest').main([__file__])
