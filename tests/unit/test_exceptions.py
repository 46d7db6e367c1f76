import sqlite3

import pytest
from sqladapter.exceptions import DRIVER_ERRORS, AffectedCountError
from sqladapter.exceptions import CommitError, DatabaseError, ExecError
from sqladapter.exceptions import OpenError, QueryError, ScanError
from sqladapter.utils import rows_affected, wrap_errors

from tests.fixtures.mocks import _create_mock_result, driver_error


def test_message_includes_statement_and_cause():
    """Test SQL-bearing errors carry the statement text and the cause"""
    cause = sqlite3.OperationalError('no such table: t')
    err = ExecError(cause, 'INSERT INTO t VALUES (?)')

    assert str(err) == "could not execute sql statement 'INSERT INTO t VALUES (?)': no such table: t"
    assert err.statement == 'INSERT INTO t VALUES (?)'
    assert err.cause is cause
    assert err.operation == 'execute'


def test_message_without_statement():
    """Test statement-less errors only name the operation and the cause"""
    err = CommitError(sqlite3.OperationalError('database is locked'))

    assert str(err) == 'could not commit the transaction: database is locked'
    assert err.statement is None


def test_open_error_keeps_data_source():
    """Test OpenError records the identifier it tried to open"""
    err = OpenError(sqlite3.OperationalError('unable to open database file'), '/nope/x.db')

    assert err.data_source == '/nope/x.db'
    assert "'/nope/x.db'" in str(err)


@pytest.mark.parametrize('error_cls', [OpenError, ExecError, AffectedCountError,
                                       QueryError, CommitError, ScanError])
def test_all_errors_share_base(error_cls):
    """Test every adapter error can be caught as DatabaseError"""
    assert issubclass(error_cls, DatabaseError)


def test_wrap_errors_chains_cause():
    """Test wrapped driver errors keep the original as __cause__"""
    cause = driver_error()

    with pytest.raises(QueryError) as excinfo:
        with wrap_errors(QueryError, 'SELECT 1'):
            raise cause

    assert excinfo.value.__cause__ is cause
    assert excinfo.value.cause is cause
    assert isinstance(excinfo.value.cause, DRIVER_ERRORS)


def test_wrap_errors_ignores_other_exceptions():
    """Test non-driver errors pass through unchanged"""
    with pytest.raises(KeyError):
        with wrap_errors(ExecError, 'SELECT 1'):
            raise KeyError('x')


def test_wrap_errors_does_not_rewrap_adapter_errors():
    """Test an adapter error raised inside the block keeps its class"""
    with pytest.raises(AffectedCountError):
        with wrap_errors(ExecError, 'DELETE FROM t'):
            raise AffectedCountError(driver_error())


def test_rows_affected_returns_count():
    assert rows_affected(_create_mock_result(rowcount=3)) == 3


def test_rows_affected_without_count_is_zero():
    """Test the driver's -1 for statements without a count becomes 0"""
    assert rows_affected(_create_mock_result(rowcount=-1)) == 0


def test_rows_affected_unreadable_count():
    """Test a failing rowcount access raises AffectedCountError"""
    result = _create_mock_result(rowcount=driver_error('cursor closed'))

    with pytest.raises(AffectedCountError, match='could not get number of rows affected'):
        rows_affected(result)


def test_rows_affected_non_integer_count():
    result = _create_mock_result(rowcount=None)

    with pytest.raises(AffectedCountError):
        rows_affected(result)


if __name__ == '__main__':
    __import__('pytest').main([__file__])
