"""
Unit tests for dialect strategies: URLs, statements and procedure calls.
"""
import pytest
import sqlalchemy as sa
from dbcommand.connection import create_url_from_options
from dbcommand.exceptions import QueryError
from dbcommand.options import DatabaseOptions
from dbcommand.parameters import Parameter, ParameterCollection
from dbcommand.strategy import PostgresStrategy, SQLiteStrategy
from dbcommand.strategy import get_db_strategy, get_strategy
from dbcommand.strategy import get_strategy_class
from dbcommand.types import CommandType, ParameterDirection


@pytest.fixture
def params():
    collection = ParameterCollection()
    collection.add(Parameter('threshold', 15))
    collection.add(Parameter('total', direction=ParameterDirection.OUTPUT))
    collection.add(Parameter('label', 'x'))
    return collection


def test_strategy_for_connection_or_engine():
    engine = sa.create_engine('sqlite://')
    assert get_db_strategy(engine).dialect_name == 'sqlite'
    with pytest.raises(AttributeError):
        get_db_strategy(object())


def test_registry():
    assert get_strategy_class('sqlite') is SQLiteStrategy
    assert get_strategy_class('postgresql') is PostgresStrategy
    with pytest.raises(ValueError, match='Available'):
        get_strategy_class('oracle')
    assert isinstance(get_strategy('postgresql'), PostgresStrategy)
    assert get_strategy('sqlite') is get_strategy('sqlite')
    with pytest.raises(ValueError, match='Unsupported dialect'):
        get_strategy('oracle')


def test_text_statement_binds_by_name(params):
    sql, values = get_strategy('postgresql').build_statement(
        CommandType.TEXT, 'select :threshold, :label', params)
    assert sql == 'select :threshold, :label'
    assert values == {'threshold': 15, 'total': None, 'label': 'x'}


def test_postgres_procedure_call_uses_named_notation(params):
    sql, values = get_strategy('postgresql').build_statement(
        CommandType.STORED_PROCEDURE, 'reports.count_above', params)
    assert sql == 'CALL reports.count_above(threshold => :threshold, label => :label, total => NULL)'
    assert values == {'threshold': 15, 'label': 'x'}


def test_postgres_procedure_without_parameters():
    sql, values = get_strategy('postgresql').build_statement(
        CommandType.STORED_PROCEDURE, ' refresh ', ParameterCollection())
    assert sql == 'CALL refresh()'
    assert values == {}


@pytest.mark.parametrize('name', ['drop table x;', 'a b', '1proc', ''])
def test_invalid_procedure_name(name):
    with pytest.raises(QueryError, match='Invalid procedure name'):
        get_strategy('postgresql').build_statement(
            CommandType.STORED_PROCEDURE, name, ParameterCollection())


def test_invalid_parameter_name():
    collection = ParameterCollection()
    collection.add(Parameter('bad name', 1))
    with pytest.raises(QueryError, match='Invalid parameter name'):
        get_strategy('sqlite').build_statement(CommandType.TEXT, 'select 1', collection)


def test_sqlite_rejects_procedures(params):
    with pytest.raises(QueryError, match='does not support stored procedures'):
        get_strategy('sqlite').build_statement(CommandType.STORED_PROCEDURE, 'proc', params)


def test_postgres_url():
    options = DatabaseOptions(hostname='db', username='u', password='p',
                              database='d', port=5433, timeout=7, appname='app')
    url = create_url_from_options(options)
    assert url.drivername == 'postgresql+psycopg'
    assert url.host == 'db'
    assert url.port == 5433
    assert url.database == 'd'
    assert url.query['application_name'] == 'app'
    assert url.query['connect_timeout'] == '7'


def test_sqlite_url():
    url = create_url_from_options(DatabaseOptions(drivername='sqlite', database='test.db'))
    assert url.drivername == 'sqlite'
    assert url.database == 'test.db'


def test_sqlite_engine_kwargs():
    kwargs = SQLiteStrategy().get_engine_kwargs()
    assert 'detect_types' in kwargs['connect_args']


def test_postgres_timeout_sets_and_resets(mocker):
    sa_connection = mocker.Mock()
    with get_strategy('postgresql').statement_timeout(sa_connection, 1.5):
        sa_connection.exec_driver_sql.assert_called_once_with('SET statement_timeout = 1500')
    sa_connection.exec_driver_sql.assert_called_with('RESET statement_timeout')


def test_postgres_timeout_reset_after_error(mocker):
    sa_connection = mocker.Mock()
    with pytest.raises(RuntimeError), get_strategy('postgresql').statement_timeout(sa_connection, 2):
        raise RuntimeError('query failed')
    sa_connection.exec_driver_sql.assert_called_with('RESET statement_timeout')


def test_postgres_reset_failure_is_not_raised(mocker):
    sa_connection = mocker.Mock()
    error = sa.exc.DBAPIError('RESET statement_timeout', {}, Exception('aborted'))
    sa_connection.exec_driver_sql.side_effect = [None, error]
    with get_strategy('postgresql').statement_timeout(sa_connection, 2):
        pass
    assert sa_connection.exec_driver_sql.call_count == 2


@pytest.mark.parametrize('seconds', [None, 0])
def test_no_timeout_leaves_connection_alone(mocker, seconds):
    sa_connection = mocker.Mock()
    with get_strategy('postgresql').statement_timeout(sa_connection, seconds):
        pass
    sa_connection.exec_driver_sql.assert_not_called()


if __name__ == '__main__':
    __import__('pytest').main([__file__])
