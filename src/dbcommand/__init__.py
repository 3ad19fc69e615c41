"""
Fluent, parameterized database commands.

Build a command, bind parameters, declare output parameters and run it
through one of the execution modes:

    import dbcommand as dbc

    cn = dbc.connect_named('Default')
    users = (dbc.create_text(cn, 'select id, name from users where team = :team')
             .with_parameter('team', 'core')
             .execute_and_read_all(lambda r: (r['id'], r['name'])))

The builder works with any connection implementing the DbConnection
protocol; `connect()` and `connect_named()` return the SQLAlchemy backed
ConnectionWrapper.
"""
__version__ = '0.1.0'

from typing import Any

from dbcommand.command import CommandBuilder
from dbcommand.config import DEFAULT_CONNECTION_STRING_NAME
from dbcommand.config import ConnectionStringSettings, get_connection_string
from dbcommand.config import get_connection_string_settings
from dbcommand.connection import ConnectionWrapper, connect, connect_named
from dbcommand.connection import dispose_all_engines
from dbcommand.driver import ConnectionState, DataReader, DbCommand
from dbcommand.driver import DbConnection
from dbcommand.exceptions import ConfigurationError, ConnectionFailure
from dbcommand.exceptions import DatabaseError, DbConnectionError
from dbcommand.exceptions import DuplicateParameterError, IntegrityError
from dbcommand.exceptions import IntegrityViolationError, InvalidArgumentError
from dbcommand.exceptions import OperationalError, ProgrammingError
from dbcommand.exceptions import QueryError, TypeConversionError
from dbcommand.exceptions import UniqueViolation, ValidationError
from dbcommand.mapping import Mapper, MapperWithIndex
from dbcommand.options import DatabaseOptions
from dbcommand.output import OutputParameter
from dbcommand.types import CommandType, DbType, ParameterDirection


def create_text(cn: DbConnection, text: str) -> CommandBuilder:
    """Builder for a SQL statement.
    """
    return CommandBuilder.create_text(cn, text)


def create_sp(cn: DbConnection, name: str) -> CommandBuilder:
    """Builder for a stored procedure call.
    """
    return CommandBuilder.create_sp(cn, name)


def execute_non_query(cn: DbConnection, sql: str, **params: Any) -> None:
    """Run a SQL statement with named parameters for effect.
    """
    create_text(cn, sql).with_parameters(params).execute_non_query()


def execute_scalar(cn: DbConnection, sql: str, **params: Any) -> Any:
    """Run a SQL statement with named parameters and return its first value.
    """
    return create_text(cn, sql).with_parameters(params).execute_scalar()


__all__ = [
    'CommandBuilder',
    'create_text',
    'create_sp',
    'execute_non_query',
    'execute_scalar',
    'connect',
    'connect_named',
    'dispose_all_engines',
    'ConnectionWrapper',
    'DatabaseOptions',
    'get_connection_string',
    'get_connection_string_settings',
    'ConnectionStringSettings',
    'DEFAULT_CONNECTION_STRING_NAME',
    'CommandType',
    'DbType',
    'ParameterDirection',
    'ConnectionState',
    'DbConnection',
    'DbCommand',
    'DataReader',
    'Mapper',
    'MapperWithIndex',
    'OutputParameter',
    'DatabaseError',
    'ConnectionFailure',
    'QueryError',
    'TypeConversionError',
    'IntegrityViolationError',
    'ValidationError',
    'InvalidArgumentError',
    'DuplicateParameterError',
    'ConfigurationError',
    'DbConnectionError',
    'IntegrityError',
    'ProgrammingError',
    'OperationalError',
    'UniqueViolation',
]
