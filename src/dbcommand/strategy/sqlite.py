"""
SQLite-specific strategy implementation.

SQLite has no stored procedures and no per-statement timeout; the
strategy rejects the former and ignores the latter. Connections register
JSON adapters for dict/list and converters for declared date columns.
"""
import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import dateutil.parser
import sqlalchemy as sa
from dbcommand.exceptions import QueryError
from dbcommand.strategy.base import DatabaseStrategy, register_strategy

if TYPE_CHECKING:
    from dbcommand.options import DatabaseOptions
    from dbcommand.parameters import ParameterCollection

logger = logging.getLogger(__name__)


def convert_date(value: bytes):
    return dateutil.parser.parse(value.decode()).date()


def convert_datetime(value: bytes):
    return dateutil.parser.parse(value.decode())


@register_strategy('sqlite')
class SQLiteStrategy(DatabaseStrategy):
    """SQLite-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for SQLite."""
        return 'sqlite'

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for SQLite."""
        return sa.URL.create(drivername='sqlite', database=options.database)

    def get_engine_kwargs(self) -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for SQLite."""
        return {
            'connect_args': {
                'detect_types': sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES
            }
        }

    def configure_connection(self, sa_connection: sa.engine.Connection) -> None:
        """Register dialect-specific type adapters and converters for SQLite.
        """
        sqlite3.register_adapter(dict, json.dumps)
        sqlite3.register_adapter(list, json.dumps)
        sqlite3.register_converter('date', convert_date)
        sqlite3.register_converter('datetime', convert_datetime)
        sqlite3.register_converter('timestamp', convert_datetime)

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for SQLite connections."""
        return ['database']

    def build_procedure_call(self, name: str,
                             parameters: 'ParameterCollection') -> tuple[str, dict[str, Any]]:
        raise QueryError(f'SQLite does not support stored procedures: {name}')

    @contextmanager
    def statement_timeout(self, sa_connection: sa.engine.Connection,
                          seconds: float | None) -> Iterator[None]:
        if seconds:
            logger.debug(f'Ignoring {seconds}s command timeout: not supported by SQLite')
        yield
