"""
PostgreSQL-specific strategy implementation.

Stored procedures are invoked with CALL using named notation
(`arg => value`), so parameter order never matters. OUT arguments are
passed as NULL; PostgreSQL returns their values as the single row of the
CALL result. Statement timeouts map to the `statement_timeout` setting.
"""
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from dbcommand.strategy.base import DatabaseStrategy, register_strategy

if TYPE_CHECKING:
    from dbcommand.options import DatabaseOptions
    from dbcommand.parameters import ParameterCollection

logger = logging.getLogger(__name__)


@register_strategy('postgresql')
class PostgresStrategy(DatabaseStrategy):
    """PostgreSQL-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for PostgreSQL."""
        return 'postgresql'

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for PostgreSQL."""
        query = {'application_name': options.appname} if options.appname else {}
        if options.timeout:
            query['connect_timeout'] = str(options.timeout)
        return sa.URL.create(
            drivername='postgresql+psycopg',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port,
            database=options.database,
            query=query,
        )

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for PostgreSQL connections."""
        return ['hostname', 'username', 'password', 'database', 'port']

    def build_procedure_call(self, name: str,
                             parameters: 'ParameterCollection') -> tuple[str, dict[str, Any]]:
        """Render `CALL name(arg => :arg, out_arg => NULL)`.
        """
        args = [f'{p.name} => :{p.name}' for p in parameters.inputs]
        args += [f'{p.name} => NULL' for p in parameters.outputs]
        params = {p.name: p.value for p in parameters.inputs}
        return f"CALL {name}({', '.join(args)})", params

    @contextmanager
    def statement_timeout(self, sa_connection: sa.engine.Connection,
                          seconds: float | None) -> Iterator[None]:
        """Set `statement_timeout` for the enclosed statements, then reset it.
        """
        if not seconds:
            yield
            return
        millis = max(1, int(seconds * 1000))
        sa_connection.exec_driver_sql(f'SET statement_timeout = {millis}')
        logger.debug(f'Set statement_timeout to {millis}ms')
        try:
            yield
        finally:
            try:
                sa_connection.exec_driver_sql('RESET statement_timeout')
            except sa.exc.DBAPIError as e:
                # aborted transactions reject further statements; rollback discards the SET
                logger.debug(f'Could not reset statement_timeout: {e}')
