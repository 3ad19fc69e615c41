"""
Database connection handling with SQLAlchemy.

This module provides:
1. The `ConnectionWrapper` class, the DbConnection implementation used by
   CommandBuilder (open/state/create_command)
2. The `connect()` function for opening a connection from options
3. The `connect_named()` function for a lazily opened connection resolved
   from a named connection string
4. Engine creation and management through a thread-safe registry
"""
import atexit
import logging
import threading
from dataclasses import fields
from typing import Any, Self

import sqlalchemy as sa
from dbcommand.config import get_connection_string_settings
from dbcommand.driver import ConnectionState
from dbcommand.exceptions import ConfigurationError, ConnectionFailure
from dbcommand.exceptions import QueryError
from dbcommand.options import DatabaseOptions
from dbcommand.sqlcommand import SqlCommand
from dbcommand.strategy import DatabaseStrategy, get_db_strategy
from dbcommand.strategy import get_strategy
from dbcommand.utils import ensure_commit
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from libb import load_options

__all__ = [
    'ConnectionWrapper',
    'connect',
    'connect_named',
    'create_url_from_options',
    'get_engine_for_url',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


def create_url_from_options(options: DatabaseOptions) -> sa.URL:
    """Convert DatabaseOptions to SQLAlchemy URL.
    """
    return get_strategy(options.drivername).build_connection_url(options)


def get_engine_for_url(url: sa.URL | str) -> Engine:
    """Get or create a SQLAlchemy engine for the given URL.

    Engines never pool connections: each ConnectionWrapper.open() gets a
    new DBAPI connection.
    """
    url = sa.make_url(url)
    key = url.render_as_string(hide_password=False)

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {url.get_backend_name()}')
            return _engine_registry[key]

        strategy = get_strategy(url.get_backend_name())
        engine_kwargs: dict[str, Any] = {'echo': False, 'poolclass': NullPool}
        engine_kwargs.update(strategy.get_engine_kwargs())
        engine = sa.create_engine(url, **engine_kwargs)

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {url.get_backend_name()}')
        return engine


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in list(_engine_registry.values()):
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


class ConnectionWrapper:
    """Wraps a SQLAlchemy engine connection as a DbConnection.

    This class:
    1. Opens a SQLAlchemy connection on demand and reports its state
    2. Creates SqlCommand instances for CommandBuilder
    3. Tracks an explicit transaction started with begin()
    4. Tracks statement counts and execution time
    5. Supports the context manager protocol for closing
    """

    def __init__(self, engine: Engine, options: DatabaseOptions | None = None) -> None:
        self.engine = engine
        self.options = options
        self.sa_connection: sa.engine.Connection | None = None
        self._dialect = engine.dialect.name.lower()
        self._transaction: sa.engine.Transaction | None = None
        self.calls = 0
        self.time = 0.0

    def __enter__(self) -> Self:
        """Support for context manager protocol
        """
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        """Close the connection when exiting the context manager
        """
        self.close()

    def __repr__(self) -> str:
        return f'ConnectionWrapper({self._dialect}, state={self.state.value})'

    @property
    def dialect(self) -> str:
        """Return the dialect name ('postgresql' or 'sqlite')."""
        return self._dialect

    @property
    def strategy(self) -> DatabaseStrategy:
        return get_db_strategy(self)

    @property
    def state(self) -> ConnectionState:
        if self.sa_connection is None or self.sa_connection.closed:
            return ConnectionState.CLOSED
        return ConnectionState.OPEN

    @property
    def in_transaction(self) -> bool:
        """True while a transaction started with begin() is active."""
        return self._transaction is not None and self._transaction.is_active

    def open(self) -> None:
        """Open a new SQLAlchemy connection; no-op when already open.
        """
        if self.state is ConnectionState.OPEN:
            logger.debug('Connection already open')
            return
        try:
            self.sa_connection = self.engine.connect()
        except sa.exc.DBAPIError as err:
            raise ConnectionFailure(f'Could not connect to {self._dialect} database: {err}') from err
        self.strategy.configure_connection(self.sa_connection)
        logger.debug(f'Opened {self._dialect} connection')

    def close(self) -> None:
        """Close the SQLAlchemy connection, committing first unless a transaction is active
        """
        if self.state is ConnectionState.CLOSED:
            return
        if not self.in_transaction:
            ensure_commit(self.sa_connection)
        self.sa_connection.close()
        self._transaction = None
        logger.debug(f'Connection closed: {self.calls} queries in {self.time:.2f}s (avg: {self.time/max(1,self.calls):.3f}s per query)')

    def create_command(self) -> SqlCommand:
        return SqlCommand(self)

    def begin(self) -> sa.engine.Transaction:
        """Begin an explicit transaction and return it.

        Pending implicit work is committed first. Commands only run in the
        transaction when it is passed to CommandBuilder.with_transaction.
        """
        if self.state is ConnectionState.CLOSED:
            raise ConnectionFailure('Connection is not open')
        if self.in_transaction:
            raise QueryError('A transaction is already in progress')
        ensure_commit(self.sa_connection)
        self._transaction = self.sa_connection.begin()
        return self._transaction

    def commit(self) -> None:
        self.sa_connection.commit()

    def rollback(self) -> None:
        self.sa_connection.rollback()

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1


@load_options(cls=DatabaseOptions)
def connect(options: DatabaseOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> ConnectionWrapper:
    """Connect to a database and return an open ConnectionWrapper

    Args:
        options: Can be:
                - DatabaseOptions object
                - String naming a section of the configuration
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Returns
        Open ConnectionWrapper
    """
    if isinstance(options, DatabaseOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=DatabaseOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    engine = get_engine_for_url(create_url_from_options(options))
    cn = ConnectionWrapper(engine, options)
    cn.open()
    return cn


def connect_named(name: str | None = None, config: Any = None) -> ConnectionWrapper:
    """Return a closed ConnectionWrapper for a named connection string.

    The connection is opened by the first command executed on it. A
    `provider_name` in the settings selects the DBAPI driver.
    """
    settings = get_connection_string_settings(name, config)
    try:
        url = sa.make_url(settings.connection_string)
    except sa.exc.ArgumentError as err:
        raise ConfigurationError(f'Invalid connection string {settings.name!r}: {err}') from err
    if settings.provider_name:
        url = url.set(drivername=f'{url.get_backend_name()}+{settings.provider_name}')
    return ConnectionWrapper(get_engine_for_url(url))
