"""
Driver command executed through SQLAlchemy.

SqlCommand implements the DbCommand protocol for a ConnectionWrapper.
Text commands run as SQLAlchemy `text()` constructs with `:name` bind
parameters; stored procedures are rendered by the dialect strategy.
Output parameter values are taken from the first result row, matching
columns to parameter names case-insensitively.
"""
import logging
import time
from functools import wraps
from typing import TYPE_CHECKING, Any, Self

import sqlalchemy as sa
from dbcommand.driver import ConnectionState
from dbcommand.exceptions import ConnectionFailure, QueryError
from dbcommand.parameters import ParameterCollection
from dbcommand.reader import Reader
from dbcommand.types import CommandType
from dbcommand.utils import ensure_commit

if TYPE_CHECKING:
    from dbcommand.connection import ConnectionWrapper

logger = logging.getLogger(__name__)

__all__ = ['SqlCommand']


def dumpsql(func):
    """Decorator for logging command text, parameters and timing."""
    @wraps(func)
    def wrapper(self, *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{self.text}\nparams: {self.parameters.values()}')
        try:
            return func(self, *args, **kwargs)
        except Exception:
            logger.error(f'Error with command:\nSQL:\n{self.text}\nparams: {self.parameters.values()}')
            raise
        finally:
            elapsed = time.time() - start
            self.connection.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


class SqlCommand:
    """A single executable command bound to a ConnectionWrapper.
    """

    def __init__(self, connection: 'ConnectionWrapper') -> None:
        self.connection = connection
        self.text: str = ''
        self.command_type: CommandType = CommandType.TEXT
        self.timeout: float | None = None
        self.transaction: Any = None
        self._parameters = ParameterCollection()
        self._reader: Reader | None = None
        self._closed = False

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f'SqlCommand({self.command_type.name}, {self.text!r}, {self._parameters!r})'

    @property
    def parameters(self) -> ParameterCollection:
        return self._parameters

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the command; an open reader is closed first.
        """
        if self._closed:
            return
        if self._reader is not None and not self._reader.closed:
            self._reader.close()
        self._reader = None
        self._closed = True

    def _check_ready(self) -> None:
        if self._closed:
            raise QueryError('Command is closed')
        if self.connection.state is not ConnectionState.OPEN:
            raise ConnectionFailure('Connection is not open')
        if self.transaction is None:
            return
        if not getattr(self.transaction, 'is_active', False):
            raise QueryError('Transaction is no longer active')
        if getattr(self.transaction, 'connection', None) is not self.connection.sa_connection:
            raise QueryError('Transaction is not associated with this connection')

    @property
    def _autocommit(self) -> bool:
        return self.transaction is None and not self.connection.in_transaction

    @dumpsql
    def _execute(self) -> sa.CursorResult:
        self._check_ready()
        strategy = self.connection.strategy
        sql, params = strategy.build_statement(self.command_type, self.text, self._parameters)
        sa_connection = self.connection.sa_connection
        try:
            with strategy.statement_timeout(sa_connection, self.timeout):
                return sa_connection.execute(sa.text(sql), params)
        except Exception:
            self._abort()
            raise

    def _capture_outputs(self, row: sa.Row | None) -> None:
        outputs = self._parameters.outputs
        if not outputs or row is None:
            return
        values = {str(k).lower(): v for k, v in row._mapping.items()}
        for parameter in outputs:
            if parameter.name.lower() in values:
                parameter.value = values[parameter.name.lower()]

    def _complete(self) -> None:
        if self._autocommit:
            ensure_commit(self.connection.sa_connection)

    def _abort(self) -> None:
        if not self._autocommit:
            return
        try:
            self.connection.rollback()
        except Exception as e:
            logger.debug(f'Could not roll back after failed command: {e}')

    def execute_non_query(self) -> int:
        """Run the command and return the affected row count.
        """
        result = self._execute()
        try:
            if self._parameters.outputs and result.returns_rows:
                self._capture_outputs(result.fetchone())
            rowcount = result.rowcount
        except Exception:
            self._abort()
            raise
        finally:
            result.close()
        self._complete()
        return rowcount

    def execute_scalar(self) -> Any:
        """First column of the first row, None when there are no rows.
        """
        result = self._execute()
        try:
            row = result.fetchone() if result.returns_rows else None
            self._capture_outputs(row)
        except Exception:
            self._abort()
            raise
        finally:
            result.close()
        self._complete()
        return row[0] if row is not None else None

    def execute_reader(self) -> Reader:
        """Run the command and return a reader over its rows.

        Output parameters are filled when the first row is read. Pending
        work is committed when the reader closes, or rolled back when a
        `with` block over the reader exits with an exception.
        """
        result = self._execute()
        self._reader = Reader(result, on_first_row=self._capture_outputs,
                              on_close=self._complete, on_error=self._abort)
        return self._reader
