"""
Fluent command builder and execution pipeline.

A CommandBuilder accumulates command text, parameters, output parameters,
a transaction, a timeout and a pre-execution hook without touching the
database. Every execution mode funnels through `execute`, which creates a
fresh driver command from the accumulated state, opens the connection if
needed, runs the command once and writes output values back through
their setters.

    total = []
    rows = (CommandBuilder.create_sp(cn, 'find_users')
        .with_parameter('name', 'alice')
        .with_output_parameter('total', total.append, int)
        .execute_and_read_all(lambda r: r['id']))
"""
import datetime
import logging
from collections.abc import Callable, Mapping
from contextlib import closing
from types import MappingProxyType
from typing import Any, Self, TypeVar

import pandas as pd
from dbcommand.data import load_frame
from dbcommand.driver import ConnectionState, DataReader, DbCommand
from dbcommand.driver import DbConnection
from dbcommand.exceptions import DuplicateParameterError, InvalidArgumentError
from dbcommand.mapping import Mapper, MapperWithIndex, read_all
from dbcommand.mapping import read_first_or_default
from dbcommand.output import OutputParameter
from dbcommand.parameters import add_input_parameters, add_output_parameter
from dbcommand.parameters import each_property
from dbcommand.types import CommandType, DbType

logger = logging.getLogger(__name__)

T = TypeVar('T')

__all__ = ['CommandBuilder']


class CommandBuilder:
    """Builds and executes a parameterized command against a connection.

    The connection is borrowed: the builder may open it but never closes it.
    """

    def __init__(self, connection: DbConnection, command_type: CommandType,
                 text: str) -> None:
        if connection is None:
            raise InvalidArgumentError('connection cannot be None')
        if text is None:
            raise InvalidArgumentError('text cannot be None')
        self.connection = connection
        self.command_type = CommandType(command_type)
        self.text = text

        self._parameters: dict[str, Any] = {}
        self._output_parameters: dict[str, OutputParameter] = {}
        self._transaction: Any = None
        self._timeout: float | None = None
        self._before_execution: Callable[[DbCommand], None] | None = None

    def __repr__(self) -> str:
        return (f'CommandBuilder({self.command_type.name}, {self.text!r}, '
                f'parameters={list(self._parameters)}, '
                f'output_parameters={list(self._output_parameters)})')

    @classmethod
    def create_text(cls, connection: DbConnection, text: str) -> Self:
        """Builder for a SQL statement.
        """
        return cls(connection, CommandType.TEXT, text)

    @classmethod
    def create_sp(cls, connection: DbConnection, text: str) -> Self:
        """Builder for a stored procedure call; `text` is the procedure name.
        """
        return cls(connection, CommandType.STORED_PROCEDURE, text)

    @property
    def parameters(self) -> Mapping[str, Any]:
        return MappingProxyType(self._parameters)

    @property
    def output_parameters(self) -> Mapping[str, OutputParameter]:
        return MappingProxyType(self._output_parameters)

    @property
    def transaction(self) -> Any:
        return self._transaction

    @property
    def timeout(self) -> float | None:
        return self._timeout

    # Modification

    def with_parameters(self, parameters: Any) -> Self:
        """Add every name/value pair of a mapping or object as input parameters.

        Names are checked before anything is inserted, so a duplicate
        leaves the builder unchanged.
        """
        if parameters is None:
            raise InvalidArgumentError('parameters cannot be None')
        pairs = each_property(parameters)
        for name, _ in pairs:
            self._check_parameter_for_duplication(name)
        for name, value in pairs:
            self._parameters[name] = value
        return self

    def with_parameter(self, name: str, value: Any) -> Self:
        if name is None or not str(name).strip():
            raise InvalidArgumentError('Name cannot be None or empty.')
        if value is None:
            raise InvalidArgumentError(f'value of parameter {name!r} cannot be None')
        self._check_parameter_for_duplication(name)
        self._parameters[name] = value
        return self

    def with_output_parameter(self, name: str, setter: Callable[[Any], None],
                              python_type: type | None = None, *,
                              db_type: DbType | None = None, size: int = 0) -> Self:
        """Declare a value the command produces.

        After each successful execution `setter` is called once with the
        driver value converted to `python_type`. `db_type` defaults to the
        type inferred from `python_type`; `size` 0 means driver default.
        """
        self._check_parameter_for_duplication(name)
        output = OutputParameter(name, setter, python_type=python_type,
                                 db_type=db_type, size=size)
        self._output_parameters[name] = output
        return self

    def with_transaction(self, transaction: Any) -> Self:
        self._transaction = transaction
        return self

    def with_timeout(self, timeout: float | datetime.timedelta | None) -> Self:
        """Override the driver command timeout, in seconds. None restores the default.
        """
        if isinstance(timeout, datetime.timedelta):
            timeout = timeout.total_seconds()
        if timeout is not None and timeout < 0:
            raise InvalidArgumentError('timeout cannot be negative')
        self._timeout = timeout
        return self

    def before_execution(self, handler: Callable[[DbCommand], None]) -> Self:
        """Register a hook called with the configured command right before it runs.
        """
        if handler is None:
            raise InvalidArgumentError('handler cannot be None')
        self._before_execution = handler
        return self

    def _check_parameter_for_duplication(self, name: str) -> None:
        if name in self._parameters or name in self._output_parameters:
            raise DuplicateParameterError(f"Duplicate parameter '{name}'.")

    # Execution

    def execute(self, handler: Callable[[DbCommand], T]) -> T:
        """Run `handler` against a freshly configured driver command.

        The command is closed on every exit path. Output setters fire in
        registration order, only after `handler` returned.
        """
        if handler is None:
            raise InvalidArgumentError('handler cannot be None')
        with closing(self.connection.create_command()) as cmd:
            cmd.transaction = self._transaction
            cmd.command_type = self.command_type
            cmd.text = self.text
            if self._timeout is not None:
                cmd.timeout = self._timeout
            add_input_parameters(cmd, self._parameters)
            for output in self._output_parameters.values():
                add_output_parameter(cmd, output.name, output.db_type, output.size)
            if self._before_execution is not None:
                self._before_execution(cmd)
            if self.connection.state == ConnectionState.CLOSED:
                logger.debug('Opening closed connection before execution')
                self.connection.open()
            result = handler(cmd)
            for output in self._output_parameters.values():
                output.set_value(cmd.parameters[output.name].value)
            return result

    def execute_non_query(self) -> None:
        def run(cmd: DbCommand) -> None:
            cmd.execute_non_query()
        self.execute(run)

    def execute_scalar(self) -> Any:
        """First column of the first row, None when there are no rows.
        """
        return self.execute(lambda cmd: cmd.execute_scalar())

    def execute_reader(self, callback: Callable[[DataReader], T]) -> T:
        """Pass an open reader to `callback`; the reader is closed afterwards.

        The reader is used as a context manager, so a driver can discard
        pending work when `callback` raises.
        """
        if callback is None:
            raise InvalidArgumentError('callback cannot be None')

        def run(cmd: DbCommand) -> T:
            with cmd.execute_reader() as reader:
                return callback(reader)
        return self.execute(run)

    def execute_and_read_all_with_index(self, mapper: MapperWithIndex[T]) -> list[T]:
        """Map every row together with its 0-based ordinal.
        """
        if mapper is None:
            raise InvalidArgumentError('mapper cannot be None')
        return self.execute_reader(lambda reader: read_all(reader, mapper))

    def execute_and_read_all(self, mapper: Mapper[T]) -> list[T]:
        """Map every row, in cursor order.
        """
        if mapper is None:
            raise InvalidArgumentError('mapper cannot be None')
        return self.execute_and_read_all_with_index(lambda reader, index: mapper(reader))

    def execute_and_read_first_or_default(self, mapper: Mapper[T],
                                          default: Any = None) -> T | Any:
        """Map the first row, or return `default` without calling `mapper`.
        """
        if mapper is None:
            raise InvalidArgumentError('mapper cannot be None')
        return self.execute_reader(lambda reader: read_first_or_default(reader, mapper, default))

    def execute_to_frame(self) -> pd.DataFrame:
        """Read every row into a DataFrame.
        """
        return self.execute_reader(load_frame)
