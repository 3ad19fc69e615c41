"""
Driver abstraction consumed by the command builder.

Any object satisfying these protocols can back a CommandBuilder. The
SQLAlchemy implementation lives in dbcommand.connection and
dbcommand.sqlcommand; tests use recording fakes.
"""
import enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from dbcommand.types import CommandType

if TYPE_CHECKING:
    from dbcommand.parameters import ParameterCollection


class ConnectionState(enum.Enum):
    CLOSED = 'closed'
    OPEN = 'open'


@runtime_checkable
class DataReader(Protocol):
    """Forward-only cursor positioned before the first row until read().

    Used as a context manager; `__exit__` sees any exception raised while
    rows were consumed.
    """

    @property
    def field_count(self) -> int: ...

    def read(self) -> bool: ...

    def get_name(self, index: int) -> str: ...

    def get_ordinal(self, name: str) -> int: ...

    def get_value(self, index: int) -> Any: ...

    def is_null(self, key: int | str) -> bool: ...

    def __getitem__(self, key: int | str) -> Any: ...

    def close(self) -> None: ...

    def __enter__(self) -> 'DataReader': ...

    def __exit__(self, exc_type, exc_val, exc_tb) -> None: ...


@runtime_checkable
class DbCommand(Protocol):
    text: str
    command_type: CommandType
    timeout: float | None
    transaction: Any

    @property
    def parameters(self) -> 'ParameterCollection': ...

    def execute_non_query(self) -> int: ...

    def execute_scalar(self) -> Any: ...

    def execute_reader(self) -> DataReader: ...

    def close(self) -> None: ...


@runtime_checkable
class DbConnection(Protocol):

    @property
    def state(self) -> ConnectionState: ...

    def open(self) -> None: ...

    def create_command(self) -> DbCommand: ...
