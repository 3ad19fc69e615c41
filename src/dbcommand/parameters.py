"""
Command parameters and binding helpers.

Drivers hold their parameters in a ParameterCollection keyed by name.
The binding helpers are the only place the command builder touches a
driver command's parameters.
"""
import dataclasses
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from dbcommand.exceptions import DuplicateParameterError, InvalidArgumentError
from dbcommand.types import DbType, ParameterDirection, convert_param
from dbcommand.types import infer_db_type

logger = logging.getLogger(__name__)

__all__ = [
    'Parameter',
    'ParameterCollection',
    'each_property',
    'add_input_parameters',
    'add_output_parameter',
]


@dataclass
class Parameter:
    """A named value bound to a driver command.

    Output parameters start with value None; the driver fills `value`
    after execution.
    """
    name: str
    value: Any = None
    db_type: DbType = DbType.OBJECT
    size: int = 0
    direction: ParameterDirection = ParameterDirection.INPUT

    @property
    def is_output(self) -> bool:
        return self.direction is ParameterDirection.OUTPUT


class ParameterCollection:
    """Parameters of a driver command, in insertion order.
    """

    def __init__(self) -> None:
        self._items: dict[str, Parameter] = {}

    def add(self, parameter: Parameter) -> Parameter:
        if parameter.name in self._items:
            raise DuplicateParameterError(f"Duplicate parameter '{parameter.name}'.")
        self._items[parameter.name] = parameter
        return parameter

    def get(self, name: str, default: Parameter | None = None) -> Parameter | None:
        return self._items.get(name, default)

    def __getitem__(self, name: str) -> Parameter:
        return self._items[name]

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def __iter__(self) -> Iterator[Parameter]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f'ParameterCollection({list(self._items)!r})'

    @property
    def inputs(self) -> list[Parameter]:
        return [p for p in self._items.values() if not p.is_output]

    @property
    def outputs(self) -> list[Parameter]:
        return [p for p in self._items.values() if p.is_output]

    def values(self) -> dict[str, Any]:
        """Name to value mapping of every parameter.
        """
        return {name: p.value for name, p in self._items.items()}

    def clear(self) -> None:
        self._items.clear()


def each_property(source: Any) -> list[tuple[str, Any]]:
    """Name/value pairs of a mapping, dataclass, namedtuple or plain object.

    Plain objects contribute their public instance attributes.
    """
    if source is None:
        raise InvalidArgumentError('parameters cannot be None')
    if isinstance(source, Mapping):
        for key in source:
            if not isinstance(key, str) or not key.strip():
                raise InvalidArgumentError(f'parameter names must be non-empty strings, got {key!r}')
        return list(source.items())
    if dataclasses.is_dataclass(source) and not isinstance(source, type):
        return [(f.name, getattr(source, f.name)) for f in dataclasses.fields(source)]
    if isinstance(source, tuple) and hasattr(source, '_asdict'):
        return list(source._asdict().items())
    if hasattr(source, '__dict__'):
        return [(k, v) for k, v in vars(source).items() if not k.startswith('_')]
    raise InvalidArgumentError(
        f'Cannot read parameters from {type(source).__name__}; '
        'expected a mapping, dataclass, namedtuple or object')


def add_input_parameters(command: Any, parameters: Mapping[str, Any]) -> None:
    """Bind every name/value pair onto `command` as an input parameter.
    """
    for name, value in parameters.items():
        value = convert_param(value)
        command.parameters.add(Parameter(
            name=name,
            value=value,
            db_type=infer_db_type(type(value)) if value is not None else DbType.OBJECT,
            direction=ParameterDirection.INPUT,
            ))
    if parameters:
        logger.debug(f'Bound {len(parameters)} input parameter(s)')


def add_output_parameter(command: Any, name: str, db_type: DbType,
                         size: int = 0) -> Parameter:
    """Bind an output parameter onto `command`.
    """
    return command.parameters.add(Parameter(
        name=name,
        value=None,
        db_type=db_type,
        size=size,
        direction=ParameterDirection.OUTPUT,
        ))
