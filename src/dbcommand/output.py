"""
Output parameter descriptors.
"""
import logging
from collections.abc import Callable
from typing import Any

from dbcommand.exceptions import InvalidArgumentError
from dbcommand.types import DbType, convert_value, infer_db_type

logger = logging.getLogger(__name__)


class OutputParameter:
    """A value the command produces and the caller wants written back.

    `python_type` is the type the driver value is converted to before
    `setter` is called. When only `db_type` is given the Python type is
    derived from it; when only `python_type` is given the DbType is inferred.
    """

    def __init__(self, name: str, setter: Callable[[Any], None],
                 python_type: type | None = None, db_type: DbType | None = None,
                 size: int = 0) -> None:
        if name is None or not str(name).strip():
            raise InvalidArgumentError('Name cannot be None or empty.')
        if setter is None or not callable(setter):
            raise InvalidArgumentError('setter must be callable')
        if python_type is not None and not isinstance(python_type, type):
            raise InvalidArgumentError(f'python_type must be a type, got {python_type!r}')
        if size is None or size < 0:
            raise InvalidArgumentError('size cannot be negative')
        if db_type is not None and not isinstance(db_type, DbType):
            db_type = DbType(db_type)

        self.name = name
        self.setter = setter
        self.db_type = db_type if db_type is not None else infer_db_type(python_type)
        self.python_type = python_type if python_type is not None else self.db_type.python_type
        self.size = size

    def __repr__(self) -> str:
        type_name = self.python_type.__name__ if self.python_type else None
        return (f'OutputParameter(name={self.name!r}, db_type={self.db_type.name}, '
                f'size={self.size}, python_type={type_name})')

    def set_value(self, value: Any) -> None:
        """Convert a driver value and hand it to the setter.
        """
        converted = convert_value(value, self.python_type)
        logger.debug(f'Output parameter {self.name!r} captured {converted!r}')
        self.setter(converted)
