"""
Driver-neutral command and parameter types.

This module provides:
- CommandType: whether command text is a statement or a procedure name
- DbType: parameter types understood by every driver
- ParameterDirection: input vs. output binding
- infer_db_type: resolve a DbType from a Python type
- convert_param: normalize a Python value before it is bound
- convert_value: coerce a driver value to a requested Python type
"""
import datetime
import decimal
import enum
import logging
import math
import uuid
from typing import Any

import dateutil.parser
import numpy as np
import pandas as pd
from dbcommand.exceptions import TypeConversionError

from libb import is_null

logger = logging.getLogger(__name__)


class CommandType(enum.Enum):
    """How the command text is interpreted by the driver.
    """
    TEXT = 'text'
    STORED_PROCEDURE = 'stored_procedure'


class ParameterDirection(enum.Enum):
    INPUT = 'input'
    OUTPUT = 'output'


class DbType(enum.Enum):
    """Driver-neutral parameter type.
    """
    OBJECT = 'object'
    BOOLEAN = 'boolean'
    INTEGER = 'integer'
    BIGINT = 'bigint'
    DECIMAL = 'decimal'
    FLOAT = 'float'
    STRING = 'string'
    BINARY = 'binary'
    DATE = 'date'
    DATETIME = 'datetime'
    TIME = 'time'
    INTERVAL = 'interval'
    UUID = 'uuid'
    JSON = 'json'

    @property
    def python_type(self) -> type | None:
        """Python type a value of this DbType converts to, None for OBJECT.
        """
        return _PYTHON_TYPES.get(self)


# bool before int, datetime before date: both are subclasses
_DB_TYPES: list[tuple[type, DbType]] = [
    (bool, DbType.BOOLEAN),
    (int, DbType.INTEGER),
    (decimal.Decimal, DbType.DECIMAL),
    (float, DbType.FLOAT),
    (str, DbType.STRING),
    (bytes, DbType.BINARY),
    (bytearray, DbType.BINARY),
    (memoryview, DbType.BINARY),
    (datetime.datetime, DbType.DATETIME),
    (datetime.date, DbType.DATE),
    (datetime.time, DbType.TIME),
    (datetime.timedelta, DbType.INTERVAL),
    (uuid.UUID, DbType.UUID),
    (dict, DbType.JSON),
    (list, DbType.JSON),
    ]

_PYTHON_TYPES: dict[DbType, type] = {
    DbType.BOOLEAN: bool,
    DbType.INTEGER: int,
    DbType.BIGINT: int,
    DbType.DECIMAL: decimal.Decimal,
    DbType.FLOAT: float,
    DbType.STRING: str,
    DbType.BINARY: bytes,
    DbType.DATE: datetime.date,
    DbType.DATETIME: datetime.datetime,
    DbType.TIME: datetime.time,
    DbType.INTERVAL: datetime.timedelta,
    DbType.UUID: uuid.UUID,
    }


def infer_db_type(python_type: type | None) -> DbType:
    """Resolve the DbType used to bind values of `python_type`.

    Unknown types (and None) bind as DbType.OBJECT, leaving the decision
    to the driver.
    """
    if python_type is None or python_type is type(None):
        return DbType.OBJECT
    if isinstance(python_type, type) and issubclass(python_type, np.generic):
        if issubclass(python_type, np.bool_):
            return DbType.BOOLEAN
        if issubclass(python_type, np.integer):
            return DbType.BIGINT
        if issubclass(python_type, np.floating):
            return DbType.FLOAT
    for candidate, db_type in _DB_TYPES:
        if isinstance(python_type, type) and issubclass(python_type, candidate):
            return db_type
    return DbType.OBJECT


def convert_param(value: Any) -> Any:
    """Convert a single value to a database-compatible format.

    NumPy scalars become Python scalars, NaN/NaT become None.
    """
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, type(pd.NaT)):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.datetime64):
        return pd.Timestamp(value).to_pydatetime()
    if isinstance(value, np.generic):
        value = value.item()
        if isinstance(value, float) and math.isnan(value):
            return None
        return value
    return value


def _to_date(value: Any) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    return dateutil.parser.parse(value).date()


def _to_datetime(value: Any) -> datetime.datetime:
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    return dateutil.parser.parse(value)


def _to_time(value: Any) -> datetime.time:
    if isinstance(value, datetime.datetime):
        return value.time()
    return dateutil.parser.parse(value).time()


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {'1', 't', 'true', 'y', 'yes'}:
            return True
        if lowered in {'0', 'f', 'false', 'n', 'no'}:
            return False
        raise ValueError(f'not a boolean: {value!r}')
    return bool(value)


def _to_int(value: Any) -> int:
    converted = int(value)
    if isinstance(value, (float, decimal.Decimal)) and converted != value:
        raise ValueError(f'not an integral value: {value!r}')
    return converted


def _to_str(value: Any) -> str:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode()
    return str(value)


def _to_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, bytes):
        return uuid.UUID(bytes=value)
    return uuid.UUID(str(value))


_CONVERTERS = {
    bool: _to_bool,
    int: _to_int,
    float: float,
    decimal.Decimal: lambda v: decimal.Decimal(str(v)),
    str: _to_str,
    bytes: bytes,
    datetime.date: _to_date,
    datetime.datetime: _to_datetime,
    datetime.time: _to_time,
    uuid.UUID: _to_uuid,
    }


def convert_value(value: Any, python_type: type | None) -> Any:
    """Coerce a value read back from the driver to `python_type`.

    Null-like values (None, NaN, NaT) convert to None. Values that are
    already instances of the target type pass through unchanged.

    :raises TypeConversionError: the value cannot be represented as `python_type`.
    """
    if value is None:
        return None
    if not isinstance(value, (str, bytes, bytearray, memoryview, list, dict)) and is_null(value):
        return None
    if python_type is None or python_type is object:
        return value
    if isinstance(value, python_type) and not (python_type is int and isinstance(value, bool)):
        if python_type is datetime.date and isinstance(value, datetime.datetime):
            return value.date()
        return value
    converter = _CONVERTERS.get(python_type, python_type)
    try:
        return converter(value)
    except (TypeError, ValueError, ArithmeticError, OverflowError) as err:
        raise TypeConversionError(
            f'Cannot convert {type(value).__name__} value {value!r} '
            f'to {python_type.__name__}') from err
