"""
Row mapper contracts.

A mapper turns the row a DataReader is currently positioned on into a
value. Any callable with the matching signature qualifies.
"""
from typing import Any, Protocol, TypeVar

from dbcommand.driver import DataReader

T = TypeVar('T')
T_co = TypeVar('T_co', covariant=True)

__all__ = [
    'Mapper',
    'MapperWithIndex',
    'read_all',
    'read_first_or_default',
]


class Mapper(Protocol[T_co]):
    def __call__(self, reader: DataReader, /) -> T_co: ...


class MapperWithIndex(Protocol[T_co]):
    def __call__(self, reader: DataReader, index: int, /) -> T_co: ...


def read_all(reader: DataReader, mapper: MapperWithIndex[T]) -> list[T]:
    """Advance `reader` to the end, mapping each row with its 0-based ordinal.
    """
    result: list[T] = []
    index = 0
    while reader.read():
        result.append(mapper(reader, index))
        index += 1
    return result


def read_first_or_default(reader: DataReader, mapper: Mapper[T],
                          default: Any = None) -> T | Any:
    """Map the first row, or return `default` when there are none.

    The reader is advanced at most once.
    """
    if reader.read():
        return mapper(reader)
    return default
