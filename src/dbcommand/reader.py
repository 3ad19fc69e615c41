"""
Forward-only reader over a SQLAlchemy result.
"""
import logging
from collections.abc import Callable
from typing import Any, Self

import sqlalchemy as sa
from dbcommand.exceptions import QueryError

logger = logging.getLogger(__name__)

__all__ = ['Reader']


class Reader:
    """DataReader implementation wrapping a SQLAlchemy CursorResult.

    The reader is positioned before the first row; `read()` advances it.
    Columns are addressed by 0-based ordinal or by name (exact match
    first, then case-insensitive).

    Leaving a `with` block normally calls `on_close`; leaving it with an
    exception calls `on_error` instead.
    """

    def __init__(self, result: sa.CursorResult,
                 on_first_row: Callable[[sa.Row], None] | None = None,
                 on_close: Callable[[], None] | None = None,
                 on_error: Callable[[], None] | None = None) -> None:
        self._result = result
        self._returns_rows = bool(result.returns_rows)
        self._names: list[str] = list(result.keys()) if self._returns_rows else []
        self._ordinals: dict[str, int] = {}
        for i, name in enumerate(self._names):
            self._ordinals.setdefault(name, i)
            self._ordinals.setdefault(name.lower(), i)
        self._row: sa.Row | None = None
        self._rows_read = 0
        self._on_first_row = on_first_row
        self._on_close = on_close
        self._on_error = on_error
        self._closed = False

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self._release(self._on_error)

    def __getitem__(self, key: int | str) -> Any:
        if isinstance(key, str):
            return self.get_value(self.get_ordinal(key))
        return self.get_value(key)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def field_count(self) -> int:
        return len(self._names)

    @property
    def rows_read(self) -> int:
        return self._rows_read

    @property
    def rowcount(self) -> int:
        """Rows affected by the statement, as reported by the driver."""
        return self._result.rowcount

    def read(self) -> bool:
        """Advance to the next row; False once the rows are exhausted.
        """
        if self._closed:
            raise QueryError('Reader is closed')
        if not self._returns_rows:
            return False
        self._row = self._result.fetchone()
        if self._row is None:
            return False
        self._rows_read += 1
        if self._rows_read == 1 and self._on_first_row is not None:
            self._on_first_row(self._row)
        return True

    def get_name(self, index: int) -> str:
        return self._names[index]

    def get_ordinal(self, name: str) -> int:
        ordinal = self._ordinals.get(name)
        if ordinal is None:
            ordinal = self._ordinals.get(name.lower())
        if ordinal is None:
            raise IndexError(f'No column named {name!r}; columns are {self._names}')
        return ordinal

    def get_value(self, index: int) -> Any:
        return self._current()[index]

    def is_null(self, key: int | str) -> bool:
        return self[key] is None

    def to_dict(self) -> dict[str, Any]:
        """Current row as a column name to value mapping.
        """
        return dict(zip(self._names, self._current()))

    def _current(self) -> sa.Row:
        if self._closed:
            raise QueryError('Reader is closed')
        if self._row is None:
            raise QueryError('No current row; call read() first')
        return self._row

    def close(self) -> None:
        self._release(self._on_close)

    def _release(self, callback: Callable[[], None] | None) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._result.close()
        finally:
            logger.debug(f'Reader closed after {self._rows_read} row(s)')
            if callback is not None:
                callback()
