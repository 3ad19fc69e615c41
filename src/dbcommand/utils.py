"""Low-level connection utilities with no internal dependencies.

These utilities work with ConnectionWrapper, SQLAlchemy connections and
engines, and have no imports from other dbcommand modules, making them
safe to import without circular dependency concerns.
"""
import logging
from typing import Any

logger = logging.getLogger(__name__)


def get_dialect_name(obj: Any) -> str:
    """Get dialect name for a database connection or engine.
    """
    if hasattr(obj, 'dialect'):
        dialect = obj.dialect
        if isinstance(dialect, str):
            return dialect.lower()
        return str(dialect.name).lower()

    if hasattr(obj, 'engine') and hasattr(obj.engine, 'dialect'):
        return str(obj.engine.dialect.name).lower()

    type_name = f'{type(obj).__module__}.{type(obj).__name__}'
    if 'psycopg' in type_name:
        return 'postgresql'
    if 'sqlite3' in type_name:
        return 'sqlite'

    raise AttributeError(f'Cannot determine dialect for {type(obj)}')


def ensure_commit(connection: Any) -> None:
    """Commit the current implicit transaction of a SQLAlchemy connection.

    Connections that are closed or have nothing pending are left alone.
    """
    if connection is None or getattr(connection, 'closed', False):
        return
    if hasattr(connection, 'in_transaction') and not connection.in_transaction():
        return
    connection.commit()

