"""
Dialect strategies, looked up by SQLAlchemy dialect name.

Concrete strategies register themselves on import; one cached instance is
shared per dialect.
"""
from functools import lru_cache

from dbcommand.strategy.base import _STRATEGY_REGISTRY
from dbcommand.strategy.base import DatabaseStrategy as DatabaseStrategy
from dbcommand.strategy.base import register_strategy as register_strategy
from dbcommand.strategy.postgres import PostgresStrategy as PostgresStrategy
from dbcommand.strategy.sqlite import SQLiteStrategy as SQLiteStrategy
from dbcommand.utils import get_dialect_name


def get_strategy_class(dialect: str) -> type[DatabaseStrategy]:
    """Strategy class registered for `dialect`.

    :raises ValueError: no strategy is registered for the dialect.
    """
    try:
        return _STRATEGY_REGISTRY[dialect]
    except KeyError:
        raise ValueError(f'Unsupported dialect: {dialect}. '
                         f'Available: {sorted(_STRATEGY_REGISTRY)}') from None


@lru_cache(maxsize=8)
def get_strategy(dialect: str) -> DatabaseStrategy:
    return get_strategy_class(dialect)()


def get_db_strategy(cn) -> DatabaseStrategy:
    """Strategy for a ConnectionWrapper, SQLAlchemy connection or engine."""
    return get_strategy(get_dialect_name(cn))
