"""
Base strategy interface for dialect-specific command handling.

Defines the abstract base class that all dialect strategies inherit from.
A strategy knows how to build a connection URL for its dialect, how to
render a stored procedure call with named parameters and how to apply a
per-statement timeout. The SQLAlchemy driver stays dialect-neutral and
delegates those decisions here.
"""
import re
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from dbcommand.exceptions import QueryError
from dbcommand.types import CommandType

if TYPE_CHECKING:
    from dbcommand.options import DatabaseOptions
    from dbcommand.parameters import ParameterCollection

# Registry of dialect name -> strategy class
# Defined here to avoid circular imports (concrete strategies import from base)
_STRATEGY_REGISTRY: dict[str, type['DatabaseStrategy']] = {}

_IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
_QUALIFIED_NAME = re.compile(r'^[A-Za-z_][A-Za-z0-9_$]*(\.[A-Za-z_][A-Za-z0-9_$]*)*$')


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('postgresql')
        class PostgresStrategy(DatabaseStrategy):
            ...
    """
    def decorator(cls: type['DatabaseStrategy']) -> type['DatabaseStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


def validate_parameter_name(name: str) -> str:
    """Raise QueryError unless `name` can be used as a named bind parameter.
    """
    if not _IDENTIFIER.match(name):
        raise QueryError(f'Invalid parameter name: {name!r}')
    return name


def validate_procedure_name(name: str) -> str:
    """Raise QueryError unless `name` is a (schema-qualified) identifier.
    """
    name = name.strip()
    if not _QUALIFIED_NAME.match(name):
        raise QueryError(f'Invalid procedure name: {name!r}')
    return name


class DatabaseStrategy(ABC):
    """Base class for dialect-specific operations.
    """

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the dialect identifier."""

    @abstractmethod
    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL from options.
        """

    def get_engine_kwargs(self) -> dict[str, Any]:
        """Return dialect-specific SQLAlchemy create_engine kwargs.
        """
        return {}

    def configure_connection(self, sa_connection: sa.engine.Connection) -> None:
        """Apply session settings to a freshly opened connection.
        """

    @classmethod
    @abstractmethod
    def get_required_options(cls) -> list[str]:
        """Return list of required option field names for this dialect.

        Returns
            List of field names that must have non-None/non-zero values
        """

    @classmethod
    def validate_options(cls, options: 'DatabaseOptions') -> None:
        """Validate options for this dialect.

        Args:
            options: DatabaseOptions to validate

        Raises
            ValueError: If any required field is None or 0
        """
        for field in cls.get_required_options():
            if not getattr(options, field):
                raise ValueError(f'field {field} cannot be None or 0')

    def build_statement(self, command_type: CommandType, text: str,
                        parameters: 'ParameterCollection') -> tuple[str, dict[str, Any]]:
        """Render command text and bind values for execution.

        Text commands bind every parameter by name; output parameters bind
        as NULL. Stored procedures are rendered by `build_procedure_call`.
        """
        for parameter in parameters:
            validate_parameter_name(parameter.name)
        if command_type is CommandType.STORED_PROCEDURE:
            return self.build_procedure_call(validate_procedure_name(text), parameters)
        return text, parameters.values()

    @abstractmethod
    def build_procedure_call(self, name: str,
                             parameters: 'ParameterCollection') -> tuple[str, dict[str, Any]]:
        """Render a stored procedure call using named parameter binding.

        Args:
            name: Procedure name, optionally schema qualified
            parameters: Input and output parameters of the command

        Returns
            SQL text with `:name` bind markers and the bind values
        """

    @abstractmethod
    def statement_timeout(self, sa_connection: sa.engine.Connection,
                          seconds: float | None) -> AbstractContextManager[None]:
        """Context manager applying a timeout to statements run inside it.

        A `seconds` of None leaves the driver default in place.
        """
