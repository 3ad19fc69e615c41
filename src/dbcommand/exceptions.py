"""
Command builder and driver exception classes.
"""
import sqlite3

import psycopg
import sqlalchemy as sa


class DatabaseError(Exception):
    """Base class for all dbcommand errors.
    """


class ConnectionFailure(DatabaseError):
    """Error establishing or maintaining database connection.
    """


class QueryError(DatabaseError):
    """Error in command construction or execution.
    """


class TypeConversionError(DatabaseError):
    """Error converting a database value to the requested Python type.
    """


class IntegrityViolationError(DatabaseError):
    """Database constraint violation error.
    """


class ValidationError(DatabaseError):
    """Error in input validation.
    """


class InvalidArgumentError(ValidationError, ValueError):
    """A required argument was missing or blank.
    """


class DuplicateParameterError(ValidationError):
    """A parameter name was registered twice on the same command.
    """


class ConfigurationError(DatabaseError):
    """Connection configuration is missing or malformed.
    """


DbConnectionError = (
    sa.exc.OperationalError,
    sa.exc.InterfaceError,
    psycopg.OperationalError,
    psycopg.InterfaceError,
    sqlite3.OperationalError,
    sqlite3.InterfaceError,
    ConnectionFailure,
    )

IntegrityError = (
    sa.exc.IntegrityError,
    psycopg.IntegrityError,
    sqlite3.IntegrityError,
    IntegrityViolationError,
    )

ProgrammingError = (
    sa.exc.ProgrammingError,
    psycopg.ProgrammingError,
    sqlite3.ProgrammingError,
    QueryError,
    )

OperationalError = (
    sa.exc.OperationalError,
    psycopg.OperationalError,
    sqlite3.OperationalError,
    )

UniqueViolation = (
    psycopg.errors.UniqueViolation,
    sa.exc.IntegrityError,
    sqlite3.IntegrityError,
    IntegrityViolationError,
    )
