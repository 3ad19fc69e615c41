"""
Fixtures for SQLite-specific integration tests.
"""
import dbcommand as dbc
import pytest


@pytest.fixture
def named_config(sqlite_path):
    """Connection string section pointing at the populated test database."""
    return {'connection_strings': {'Default': f'sqlite:///{sqlite_path}'}}


@pytest.fixture
def second_conn(sqlite_conn, sqlite_path):
    """Another open connection to the same database file."""
    cn = dbc.connect({'drivername': 'sqlite', 'database': str(sqlite_path)})
    yield cn
    cn.close()
