import dbcommand as dbc
import pytest


@pytest.fixture
def sqlite_path(tmp_path):
    """Path of a fresh SQLite database file."""
    return tmp_path / 'test.db'


@pytest.fixture
def sqlite_conn(sqlite_path):
    """Open file-based SQLite connection with a populated test_table"""
    conn = dbc.connect({
        'drivername': 'sqlite',
        'database': str(sqlite_path),
    })

    create_table = """
    CREATE TABLE test_table (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL UNIQUE,
        value INTEGER NOT NULL,
        created date
    )
    """
    dbc.execute_non_query(conn, create_table)

    insert_data = """
    INSERT INTO test_table (name, value, created) VALUES
    ('Alice', 10, '2025-01-01'),
    ('Bob', 20, '2025-02-01'),
    ('Charlie', 30, NULL)
    """
    dbc.execute_non_query(conn, insert_data)

    yield conn
    conn.close()
