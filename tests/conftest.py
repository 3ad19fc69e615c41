import pathlib
import site

import dbcommand as dbc
import pytest

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
site.addsitedir(HERE)


@pytest.fixture(autouse=True)
def dispose_engines():
    """Dispose registered engines after each test to ensure test isolation."""
    yield
    dbc.dispose_all_engines()


pytest_plugins = [
    'tests.fixtures.fakes',
    'tests.fixtures.sqlite',
    'tests.fixtures.postgres',
]
