"""
Unit tests for named connection string lookup.
"""
from types import SimpleNamespace

import pytest
from dbcommand import ConfigurationError, get_connection_string
from dbcommand import get_connection_string_settings
from dbcommand.config import DEFAULT_CONNECTION_STRING_NAME


@pytest.fixture
def strings():
    return {'connection_strings': {
        'Default': 'sqlite:///app.db',
        'reporting': {
            'connection_string': 'postgresql://report:secret@db/reporting',
            'provider_name': 'psycopg',
            },
        'legacy': {'url': 'sqlite:///legacy.db'},
        'blank': '   ',
        'broken': {'provider_name': 'psycopg'},
        }}


def test_default_name():
    assert DEFAULT_CONNECTION_STRING_NAME == 'Default'


def test_lookup_by_name(strings):
    assert get_connection_string('Default', strings) == 'sqlite:///app.db'


def test_none_name_uses_default(strings):
    assert get_connection_string(config=strings) == 'sqlite:///app.db'
    settings = get_connection_string_settings(None, strings)
    assert settings.name == 'Default'
    assert settings.provider_name is None


def test_mapping_entry_with_provider(strings):
    settings = get_connection_string_settings('reporting', strings)
    assert settings.connection_string == 'postgresql://report:secret@db/reporting'
    assert settings.provider_name == 'psycopg'


def test_mapping_entry_with_url_key(strings):
    assert get_connection_string('legacy', strings) == 'sqlite:///legacy.db'


@pytest.mark.parametrize('name', ['missing', 'blank', 'broken', 'default'])
def test_missing_name(strings, name):
    with pytest.raises(ConfigurationError, match=f"Connection string '{name}' not found."):
        get_connection_string(name, strings)


@pytest.mark.parametrize('config', [
    {},
    {'connection_strings': None},
    {'connection_strings': 'sqlite://'},
    object(),
])
def test_missing_or_invalid_section(config):
    with pytest.raises(ConfigurationError, match='section is invalid or not found'):
        get_connection_string('Default', config)


def test_attribute_config():
    """Config objects expose the section as an attribute."""
    cfg = SimpleNamespace(connection_strings={'main': 'sqlite:///main.db'})
    assert get_connection_string('main', cfg) == 'sqlite:///main.db'


def test_default_config_module():
    """Without a config argument the importable `config` module is used."""
    assert get_connection_string() == 'sqlite:///database.db'
    assert get_connection_string('memory') == 'sqlite://'


if __name__ == '__main__':
    __import__('pytest').main([__file__])
