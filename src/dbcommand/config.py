"""
Named connection string lookup.

Connection strings live in a `connection_strings` section of a config
object, typically a libb Setting tree:

    from libb import Setting

    connection_strings = Setting()
    connection_strings.Default = 'sqlite:///app.db'
    connection_strings.reporting = {
        'connection_string': 'postgresql://report@db/reporting',
        'provider_name': 'psycopg',
        }

When no config is passed the importable `config` module is used.
"""
import importlib
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from dbcommand.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION_STRING_NAME = 'Default'
SECTION_NAME = 'connection_strings'

__all__ = [
    'DEFAULT_CONNECTION_STRING_NAME',
    'ConnectionStringSettings',
    'get_connection_string',
    'get_connection_string_settings',
]


@dataclass(frozen=True)
class ConnectionStringSettings:
    name: str
    connection_string: str
    provider_name: str | None = None


def _default_config() -> Any:
    try:
        return importlib.import_module('config')
    except ModuleNotFoundError:
        return None


def _get_section(config: Any) -> Mapping | None:
    if config is None:
        return None
    if isinstance(config, Mapping):
        section = config.get(SECTION_NAME)
    else:
        section = getattr(config, SECTION_NAME, None)
    if not isinstance(section, Mapping):
        return None
    return section


def _parse_entry(name: str, entry: Any) -> ConnectionStringSettings | None:
    if isinstance(entry, str):
        return ConnectionStringSettings(name, entry) if entry.strip() else None
    if isinstance(entry, Mapping):
        connection_string = entry.get('connection_string') or entry.get('url')
        if not connection_string:
            return None
        return ConnectionStringSettings(name, connection_string, entry.get('provider_name'))
    return None


def get_connection_string_settings(name: str | None = None,
                                   config: Any = None) -> ConnectionStringSettings:
    """Get the connection string settings registered under `name`.

    :param name: Entry name, `DEFAULT_CONNECTION_STRING_NAME` when None.
    :param config: Object or mapping holding a `connection_strings` section.
    :raises ConfigurationError: The section or the entry is missing.
    """
    if name is None:
        name = DEFAULT_CONNECTION_STRING_NAME
    if config is None:
        config = _default_config()
    section = _get_section(config)
    if section is None:
        raise ConfigurationError(f'{SECTION_NAME} section is invalid or not found.')
    settings = _parse_entry(name, section.get(name))
    if settings is None:
        raise ConfigurationError(f"Connection string '{name}' not found.")
    logger.debug(f'Resolved connection string {name!r}')
    return settings


def get_connection_string(name: str | None = None, config: Any = None) -> str:
    """Get the connection string registered under `name`.
    """
    return get_connection_string_settings(name, config).connection_string
