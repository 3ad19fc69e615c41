from dataclasses import dataclass

from dbcommand.strategy import get_strategy_class

from libb import ConfigOptions, scriptname

__all__ = ['DatabaseOptions']


@dataclass
class DatabaseOptions(ConfigOptions):
    """Options

    supported driver names: `postgresql`, `sqlite`

    `timeout` is the connect timeout in seconds (0 = driver default);
    per-command timeouts are set on the CommandBuilder.
    """
    drivername: str = 'postgresql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    appname: str = None

    def __post_init__(self):
        strategy_cls = get_strategy_class(self.drivername)
        self.appname = self.appname or scriptname() or 'python_console'
        strategy_cls.validate_options(self)
