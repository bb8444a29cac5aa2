from dataclasses import dataclass, fields, replace
from typing import Any

from tablemap.exceptions import ValidationError
from tablemap.strategy import get_available_dialects, get_strategy_class
from tablemap.strategy import is_supported_dialect

from libb import ConfigOptions, load_options

__all__ = [
    'TableOptions',
    'load_table_options',
    'CONNECTION_FIELDS',
]

# Options that identify a connection; registrations agreeing on all of them
# share one engine
CONNECTION_FIELDS = (
    'drivername',
    'hostname',
    'username',
    'password',
    'port',
    'database',
    'timeout',
    'use_pool',
    'pool_max_connections',
    'pool_max_idle_time',
    'pool_wait_timeout',
)


@dataclass
class TableOptions(ConfigOptions):
    """Options binding a record type to a table

    supported driver names: `postgresql`, `sqlite`

    Table options:
    - table: Table name (required)
    - primary_key: Column addressed by update and delete (default: 'id')
    - auto_increment: Primary key is generated by the database and left out
      of inserts (default: False)

    Connection pooling options:
    - use_pool: Whether to use connection pooling (default: False)
    - pool_max_connections: Maximum connections in pool (default: 5)
    - pool_max_idle_time: Maximum seconds a connection can be idle (default: 300)
    - pool_wait_timeout: Maximum seconds to wait for a connection (default: 30)
    """
    drivername: str = 'postgresql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    table: str = None
    primary_key: str = 'id'
    auto_increment: bool = False
    # Connection pooling parameters
    use_pool: bool = False
    pool_max_connections: int = 5
    pool_max_idle_time: int = 300
    pool_wait_timeout: int = 30

    def __post_init__(self):
        if not is_supported_dialect(self.drivername):
            available = get_available_dialects()
            raise ValidationError(f'drivername must be one of: {available}')
        if not self.table:
            raise ValidationError('field table cannot be None or empty')
        strategy_cls = get_strategy_class(self.drivername)
        strategy_cls.validate_options(self)

    @property
    def connection_key(self) -> tuple:
        """Values of the connection-identifying options."""
        return tuple(getattr(self, name) for name in CONNECTION_FIELDS)


def load_table_options(options: TableOptions | dict[str, Any] | str | None = None,
                       config: Any | None = None, **kw: Any) -> TableOptions:
    """Resolve table options

    Args:
        options: Can be:
                - TableOptions object
                - String name of a configuration section (with `config`)
                - Dictionary of options
                - None, with options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Returns
        TableOptions object
    """
    if isinstance(options, TableOptions):
        overrides = {f.name: kw[f.name] for f in fields(options) if f.name in kw}
        return replace(options, **overrides) if overrides else options

    if options is None:
        options, kw = dict(kw), {}
    elif isinstance(options, dict):
        options, kw = {**options, **kw}, {}

    options_func = load_options(cls=TableOptions)(lambda o, c: o)
    return options_func(options, config, **kw)
