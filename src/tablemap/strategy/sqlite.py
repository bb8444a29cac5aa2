"""
SQLite-specific strategy implementation.

Handles SQLite's conventions:
- File or in-memory databases (no host, user or port)
- `?` placeholders
- `cursor.lastrowid` for generated identifiers
- A single shared connection for in-memory databases
"""
import datetime
import decimal
import json
import logging
import sqlite3
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqlalchemy.pool import NullPool, StaticPool
from tablemap.strategy.base import DatabaseStrategy, register_strategy
from tablemap.types import convert_date, convert_datetime

if TYPE_CHECKING:
    from tablemap.options import TableOptions

logger = logging.getLogger(__name__)

MEMORY_DATABASES = {':memory:', ''}


def is_memory_database(database: str | None) -> bool:
    """Check whether a SQLite database name refers to an in-memory database."""
    return database is None or database in MEMORY_DATABASES


@register_strategy('sqlite')
class SQLiteStrategy(DatabaseStrategy):
    """SQLite-specific conventions.
    """

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for SQLite."""
        return 'sqlite'

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for SQLite connections."""
        return ['database']

    def build_connection_url(self, options: 'TableOptions',
                             url_creator: Callable[..., sa.URL] = sa.URL.create) -> sa.URL:
        """Build the SQLAlchemy connection URL for SQLite."""
        return url_creator(drivername='sqlite', database=options.database)

    def get_engine_kwargs(self, options: 'TableOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for SQLite.

        In-memory databases exist per connection, so every checkout must
        share the same one.
        """
        connect_args: dict[str, Any] = {
            'detect_types': sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES
        }
        if options.timeout:
            connect_args['timeout'] = options.timeout

        kwargs: dict[str, Any] = {'isolation_level': 'AUTOCOMMIT'}
        if is_memory_database(options.database):
            connect_args['check_same_thread'] = False
            kwargs['poolclass'] = StaticPool
        elif not options.use_pool:
            kwargs['poolclass'] = NullPool
        else:
            kwargs['pool_size'] = options.pool_max_connections
            kwargs['pool_recycle'] = options.pool_max_idle_time
            kwargs['pool_timeout'] = options.pool_wait_timeout
        kwargs['connect_args'] = connect_args
        return kwargs

    def configure_connection(self, dbapi_conn: Any) -> None:
        """Configure connection settings for SQLite.
        """
        dbapi_conn.execute('PRAGMA foreign_keys = ON')
        register_type_adapters()

    def last_insert_id(self, cursor: Any, returning: str | None = None) -> int:
        """SQLite reports the rowid of the inserted row on the cursor.
        """
        return cursor.lastrowid or 0


def register_type_adapters() -> None:
    """Register SQLite adapters and converters.

    Adapters (Python -> SQLite) serialize dicts and lists as JSON, decimals
    as text and dates in ISO 8601; converters (SQLite -> Python) parse `date`
    and `datetime` declared columns.
    """
    sqlite3.register_adapter(dict, json.dumps)
    sqlite3.register_adapter(list, json.dumps)
    sqlite3.register_adapter(decimal.Decimal, str)
    sqlite3.register_adapter(datetime.date, datetime.date.isoformat)
    sqlite3.register_adapter(datetime.datetime, datetime.datetime.isoformat)
    sqlite3.register_converter('date', convert_date)
    sqlite3.register_converter('datetime', convert_datetime)
