"""
PostgreSQL-specific strategy implementation.

Handles PostgreSQL's conventions:
- psycopg (v3) driver through SQLAlchemy
- `%s` placeholders
- `INSERT ... RETURNING` for generated identifiers, since psycopg does not
  report a meaningful `lastrowid`
"""
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqlalchemy.pool import NullPool
from tablemap.strategy.base import DatabaseStrategy, register_strategy

if TYPE_CHECKING:
    from tablemap.options import TableOptions

logger = logging.getLogger(__name__)


@register_strategy('postgresql')
class PostgresStrategy(DatabaseStrategy):
    """PostgreSQL-specific conventions.
    """

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for PostgreSQL."""
        return 'postgresql'

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for PostgreSQL connections."""
        return ['hostname', 'username', 'password', 'database', 'port']

    def build_connection_url(self, options: 'TableOptions',
                             url_creator: Callable[..., sa.URL] = sa.URL.create) -> sa.URL:
        """Build the SQLAlchemy connection URL for PostgreSQL."""
        query = {}
        if options.timeout:
            query['connect_timeout'] = str(options.timeout)

        return url_creator(
            drivername='postgresql+psycopg',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port or None,
            database=options.database,
            query=query
        )

    def get_engine_kwargs(self, options: 'TableOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for PostgreSQL."""
        kwargs: dict[str, Any] = {'isolation_level': 'AUTOCOMMIT'}
        if not options.use_pool:
            kwargs['poolclass'] = NullPool
        else:
            kwargs['pool_size'] = options.pool_max_connections
            kwargs['pool_recycle'] = options.pool_max_idle_time
            kwargs['pool_timeout'] = options.pool_wait_timeout
            kwargs['max_overflow'] = 10
            kwargs['pool_pre_ping'] = True
            kwargs['pool_reset_on_return'] = 'rollback'
        return kwargs

    def insert_returning(self, primary_key: str | None,
                         auto_increment: bool) -> str | None:
        """Return the generated key column for auto-increment tables.
        """
        if auto_increment and primary_key:
            return primary_key
        return None

    def last_insert_id(self, cursor: Any, returning: str | None = None) -> int:
        """Read the RETURNING value; 0 when no key was requested.
        """
        if returning is None:
            return 0
        row = cursor.fetchone()
        if not row:
            return 0
        return row[0]
