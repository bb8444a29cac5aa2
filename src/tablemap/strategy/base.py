"""
Base strategy interface for dialect-specific conventions.

Defines the abstract base class that all dialect strategies inherit from.
A strategy owns everything the mapper needs to know about one SQL dialect:
identifier quoting, placeholder style, connection URL and engine settings,
the liveness probe and how the driver reports a generated identifier.

Clients work with any dialect through this interface.
"""
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from tablemap.exceptions import ValidationError
from tablemap.sql import make_placeholders, placeholder_for, prepare_predicate
from tablemap.sql import quote_identifier as sql_quote_identifier

if TYPE_CHECKING:
    from tablemap.options import TableOptions

# Registry of dialect name -> strategy class
# Lives in base so concrete strategies can register on import
_STRATEGY_REGISTRY: dict[str, type['DatabaseStrategy']] = {}


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('postgresql')
        class PostgresStrategy(DatabaseStrategy):
            ...
    """
    def decorator(cls: type['DatabaseStrategy']) -> type['DatabaseStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


class DatabaseStrategy(ABC):
    """Base class for dialect-specific conventions.
    """

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the dialect identifier (e.g., 'postgresql', 'sqlite')."""

    @classmethod
    @abstractmethod
    def get_required_options(cls) -> list[str]:
        """Return option names that must be set for this dialect."""

    @classmethod
    def validate_options(cls, options: 'TableOptions') -> None:
        """Validate options for this dialect.

        Args:
            options: TableOptions to validate

        Raises
            ValidationError: If any required field is None or 0
        """
        for field in cls.get_required_options():
            if not getattr(options, field):
                raise ValidationError(f'field {field} cannot be None or 0')

    @abstractmethod
    def build_connection_url(self, options: 'TableOptions',
                             url_creator: Callable[..., sa.URL] = sa.URL.create) -> sa.URL:
        """Build the SQLAlchemy connection URL for this dialect.

        Args:
            options: TableOptions containing connection parameters
            url_creator: Factory for the URL object

        Returns
            SQLAlchemy URL
        """

    @abstractmethod
    def get_engine_kwargs(self, options: 'TableOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for this dialect.

        Args:
            options: TableOptions containing connection parameters

        Returns
            Dictionary of keyword arguments for create_engine
        """

    def configure_connection(self, dbapi_conn: Any) -> None:
        """Configure a freshly opened DBAPI connection.

        Default implementation does nothing.
        """

    def ping(self, dbapi_conn: Any) -> None:
        """Round-trip probe proving the connection is alive.

        Driver errors propagate unchanged.
        """
        cursor = dbapi_conn.cursor()
        try:
            cursor.execute('SELECT 1')
            cursor.fetchall()
        finally:
            cursor.close()

    def quote_identifier(self, identifier: str) -> str:
        """Quote a database identifier.

        Default implementation uses standard SQL double-quote escaping.
        """
        return sql_quote_identifier(identifier, self.dialect_name)

    def get_placeholder_style(self) -> str:
        """Return the placeholder marker for this dialect."""
        return placeholder_for(self.dialect_name)

    def make_placeholders(self, count: int) -> str:
        """Return `count` comma separated placeholders."""
        return make_placeholders(count, self.dialect_name)

    def standardize_predicate(self, where: str, has_args: bool = True) -> str:
        """Adapt a caller-supplied WHERE fragment to this dialect's placeholders."""
        return prepare_predicate(where, self.dialect_name, has_args=has_args)

    def build_insert_sql(self, table: str, columns: list[str],
                         returning: str | None = None) -> str:
        """Generate an INSERT statement with one placeholder per column.

        An empty column list yields `DEFAULT VALUES`, the form both
        supported dialects accept for a row with no supplied columns.
        """
        quoted_table = self.quote_identifier(table)
        if columns:
            quoted_columns = ','.join(self.quote_identifier(col) for col in columns)
            placeholders = self.make_placeholders(len(columns))
            sql = f'INSERT INTO {quoted_table} ({quoted_columns}) VALUES ({placeholders})'
        else:
            sql = f'INSERT INTO {quoted_table} DEFAULT VALUES'
        if returning is not None:
            sql += f' RETURNING {self.quote_identifier(returning)}'
        return sql

    def insert_returning(self, primary_key: str | None,
                         auto_increment: bool) -> str | None:
        """Column to return from an INSERT, if the dialect needs one.

        Default implementation relies on the cursor's `lastrowid`.
        """
        return None

    @abstractmethod
    def last_insert_id(self, cursor: Any, returning: str | None = None) -> int:
        """Return the identifier generated by the last INSERT on cursor.

        Args:
            cursor: DBAPI cursor the INSERT executed on
            returning: Column named in a RETURNING clause, if any

        Returns
            Generated identifier, 0 when the driver reports none
        """
