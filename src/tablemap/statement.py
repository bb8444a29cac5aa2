"""
SQL statement synthesis for the four mapped operations.

Identifiers are always quoted by the dialect strategy and values always
travel as bound parameters. The only text taken from callers is the WHERE
predicate of `build_select`, which is appended verbatim.
"""
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tablemap.strategy import DatabaseStrategy

logger = logging.getLogger(__name__)

ALL_ROWS = 'TRUE'


@dataclass(frozen=True, slots=True)
class Statement:
    """Parameterized SQL with its ordered arguments."""
    sql: str
    args: tuple = ()
    returning: str | None = None


def _primary_value(columns: list[str], values: list[Any], primary_key: str,
                   last: bool = False) -> Any:
    """Value of the first (or last) column named like the primary key, else None."""
    pairs = list(zip(columns, values))
    if last:
        pairs.reverse()
    for key, value in pairs:
        if key == primary_key:
            return value
    logger.warning(f'Primary key {primary_key!r} is not a persisted column; using NULL')
    return None


def build_insert(strategy: 'DatabaseStrategy', table: str, columns: list[str],
                 values: list[Any], primary_key: str | None = None,
                 auto_increment: bool = False) -> Statement:
    """INSERT of every persisted column.

    The primary key is left out when the table generates it.
    """
    selected_columns = []
    selected_values = []
    for key, value in zip(columns, values):
        if auto_increment and key == primary_key:
            continue
        selected_columns.append(key)
        selected_values.append(value)

    if not selected_columns:
        logger.warning(f'Insert into {table!r} has no persisted columns')

    returning = strategy.insert_returning(primary_key, auto_increment)
    sql = strategy.build_insert_sql(table, selected_columns, returning=returning)
    return Statement(sql, tuple(selected_values), returning)


def build_update(strategy: 'DatabaseStrategy', table: str, columns: list[str],
                 values: list[Any], primary_key: str) -> Statement:
    """UPDATE every persisted column but the primary key, addressed by it.

    The primary key value is the final argument, taken from the last
    column carrying the primary key name; None when there is none.
    """
    placeholder = strategy.get_placeholder_style()
    assignments = []
    selected_values = []
    for key, value in zip(columns, values):
        if key == primary_key:
            continue
        assignments.append(f'{strategy.quote_identifier(key)}={placeholder}')
        selected_values.append(value)

    selected_values.append(_primary_value(columns, values, primary_key, last=True))
    quoted_table = strategy.quote_identifier(table)
    quoted_key = strategy.quote_identifier(primary_key)
    sql = f"UPDATE {quoted_table} SET {','.join(assignments)} WHERE {quoted_key}={placeholder}"
    return Statement(sql, tuple(selected_values))


def build_select(strategy: 'DatabaseStrategy', table: str, columns: list[str],
                 where: str = '', args: tuple = ()) -> Statement:
    """SELECT every persisted column, filtered by a caller predicate.

    An empty predicate selects all rows.
    """
    quoted_columns = ','.join(strategy.quote_identifier(col) for col in columns)
    quoted_table = strategy.quote_identifier(table)
    if where:
        where = strategy.standardize_predicate(where, has_args=bool(args))
    else:
        where = ALL_ROWS
    sql = f'SELECT {quoted_columns} FROM {quoted_table} WHERE {where}'
    return Statement(sql, tuple(args))


def build_delete(strategy: 'DatabaseStrategy', table: str, columns: list[str],
                 values: list[Any], primary_key: str) -> Statement:
    """DELETE the row addressed by the record's primary key value.
    """
    placeholder = strategy.get_placeholder_style()
    quoted_table = strategy.quote_identifier(table)
    quoted_key = strategy.quote_identifier(primary_key)
    sql = f'DELETE FROM {quoted_table} WHERE {quoted_key}={placeholder}'
    return Statement(sql, (_primary_value(columns, values, primary_key),))
