"""
Statement execution against a registered table's engine.

Every call checks a DBAPI connection out of the engine's pool, runs one
autocommit statement and returns the connection. Driver errors propagate
unchanged; nothing is retried.
"""
import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from functools import wraps
from typing import Any

from sqlalchemy.engine import Engine
from tablemap.statement import Statement
from tablemap.strategy import DatabaseStrategy
from tablemap.types import TypeConverter

logger = logging.getLogger(__name__)


def dumpsql(func):
    """Decorator for logging SQL statements and parameters."""
    @wraps(func)
    def wrapper(self, statement: Statement, *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{statement.sql}\nargs: {statement.args}')
        try:
            return func(self, statement, *args, **kwargs)
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{statement.sql}\nargs: {statement.args}')
            raise
        finally:
            elapsed = time.time() - start
            self.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


class Executor:
    """Runs statements on an engine and tracks call statistics.
    """

    def __init__(self, engine: Engine, strategy: DatabaseStrategy) -> None:
        self.engine = engine
        self.strategy = strategy
        self.calls = 0
        self.time = 0.0
        self._lock = threading.Lock()

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        with self._lock:
            self.time += elapsed
            self.calls += 1

    @contextmanager
    def _cursor(self) -> Iterator[Any]:
        """Check out a connection and yield a cursor, releasing both after."""
        raw_conn = self.engine.raw_connection()
        try:
            cursor = raw_conn.cursor()
            try:
                yield cursor
            finally:
                cursor.close()
        finally:
            raw_conn.close()

    def _execute(self, cursor: Any, statement: Statement) -> None:
        args = TypeConverter.convert_params(statement.args)
        if args:
            cursor.execute(statement.sql, args)
        else:
            cursor.execute(statement.sql)

    @dumpsql
    def execute(self, statement: Statement) -> int:
        """Execute a statement and return the affected row count."""
        with self._cursor() as cursor:
            self._execute(cursor, statement)
            rowcount = cursor.rowcount
        logger.debug(f'Statement affected {rowcount} row(s)')
        return rowcount

    @dumpsql
    def insert(self, statement: Statement) -> int:
        """Execute an INSERT and return the generated identifier."""
        with self._cursor() as cursor:
            self._execute(cursor, statement)
            return self.strategy.last_insert_id(cursor, statement.returning)

    @dumpsql
    def query(self, statement: Statement) -> list[tuple]:
        """Execute a query and return all rows as tuples."""
        with self._cursor() as cursor:
            self._execute(cursor, statement)
            rows = [tuple(row) for row in cursor.fetchall()]
        logger.debug(f'Query returned {len(rows)} row(s)')
        return rows
