"""
Registry binding record types to table configurations.

Lookups take a shared lock and registrations an exclusive one. Engines are
created through an injected factory and shared between registrations whose
connection options agree; the engine pool is what serializes, or not, the
use of individual connections.
"""
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from tablemap.connection import EngineFactory, check_connection
from tablemap.connection import create_engine_for_options
from tablemap.cursor import Executor
from tablemap.descriptor import record_type_of
from tablemap.exceptions import RowNotRecognized
from tablemap.options import TableOptions
from tablemap.strategy import DatabaseStrategy, get_strategy

__all__ = [
    'ReadWriteLock',
    'TableConfig',
    'TableRegistry',
]

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Multiple-reader / single-writer lock.

    Waiting writers block new readers so registrations are not starved.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass(frozen=True)
class TableConfig:
    """A record type's table binding and its opened engine.
    """
    options: TableOptions
    engine: Engine = field(repr=False)
    strategy: DatabaseStrategy = field(repr=False)
    executor: Executor = field(repr=False, compare=False)

    @property
    def table(self) -> str:
        return self.options.table

    @property
    def primary_key(self) -> str:
        return self.options.primary_key

    @property
    def auto_increment(self) -> bool:
        return self.options.auto_increment

    @property
    def dialect(self) -> str:
        return self.strategy.dialect_name


class TableRegistry:
    """Maps record types to their table configuration.

    Keys are the record classes themselves; an instance or the class may be
    passed to every method.
    """

    def __init__(self, engine_factory: EngineFactory = sa.create_engine) -> None:
        self.engine_factory = engine_factory
        self._lock = ReadWriteLock()
        self._tables: dict[type, TableConfig] = {}
        self._engines: dict[tuple, Engine] = {}

    def _engine_for(self, options: TableOptions) -> tuple[Engine, bool]:
        """Return a shared engine for the options and whether it is new."""
        key = options.connection_key
        if key in self._engines:
            logger.debug(f'Using existing engine for {options.drivername}')
            return self._engines[key], False
        return create_engine_for_options(options, engine_factory=self.engine_factory), True

    def register(self, record: Any, options: TableOptions) -> TableConfig:
        """Open and probe a connection, then bind the record type to the table.

        Replaces any earlier registration of the same type. On open or probe
        failure the driver error propagates and nothing is registered.
        """
        record_type = record_type_of(record)
        strategy = get_strategy(options.drivername)
        with self._lock.write():
            engine, created = self._engine_for(options)
            try:
                check_connection(engine, strategy)
            except Exception:
                if created:
                    engine.dispose()
                raise
            if created:
                self._engines[options.connection_key] = engine

            config = TableConfig(
                options=options,
                engine=engine,
                strategy=strategy,
                executor=Executor(engine, strategy),
            )
            if record_type in self._tables:
                logger.info(f'Replacing table registration of {record_type.__qualname__}')
            self._tables[record_type] = config
        logger.info(f'Registered {record_type.__qualname__} -> {options.drivername} table {options.table!r}')
        return config

    def lookup(self, record: Any) -> TableConfig:
        """Return the configuration registered for the record type.

        Raises
            RowNotRecognized: If the type was never registered
        """
        record_type = record_type_of(record)
        with self._lock.read():
            config = self._tables.get(record_type)
        if config is None:
            raise RowNotRecognized(record_type)
        return config

    def unregister(self, record: Any) -> None:
        """Forget a record type's registration; its engine stays shared.

        Raises
            RowNotRecognized: If the type was never registered
        """
        record_type = record_type_of(record)
        with self._lock.write():
            if self._tables.pop(record_type, None) is None:
                raise RowNotRecognized(record_type)
        logger.info(f'Unregistered {record_type.__qualname__}')

    def registered(self) -> list[type]:
        """Registered record types in registration order."""
        with self._lock.read():
            return list(self._tables)

    def dispose(self) -> None:
        """Drop every registration and dispose all engines.
        """
        with self._lock.write():
            for engine in self._engines.values():
                engine.dispose()
            self._engines.clear()
            self._tables.clear()
        logger.debug('All table engines disposed')
