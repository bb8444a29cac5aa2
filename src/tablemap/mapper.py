"""
Record mapper: the entry point composing registry, extraction, statement
building, execution and materialization.

Each operation follows the same path:

    lookup(type) -> extract(record) -> build statement -> execute -> materialize

The Mapper holds no state besides its registry; every call re-reads the
record's current field values.
"""
import logging
from typing import Any, Self

import sqlalchemy as sa
from tablemap.connection import EngineFactory
from tablemap.descriptor import DEFAULT_TAG, describe
from tablemap.options import TableOptions, load_table_options
from tablemap.registry import TableConfig, TableRegistry
from tablemap.row import materialize
from tablemap.statement import build_delete, build_insert, build_select
from tablemap.statement import build_update

__all__ = ['Mapper', 'new']

logger = logging.getLogger(__name__)


class Mapper:
    """Maps dataclass records to table rows.

    Args:
        tag: Field metadata key naming persisted columns (default 'sql')
        engine_factory: Callable creating SQLAlchemy engines
            (default `sqlalchemy.create_engine`)
    """

    def __init__(self, tag: str | None = None,
                 engine_factory: EngineFactory | None = None) -> None:
        self.tag = tag or DEFAULT_TAG
        self.registry = TableRegistry(engine_factory=engine_factory or sa.create_engine)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()

    def close(self) -> None:
        """Drop all registrations and dispose their engines.
        """
        self.registry.dispose()

    def register_table(self, record: Any,
                       options: TableOptions | dict[str, Any] | str | None = None,
                       config: Any | None = None, **kw: Any) -> TableConfig:
        """Bind a record type to a table, opening and probing its connection.

        Args:
            record: Record instance or dataclass
            options: TableOptions, dict, or configuration section name
            config: Configuration object for a section name
            **kw: Option values or overrides

        Returns
            The registered TableConfig
        """
        options = load_table_options(options, config, **kw)
        describe(record, self.tag)
        return self.registry.register(record, options)

    def lookup(self, record: Any) -> TableConfig:
        """Return the table configuration of a registered record type.
        """
        return self.registry.lookup(record)

    def insert(self, record: Any) -> int:
        """Insert the record and return the generated identifier.
        """
        cfg = self.registry.lookup(record)
        descriptor = describe(record, self.tag)
        statement = build_insert(cfg.strategy, cfg.table, descriptor.columns,
                                 descriptor.values(record), cfg.primary_key,
                                 cfg.auto_increment)
        return cfg.executor.insert(statement)

    def update(self, record: Any) -> None:
        """Write every persisted field of the record to the row with its primary key.
        """
        cfg = self.registry.lookup(record)
        descriptor = describe(record, self.tag)
        statement = build_update(cfg.strategy, cfg.table, descriptor.columns,
                                 descriptor.values(record), cfg.primary_key)
        cfg.executor.execute(statement)

    def select(self, record: Any, where: str = '', *args: Any) -> list[Any]:
        """Return new records for the rows matching a WHERE predicate.

        The predicate is inserted verbatim; values belong in `args`. An
        empty predicate returns every row.
        """
        cfg = self.registry.lookup(record)
        descriptor = describe(record, self.tag)
        statement = build_select(cfg.strategy, cfg.table, descriptor.columns, where, args)
        rows = cfg.executor.query(statement)
        return materialize(descriptor, rows)

    def delete(self, record: Any) -> None:
        """Delete the row with the record's primary key.
        """
        cfg = self.registry.lookup(record)
        descriptor = describe(record, self.tag)
        statement = build_delete(cfg.strategy, cfg.table, descriptor.columns,
                                 descriptor.values(record), cfg.primary_key)
        cfg.executor.execute(statement)


def new(tag: str | None = None, engine_factory: EngineFactory | None = None) -> Mapper:
    """Create a Mapper using `tag` as the field metadata key.
    """
    return Mapper(tag=tag, engine_factory=engine_factory)
