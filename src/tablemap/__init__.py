"""
Mapping of dataclass records to relational table rows.

All operations can be called either as:
- Module functions: tablemap.insert(record)
- Mapper methods: mapper.insert(record)

The module functions are facades over a default Mapper using the `sql`
field metadata key. Use `tablemap.new(tag)` for an independent mapper.
"""
__version__ = '0.1.0'

from typing import Any

from tablemap.descriptor import FieldBinding, RecordDescriptor, column
from tablemap.descriptor import describe, extract
from tablemap.exceptions import DbConnectionError, IntegrityError
from tablemap.exceptions import MappingError, ProgrammingError
from tablemap.exceptions import RowNotRecognized, TypeNotSupported
from tablemap.exceptions import ValidationError
from tablemap.mapper import Mapper, new
from tablemap.options import TableOptions
from tablemap.registry import TableConfig

default_mapper = Mapper()


def register_table(record: Any, options: TableOptions | dict[str, Any] | str | None = None,
                   config: Any | None = None, **kw: Any) -> TableConfig:
    """Bind a record type to a table on the default mapper.
    """
    return default_mapper.register_table(record, options, config, **kw)


def insert(record: Any) -> int:
    """Insert a record and return the generated identifier.
    """
    return default_mapper.insert(record)


def update(record: Any) -> None:
    """Update the row addressed by the record's primary key.
    """
    default_mapper.update(record)


def select(record: Any, where: str = '', *args: Any) -> list[Any]:
    """Select records of the record's type matching a WHERE predicate.
    """
    return default_mapper.select(record, where, *args)


def delete(record: Any) -> None:
    """Delete the row addressed by the record's primary key.
    """
    default_mapper.delete(record)


__all__ = [
    'Mapper',
    'new',
    'default_mapper',
    'register_table',
    'insert',
    'update',
    'select',
    'delete',
    'column',
    'describe',
    'extract',
    'FieldBinding',
    'RecordDescriptor',
    'TableOptions',
    'TableConfig',
    'MappingError',
    'RowNotRecognized',
    'TypeNotSupported',
    'ValidationError',
    'DbConnectionError',
    'IntegrityError',
    'ProgrammingError',
]
