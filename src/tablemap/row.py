"""Materialization of fetched rows into record instances."""
import dataclasses
import logging
from collections.abc import Iterable, Sequence
from typing import Any

from tablemap.descriptor import RecordDescriptor
from tablemap.types import TypeConverter

logger = logging.getLogger(__name__)


def _field_default(f: dataclasses.Field) -> Any:
    if f.default is not dataclasses.MISSING:
        return f.default
    if f.default_factory is not dataclasses.MISSING:
        return f.default_factory()
    return None


def build_record(descriptor: RecordDescriptor, row: Sequence[Any]) -> Any:
    """Construct a new record from one row of persisted-column values.

    Row values are positional and aligned with `descriptor.columns`. The
    instance is allocated without calling `__init__`; persisted fields get
    the converted column value, every other field its declared default (or
    None when it declares none).

    Raises
        TypeNotSupported: If a value cannot be converted to its field type
    """
    if len(row) != len(descriptor.bindings):
        raise ValueError(
            f'Expected {len(descriptor.bindings)} columns, got {len(row)}')

    record_type = descriptor.record_type
    record = object.__new__(record_type)
    values = {
        b.name: TypeConverter.to_field(value, b.type, b.column)
        for b, value in zip(descriptor.bindings, row)
    }
    for f in dataclasses.fields(record_type):
        value = values[f.name] if f.name in values else _field_default(f)
        object.__setattr__(record, f.name, value)
    return record


def materialize(descriptor: RecordDescriptor, rows: Iterable[Sequence[Any]]) -> list[Any]:
    """Build one record per row, in row order.

    The first failure propagates; no partial list is returned.
    """
    records = [build_record(descriptor, row) for row in rows]
    logger.debug(f'Materialized {len(records)} {descriptor.record_type.__qualname__} record(s)')
    return records
