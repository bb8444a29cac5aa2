"""
Field-tag extraction for record types.

A record type is a dataclass whose persisted fields carry a tag in their
field metadata, keyed by the mapper's tag name (default ``sql``):

    @dataclass
    class User:
        id: int = column('id')
        name: str = field(default='', metadata={'sql': 'name'})
        cache: dict = field(default_factory=dict)          # not persisted
        note: str = field(default='', metadata={'sql': '-'})  # not persisted

The first comma separated segment of the tag is the column name, taken
verbatim. The field/column table is computed once per (type, tag) and
cached; values are read from the record on every call.
"""
import dataclasses
import logging
import typing
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from tablemap.exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_TAG = 'sql'
SKIP = '-'


def column(name: str, *, tag: str = DEFAULT_TAG, **kwargs: Any) -> Any:
    """Declare a dataclass field persisted under column `name`.

    Remaining keyword arguments are passed to `dataclasses.field`; the
    default is None unless `default` or `default_factory` is given.
    """
    metadata = dict(kwargs.pop('metadata', None) or {})
    metadata[tag] = name
    if 'default' not in kwargs and 'default_factory' not in kwargs:
        kwargs['default'] = None
    return dataclasses.field(metadata=metadata, **kwargs)


def parse_tag(tag: Any) -> str | None:
    """Return the column name of a tag, or None if the field is not persisted.
    """
    if not isinstance(tag, str) or not tag:
        return None
    name = tag.split(',')[0]
    if name == SKIP:
        return None
    return name


@dataclass(frozen=True, slots=True)
class FieldBinding:
    """A persisted field: its column, position, attribute name and declared type."""
    column: str
    index: int
    name: str
    type: Any


@dataclass(frozen=True)
class RecordDescriptor:
    """Persisted-field table for one record type under one tag.
    """
    record_type: type
    tag: str
    bindings: tuple[FieldBinding, ...]
    field_names: tuple[str, ...]

    @property
    def columns(self) -> list[str]:
        """Persisted column names in declaration order."""
        return [b.column for b in self.bindings]

    @property
    def presence(self) -> frozenset[int]:
        """Positions of the persisted fields."""
        return frozenset(b.index for b in self.bindings)

    def values(self, record: Any) -> list[Any]:
        """Current values of the persisted fields, aligned with `columns`."""
        return [getattr(record, b.name) for b in self.bindings]

    def find(self, column: str) -> FieldBinding | None:
        """First binding persisted under `column`, if any."""
        for binding in self.bindings:
            if binding.column == column:
                return binding
        return None


def record_type_of(record: Any) -> type:
    """Resolve an instance or a class to the record class."""
    return record if isinstance(record, type) else type(record)


def _resolve_hints(record_type: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(record_type)
    except (NameError, TypeError) as err:
        logger.debug(f'Could not resolve annotations of {record_type.__qualname__}: {err}')
        return {}


@lru_cache(maxsize=None)
def _describe(record_type: type, tag: str) -> RecordDescriptor:
    if not dataclasses.is_dataclass(record_type):
        raise ValidationError(f'{record_type.__qualname__} is not a dataclass')

    hints = _resolve_hints(record_type)
    fields = dataclasses.fields(record_type)
    bindings = []
    for index, f in enumerate(fields):
        name = parse_tag(f.metadata.get(tag))
        if name is None:
            continue
        bindings.append(FieldBinding(
            column=name,
            index=index,
            name=f.name,
            type=hints.get(f.name, f.type),
        ))

    logger.debug(f'Described {record_type.__qualname__}: {[b.column for b in bindings]}')
    return RecordDescriptor(
        record_type=record_type,
        tag=tag,
        bindings=tuple(bindings),
        field_names=tuple(f.name for f in fields),
    )


def describe(record: Any, tag: str = DEFAULT_TAG) -> RecordDescriptor:
    """Return the cached descriptor for a record instance or class.

    Raises
        ValidationError: If the record type is not a dataclass
    """
    return _describe(record_type_of(record), tag)


def extract(record: Any, tag: str = DEFAULT_TAG) -> tuple[list[str], list[Any], frozenset[int]]:
    """Extract (columns, values, presence) for a record instance.

    Columns and values are aligned positionally in declaration order.
    """
    descriptor = describe(record, tag)
    return descriptor.columns, descriptor.values(record), descriptor.presence
