"""
Type conversion between record fields and database values.

Two directions:
1. `TypeConverter.convert_params` prepares field values for binding
   (Python -> Database).
2. `TypeConverter.to_field` converts a fetched column value to the field's
   declared type (Database -> Python) so materialized records carry the
   types their dataclass declares.

Conversions that cannot be performed raise `TypeNotSupported`.
"""
import datetime
import decimal
import enum
import json
import logging
import math
import types
import uuid
from collections.abc import Callable, Sequence
from typing import Any, Union, get_args, get_origin

import dateutil.parser
from tablemap.exceptions import TypeNotSupported

logger = logging.getLogger(__name__)

TRUE_STRINGS: set[str] = {'true', 't', 'yes', 'y', '1'}
FALSE_STRINGS: set[str] = {'false', 'f', 'no', 'n', '0'}


def convert_date(val: bytes) -> datetime.date:
    """Convert ISO 8601 date string to date object."""
    return dateutil.parser.isoparse(val.decode()).date()


def convert_datetime(val: bytes) -> datetime.datetime:
    """Convert ISO 8601 datetime string to datetime object."""
    return dateutil.parser.isoparse(val.decode())


def unwrap_optional(field_type: Any) -> Any:
    """Return X for `X | None` / `Optional[X]`, otherwise the type unchanged.

    Unions of several non-null types are returned unchanged.
    """
    if get_origin(field_type) in {Union, types.UnionType}:
        args = [arg for arg in get_args(field_type) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return field_type


def _decode(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode()
    return value


def _to_bool(value: Any) -> bool:
    value = _decode(value)
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, decimal.Decimal)) or (
            isinstance(value, float) and not math.isnan(value)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    raise ValueError(f'not a boolean: {value!r}')


def _to_int(value: Any) -> int:
    value = _decode(value)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, (float, decimal.Decimal)):
        if value != int(value):
            raise ValueError(f'not an integral value: {value!r}')
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    raise ValueError(f'not an integer: {value!r}')


def _to_float(value: Any) -> float:
    value = _decode(value)
    if isinstance(value, (int, float, decimal.Decimal, str)):
        return float(value)
    raise ValueError(f'not a number: {value!r}')


def _to_decimal(value: Any) -> decimal.Decimal:
    value = _decode(value)
    if isinstance(value, decimal.Decimal):
        return value
    if isinstance(value, (int, float, str)):
        try:
            return decimal.Decimal(str(value))
        except decimal.InvalidOperation as err:
            raise ValueError(f'not a decimal: {value!r}') from err
    raise ValueError(f'not a decimal: {value!r}')


def _to_str(value: Any) -> str:
    value = _decode(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, decimal.Decimal, uuid.UUID)):
        return str(value)
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    raise ValueError(f'not a string: {value!r}')


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode()
    raise ValueError(f'not bytes: {value!r}')


def _to_datetime(value: Any) -> datetime.datetime:
    value = _decode(value)
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, str):
        return dateutil.parser.isoparse(value)
    raise ValueError(f'not a datetime: {value!r}')


def _to_date(value: Any) -> datetime.date:
    value = _decode(value)
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        return dateutil.parser.isoparse(value).date()
    raise ValueError(f'not a date: {value!r}')


def _to_time(value: Any) -> datetime.time:
    value = _decode(value)
    if isinstance(value, datetime.time):
        return value
    if isinstance(value, datetime.datetime):
        return value.time()
    if isinstance(value, datetime.timedelta):
        return (datetime.datetime.min + value).time()
    if isinstance(value, str):
        return datetime.time.fromisoformat(value)
    raise ValueError(f'not a time: {value!r}')


def _to_uuid(value: Any) -> uuid.UUID:
    value = _decode(value)
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, str):
        return uuid.UUID(value)
    raise ValueError(f'not a uuid: {value!r}')


def _from_json(expected: type) -> Callable[[Any], Any]:
    def convert(value: Any) -> Any:
        value = _decode(value)
        if isinstance(value, str):
            value = json.loads(value)
        if not isinstance(value, expected):
            raise ValueError(f'not a {expected.__name__}: {value!r}')
        return value
    return convert


# datetime must precede date: datetime is a date subclass
_FIELD_CONVERTERS: dict[type, Callable[[Any], Any]] = {
    bool: _to_bool,
    int: _to_int,
    float: _to_float,
    decimal.Decimal: _to_decimal,
    str: _to_str,
    bytes: _to_bytes,
    datetime.datetime: _to_datetime,
    datetime.date: _to_date,
    datetime.time: _to_time,
    uuid.UUID: _to_uuid,
    dict: _from_json(dict),
    list: _from_json(list),
}


class TypeConverter:
    """Conversion between record field values and database values.
    """

    @staticmethod
    def convert_value(value: Any) -> Any:
        """Convert a single field value to a database-compatible parameter."""
        if isinstance(value, enum.Enum):
            return value.value
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        if isinstance(value, uuid.UUID):
            return str(value)
        return value

    @staticmethod
    def convert_params(params: Sequence[Any]) -> tuple:
        """Convert every parameter of a statement."""
        return tuple(TypeConverter.convert_value(p) for p in params)

    @staticmethod
    def _to_union(value: Any, members: tuple, column: str) -> Any:
        members = [m for m in members if m is not type(None)]
        for member in members:
            origin = get_origin(member) or member
            if isinstance(origin, type) and origin is not Any and isinstance(value, origin):
                return value
        for member in members:
            try:
                return TypeConverter.to_field(value, member, column)
            except TypeNotSupported:
                continue
        names = ' | '.join(getattr(m, '__name__', repr(m)) for m in members)
        raise TypeNotSupported(
            f'cannot convert column {column!r} value {value!r} to {names}')

    @staticmethod
    def to_field(value: Any, field_type: Any, column: str = '') -> Any:
        """Convert a fetched column value to the declared field type.

        NULL stays None. Unresolved annotations (strings, `Any`, TypeVars)
        receive the value unchanged. Unions of several types keep a value
        already of a member type, otherwise the members are tried in order.

        Raises
            TypeNotSupported: If the value cannot be represented as field_type
        """
        if value is None:
            return None

        target = unwrap_optional(field_type)
        if get_origin(target) in {Union, types.UnionType}:
            return TypeConverter._to_union(value, get_args(target), column)

        origin = get_origin(target)
        if origin is not None:
            target = origin

        if target is Any or target is object or not isinstance(target, type):
            return value

        if issubclass(target, enum.Enum):
            try:
                return target(value)
            except ValueError as err:
                raise TypeNotSupported(
                    f'cannot convert column {column!r} value {value!r} to {target.__name__}') from err

        converter = _FIELD_CONVERTERS.get(target)
        if converter is None:
            for base, candidate in _FIELD_CONVERTERS.items():
                if issubclass(target, base):
                    converter = candidate
                    break

        if converter is None:
            if isinstance(value, target):
                return value
            raise TypeNotSupported(
                f'field type {target.__name__} not supported for column {column!r}')

        try:
            return converter(value)
        except (ValueError, TypeError, OverflowError, json.JSONDecodeError) as err:
            raise TypeNotSupported(
                f'cannot convert column {column!r} value {value!r} to {target.__name__}') from err
