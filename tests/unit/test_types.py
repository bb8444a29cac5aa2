"""
Tests for conversion of column values to declared field types.
"""
import datetime
import decimal
import enum
import uuid
from typing import Any, Optional

import pytest
from tablemap import TypeNotSupported
from tablemap.types import TypeConverter, unwrap_optional


class Color(enum.Enum):
    RED = 'red'
    BLUE = 'blue'


class Point:
    pass


@pytest.mark.parametrize(('value', 'field_type', 'expected'), [
    (1, bool, True),
    (0, bool, False),
    ('t', bool, True),
    ('false', bool, False),
    (5, int, 5),
    ('42', int, 42),
    (3.0, int, 3),
    (decimal.Decimal('7'), int, 7),
    (2, float, 2.0),
    ('1.5', float, 1.5),
    (1.25, decimal.Decimal, decimal.Decimal('1.25')),
    ('12.50', decimal.Decimal, decimal.Decimal('12.50')),
    ('abc', str, 'abc'),
    (b'abc', str, 'abc'),
    (12, str, '12'),
    ('abc', bytes, b'abc'),
    (memoryview(b'ab'), bytes, b'ab'),
    ('2024-01-02', datetime.date, datetime.date(2024, 1, 2)),
    (datetime.datetime(2024, 1, 2, 3, 4), datetime.date, datetime.date(2024, 1, 2)),
    ('2024-01-02T03:04:05', datetime.datetime, datetime.datetime(2024, 1, 2, 3, 4, 5)),
    (datetime.date(2024, 1, 2), datetime.datetime, datetime.datetime(2024, 1, 2)),
    ('03:04:05', datetime.time, datetime.time(3, 4, 5)),
    ('12345678-1234-5678-1234-567812345678', uuid.UUID,
     uuid.UUID('12345678-1234-5678-1234-567812345678')),
    ('{"a": 1}', dict, {'a': 1}),
    ('[1, 2]', list, [1, 2]),
    ('[1, 2]', list[int], [1, 2]),
    ('red', Color, Color.RED),
])
def test_to_field(value, field_type, expected):
    """Column values convert to the declared field type"""
    result = TypeConverter.to_field(value, field_type)
    assert result == expected
    assert type(result) is type(expected)


@pytest.mark.parametrize('field_type', [int, str, datetime.date, int | None, Optional[str]])
def test_null_stays_none(field_type):
    assert TypeConverter.to_field(None, field_type) is None


def test_optional_unwrapped():
    assert TypeConverter.to_field('5', int | None) == 5
    assert TypeConverter.to_field('5', Optional[int]) == 5
    assert unwrap_optional(int | str) == int | str


@pytest.mark.parametrize(('value', 'field_type', 'expected'), [
    (5, int | str, 5),
    ('abc', int | str, 'abc'),
    ('abc', Optional[int | str], 'abc'),
    (b'7', int | float, 7),
    ('2024-05-06', datetime.date | int, datetime.date(2024, 5, 6)),
    ('blue', Color | int, Color.BLUE),
])
def test_union_members(value, field_type, expected):
    """Union fields keep member-typed values and otherwise try members in order"""
    result = TypeConverter.to_field(value, field_type, 'ref')
    assert result == expected
    assert type(result) is type(expected)


def test_union_without_matching_member():
    with pytest.raises(TypeNotSupported, match="column 'ref'"):
        TypeConverter.to_field('abc', int | datetime.date, 'ref')


@pytest.mark.parametrize('field_type', [Any, 'int', object])
def test_unresolved_types_pass_through(field_type):
    """Unresolved annotations receive the value unchanged"""
    assert TypeConverter.to_field('x', field_type) == 'x'


@pytest.mark.parametrize(('value', 'field_type'), [
    ('abc', int),
    (1.5, int),
    ('maybe', bool),
    ('abc', decimal.Decimal),
    ('not a date', datetime.date),
    (12, datetime.datetime),
    ('green', Color),
    ('not json', dict),
    ('[1]', dict),
    (object(), str),
])
def test_unconvertible_values_raise(value, field_type):
    """Values that cannot become the declared type raise TypeNotSupported"""
    with pytest.raises(TypeNotSupported):
        TypeConverter.to_field(value, field_type, 'col')


def test_unknown_field_type():
    """Unknown types accept instances of themselves and reject anything else"""
    point = Point()
    assert TypeConverter.to_field(point, Point) is point
    with pytest.raises(TypeNotSupported, match="not supported for column 'pos'"):
        TypeConverter.to_field('1,2', Point, 'pos')


@pytest.mark.parametrize(('value', 'expected'), [
    (Color.BLUE, 'blue'),
    ({'a': 1}, '{"a": 1}'),
    ([1, 2], '[1, 2]'),
    (uuid.UUID('12345678-1234-5678-1234-567812345678'), '12345678-1234-5678-1234-567812345678'),
    (5, 5),
    (None, None),
])
def test_convert_value(value, expected):
    """Field values are adapted for binding"""
    assert TypeConverter.convert_value(value) == expected


def test_convert_params():
    assert TypeConverter.convert_params([Color.RED, 1, 'a']) == ('red', 1, 'a')
