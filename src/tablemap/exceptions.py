"""
Mapping-specific exception classes.
"""
import sqlite3

import psycopg


class MappingError(Exception):
    """Base class for all tablemap errors.
    """


class RowNotRecognized(MappingError):
    """Record type was never registered with a table.
    """

    def __init__(self, record_type: type | None = None) -> None:
        self.record_type = record_type
        name = getattr(record_type, '__qualname__', None)
        super().__init__(f'row not recognized: {name}' if name else 'row not recognized')


class TypeNotSupported(MappingError):
    """Column value cannot be converted to the declared field type.
    """


class ValidationError(MappingError, ValueError):
    """Error in input validation.
    """


DbConnectionError = (
    psycopg.OperationalError,
    psycopg.InterfaceError,
    sqlite3.OperationalError,
    sqlite3.InterfaceError,
    )

IntegrityError = (
    psycopg.IntegrityError,
    sqlite3.IntegrityError,
    )

ProgrammingError = (
    psycopg.ProgrammingError,
    psycopg.DatabaseError,
    sqlite3.ProgrammingError,
    sqlite3.DatabaseError,
    )
