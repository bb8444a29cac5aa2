"""
Dialect strategies, looked up by SQLAlchemy driver name.
"""
from functools import lru_cache

from tablemap.strategy.base import _STRATEGY_REGISTRY
from tablemap.strategy.base import DatabaseStrategy as DatabaseStrategy
from tablemap.strategy.base import register_strategy as register_strategy
from tablemap.strategy.postgres import PostgresStrategy as PostgresStrategy
from tablemap.strategy.sqlite import SQLiteStrategy as SQLiteStrategy


def get_available_dialects() -> list[str]:
    """Names of the registered dialects."""
    return sorted(_STRATEGY_REGISTRY)


def is_supported_dialect(dialect: str) -> bool:
    return dialect in _STRATEGY_REGISTRY


def get_strategy_class(dialect: str) -> type[DatabaseStrategy]:
    """Strategy class registered for `dialect`.

    Raises
        ValueError: If no strategy handles the dialect
    """
    try:
        return _STRATEGY_REGISTRY[dialect]
    except KeyError:
        raise ValueError(
            f'Unsupported dialect: {dialect}. Available: {get_available_dialects()}') from None


@lru_cache(maxsize=8)
def get_strategy(dialect: str) -> DatabaseStrategy:
    """Shared strategy instance for `dialect`; strategies hold no state."""
    return get_strategy_class(dialect)()
