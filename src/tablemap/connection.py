"""
Engine creation and connection checks.

This module provides:
1. `create_url_from_options()` converting TableOptions to a SQLAlchemy URL
2. `create_engine_for_options()` building an engine through an injectable
   factory and wiring per-connection configuration
3. `check_connection()` opening a connection and probing it with a round trip
"""
import logging
from collections.abc import Callable
from typing import Any

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from tablemap.options import TableOptions
from tablemap.strategy import DatabaseStrategy, get_strategy

__all__ = [
    'create_url_from_options',
    'create_engine_for_options',
    'check_connection',
]

logger = logging.getLogger(__name__)

EngineFactory = Callable[..., Engine]


def create_url_from_options(options: TableOptions,
                            url_creator: Callable[..., sa.URL] = sa.URL.create) -> sa.URL:
    """Convert TableOptions to SQLAlchemy URL.
    """
    strategy = get_strategy(options.drivername)
    return strategy.build_connection_url(options, url_creator=url_creator)


def create_engine_for_options(options: TableOptions,
                              engine_factory: EngineFactory = sa.create_engine,
                              **kwargs: Any) -> Engine:
    """Create a SQLAlchemy engine for the given options.

    Each new DBAPI connection is configured by the dialect strategy.
    """
    strategy = get_strategy(options.drivername)
    url = create_url_from_options(options)

    engine_kwargs: dict[str, Any] = {'echo': False}
    engine_kwargs.update(strategy.get_engine_kwargs(options))
    engine_kwargs.update(kwargs)

    engine = engine_factory(url, **engine_kwargs)

    if isinstance(engine, Engine):
        sa.event.listen(engine, 'connect',
                        lambda dbapi_conn, record: strategy.configure_connection(dbapi_conn))

    logger.debug(f'Created new engine for {options.drivername}')
    return engine


def check_connection(engine: Engine, strategy: DatabaseStrategy) -> None:
    """Open a connection and verify it with a round-trip probe.

    Open and probe errors propagate unchanged.
    """
    raw_conn = engine.raw_connection()
    try:
        strategy.ping(raw_conn)
    finally:
        raw_conn.close()
    logger.debug(f'Connection check passed for {strategy.dialect_name}')
