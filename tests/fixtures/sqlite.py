import pytest
import tablemap as tm
from tests.fixtures.records import ACCOUNTS_DDL, EVENTS_DDL, USERS_DDL
from tests.fixtures.records import Account, Event, User


def execute_ddl(cfg, sql):
    """Run a DDL statement on a registered table's engine."""
    with cfg.engine.connect() as conn:
        conn.exec_driver_sql(sql)


@pytest.fixture
def mapper():
    """Fresh mapper; in-memory databases live as long as it does."""
    with tm.new() as m:
        yield m


@pytest.fixture
def sqlite_options():
    """In-memory SQLite options for the users table"""
    return {
        'drivername': 'sqlite',
        'database': ':memory:',
        'table': 'users',
        'primary_key': 'id',
        'auto_increment': True,
    }


@pytest.fixture
def sl_mapper(mapper, sqlite_options):
    """Mapper with User, Account and Event registered on one in-memory database"""
    cfg = mapper.register_table(User, sqlite_options)
    execute_ddl(cfg, USERS_DDL)

    cfg = mapper.register_table(Account, dict(sqlite_options, table='accounts',
                                              primary_key='code', auto_increment=False))
    execute_ddl(cfg, ACCOUNTS_DDL)

    cfg = mapper.register_table(Event, dict(sqlite_options, table='events'))
    execute_ddl(cfg, EVENTS_DDL)

    return mapper
