"""
Tests for the mapper facade against a mock engine.
"""

import threading

import pytest
import tablemap as tm
from tablemap import RowNotRecognized, ValidationError
from tests.fixtures.mocks import _create_mock_engine
from tests.fixtures.records import Account, User

SQLITE = {'drivername': 'sqlite', 'database': 'mapper.db'}


@pytest.fixture
def mock_mapper(mock_engine_factory):
    with tm.new(engine_factory=mock_engine_factory) as mapper:
        mapper.register_table(User, SQLITE, table='users', auto_increment=True)
        mapper.register_table(Account, SQLITE, table='accounts', primary_key='code')
        yield mapper


def last_execute(engine):
    return engine.cursor.execute.call_args.args


def test_unregistered_insert_performs_no_io(mock_engine_factory, mock_engine):
    """Operations on unregistered types fail before touching a connection"""
    mapper = tm.new(engine_factory=mock_engine_factory)

    for operation in (mapper.insert, mapper.update, mapper.delete, mapper.select):
        with pytest.raises(RowNotRecognized):
            operation(User(name='a'))

    mock_engine_factory.assert_not_called()
    mock_engine.raw_connection.assert_not_called()


def test_register_rejects_non_dataclass(mock_engine_factory):
    """Non-dataclass records are rejected before a connection is opened"""
    class Plain:
        pass

    mapper = tm.new(engine_factory=mock_engine_factory)
    with pytest.raises(ValidationError):
        mapper.register_table(Plain, SQLITE, table='plain')
    mock_engine_factory.assert_not_called()


def test_register_invalid_options(mock_engine_factory):
    mapper = tm.new(engine_factory=mock_engine_factory)
    with pytest.raises(ValidationError, match='table'):
        mapper.register_table(User, SQLITE)


def test_insert(mock_mapper, mock_engine):
    last_id = mock_mapper.insert(User(id=99, name='a'))

    assert last_id == 1
    assert last_execute(mock_engine) == ('INSERT INTO "users" ("name") VALUES (?)', ('a',))


def test_insert_without_auto_increment(mock_mapper, mock_engine):
    mock_mapper.insert(Account(code='x', balance=5, note='ignored'))
    assert last_execute(mock_engine) == (
        'INSERT INTO "accounts" ("code","balance") VALUES (?,?)', ('x', 5))


def test_update(mock_mapper, mock_engine):
    assert mock_mapper.update(User(id=3, name='b')) is None
    assert last_execute(mock_engine) == ('UPDATE "users" SET "name"=? WHERE "id"=?', ('b', 3))


def test_delete(mock_mapper, mock_engine):
    assert mock_mapper.delete(Account(code='x')) is None
    assert last_execute(mock_engine) == ('DELETE FROM "accounts" WHERE "code"=?', ('x',))


def test_select(mock_engine_factory, mock_engine):
    mock_engine.cursor.fetchall.return_value = [(1, 'a'), (2, 'b')]
    with tm.new(engine_factory=mock_engine_factory) as mapper:
        mapper.register_table(User, SQLITE, table='users')
        users = mapper.select(User, 'name <> ?', 'z')

    assert users == [User(id=1, name='a'), User(id=2, name='b')]
    assert last_execute(mock_engine) == (
        'SELECT "id","name" FROM "users" WHERE name <> ?', ('z',))


def test_select_without_args(mock_mapper, mock_engine):
    mock_engine.cursor.fetchall.return_value = []
    assert mock_mapper.select(User()) == []
    assert last_execute(mock_engine) == ('SELECT "id","name" FROM "users" WHERE TRUE',)


def test_execute_error_propagates(mock_engine_factory):
    """Driver errors surface unchanged"""
    engine = _create_mock_engine()
    mock_engine_factory.return_value = engine
    with tm.new(engine_factory=mock_engine_factory) as mapper:
        mapper.register_table(User, SQLITE, table='users')
        error = RuntimeError('driver failure')
        engine.cursor.execute.side_effect = error

        with pytest.raises(RuntimeError) as exc_info:
            mapper.insert(User(name='a'))
        assert exc_info.value is error
        engine.raw_connection.return_value.close.assert_called()


def test_custom_tag(mock_engine_factory, mock_engine):
    from dataclasses import dataclass, field

    @dataclass
    class Tagged:
        id: int = field(default=0, metadata={'db': 'id'})
        label: str = field(default='', metadata={'db': 'label', 'sql': 'ignored'})

    with tm.new('db', engine_factory=mock_engine_factory) as mapper:
        mapper.register_table(Tagged, SQLITE, table='tagged', auto_increment=True)
        mapper.insert(Tagged(label='x'))

    assert last_execute(mock_engine) == ('INSERT INTO "tagged" ("label") VALUES (?)', ('x',))


def test_default_tag():
    assert tm.new().tag == 'sql'
    assert tm.new('').tag == 'sql'
    assert tm.new('db').tag == 'db'


def test_executor_counts_calls(mock_mapper):
    cfg = mock_mapper.lookup(User)
    mock_mapper.insert(User(name='a'))
    mock_mapper.update(User(id=1, name='a'))
    assert cfg.executor.calls == 2


def test_executor_counts_concurrent_calls(mock_mapper):
    """Statistics stay exact when many threads record calls"""
    executor = mock_mapper.lookup(User).executor

    def record():
        for _ in range(1000):
            executor.addcall(0.001)

    threads = [threading.Thread(target=record) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert executor.calls == 8000
    assert executor.time == pytest.approx(8.0)


def test_close_disposes_engines(mock_engine_factory, mock_engine):
    mapper = tm.new(engine_factory=mock_engine_factory)
    mapper.register_table(User, SQLITE, table='users')
    mapper.close()

    mock_engine.dispose.assert_called_once()
    with pytest.raises(RowNotRecognized):
        mapper.lookup(User)


def test_module_facade(monkeypatch, mock_engine_factory, mock_engine):
    """Module functions delegate to the default mapper"""
    monkeypatch.setattr(tm, 'default_mapper', tm.new(engine_factory=mock_engine_factory))

    tm.register_table(User, SQLITE, table='users', auto_increment=True)
    assert tm.insert(User(name='a')) == 1
    tm.update(User(id=1, name='b'))
    tm.delete(User(id=1))
    mock_engine.cursor.fetchall.return_value = [(1, 'b')]
    assert tm.select(User, 'id = ?', 1) == [User(id=1, name='b')]

    with pytest.raises(RowNotRecognized):
        tm.insert(Account(code='x'))
    tm.default_mapper.close()
