import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from domain.entities import Task
from domain.errors import StoreError
from infrastructure.database import Database


@pytest.fixture
def db(tmp_path) -> Database:
    return Database(str(tmp_path / "tasks.db"))


def test_insert_and_find_by_id(db) -> None:
    task = Task(title="Buy milk", description="2%", owner_id="u1")

    db.insert(task)
    loaded = db.find_by_id(task.id)

    assert loaded == task
    assert loaded.created_at.tzinfo is not None


def test_find_by_id_missing(db) -> None:
    assert db.find_by_id("missing") is None


def test_find_by_owner_orders_newest_first(db) -> None:
    base = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    older = db.insert(Task(title="old", description="d", owner_id="u1", created_at=base))
    newer = db.insert(
        Task(title="new", description="d", owner_id="u1", created_at=base + timedelta(seconds=1))
    )
    middle = db.insert(
        Task(title="mid", description="d", owner_id="u1", created_at=base + timedelta(microseconds=500))
    )
    db.insert(Task(title="other", description="d", owner_id="u2", created_at=base))

    assert [t.id for t in db.find_by_owner("u1")] == [newer.id, middle.id, older.id]
    assert [t.title for t in db.find_by_owner("u2")] == ["other"]
    assert db.find_by_owner("u3") == []


def test_same_timestamp_falls_back_to_insert_order(db) -> None:
    stamp = datetime(2026, 3, 1, tzinfo=timezone.utc)
    first = db.insert(Task(title="first", description="d", owner_id="u1", created_at=stamp))
    second = db.insert(Task(title="second", description="d", owner_id="u1", created_at=stamp))

    assert [t.id for t in db.find_by_owner("u1")] == [second.id, first.id]


def test_delete_by_id(db) -> None:
    task = db.insert(Task(title="Buy milk", description="2%", owner_id="u1"))

    db.delete_by_id(task.id)

    assert db.find_by_id(task.id) is None
    assert db.find_by_owner("u1") == []


def test_tasks_survive_reopen(tmp_path) -> None:
    path = str(tmp_path / "tasks.db")
    task = Database(path).insert(Task(title="Buy milk", description="2%", owner_id="u1"))

    assert Database(path).find_by_id(task.id) == task


def test_sqlite_errors_are_wrapped(db) -> None:
    with sqlite3.connect(db.db_name) as conn:
        conn.execute("DROP TABLE tasks")

    with pytest.raises(StoreError):
        db.find_by_owner("u1")
    with pytest.raises(StoreError):
        db.insert(Task(title="Buy milk", description="2%", owner_id="u1"))


def test_duplicate_id_is_a_store_error(db) -> None:
    task = db.insert(Task(title="Buy milk", description="2%", owner_id="u1"))

    with pytest.raises(StoreError):
        db.insert(task)


def test_unopenable_path_is_a_store_error(tmp_path) -> None:
    with pytest.raises(StoreError):
        Database(str(tmp_path))


def test_malformed_timestamp_is_a_store_error(db) -> None:
    with sqlite3.connect(db.db_name) as conn:
        conn.execute(
            "INSERT INTO tasks (id, title, description, user_id, created_at) VALUES (?, ?, ?, ?, ?)",
            ("bad", "Buy milk", "2%", "u1", "last tuesday"),
        )

    with pytest.raises(StoreError, match="malformed created_at"):
        db.find_by_id("bad")
    with pytest.raises(StoreError):
        db.find_by_owner("u1")


def test_ping(db) -> None:
    db.ping()

    with sqlite3.connect(db.db_name) as conn:
        conn.execute("DROP TABLE tasks")

    with pytest.raises(StoreError):
        db.ping()
