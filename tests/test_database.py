"""Tests for the SQLAlchemy snapshot store."""

import pytest

from taxledger.database.base import SnapshotStore
from taxledger.database.factories import create_sqlite_store
from taxledger.database.sqlalchemy_db import SQLAlchemySnapshotStore
from taxledger.domain.errors import PersistenceError


def test_store_implements_interface(temp_store):
    """Test that the SQLite store is a SnapshotStore."""
    assert isinstance(temp_store, SnapshotStore)


def test_load_empty(temp_store):
    """Test that an empty store has no snapshot."""
    assert temp_store.load() is None


def test_save_and_load(temp_store):
    """Test saving and reading back a blob."""
    blob = {"version": 2, "transactions": [{"id": "T1", "amount": "100.00"}]}
    temp_store.save(blob)

    assert temp_store.load() == blob


def test_save_replaces(temp_store):
    """Test that a second save overwrites the first."""
    temp_store.save({"version": 2, "n": 1})
    temp_store.save({"version": 2, "n": 2})

    assert temp_store.load() == {"version": 2, "n": 2}


def test_clear(temp_store):
    """Test deleting the snapshot."""
    temp_store.save({"version": 2})
    temp_store.clear()

    assert temp_store.load() is None


def test_unserializable_blob(temp_store):
    """Test that non-JSON values raise a persistence error."""
    with pytest.raises(PersistenceError):
        temp_store.save({"version": 2, "when": object()})
    assert temp_store.load() is None


def test_snapshots_are_keyed(temp_store):
    """Test that stores with different keys do not share snapshots."""
    other = SQLAlchemySnapshotStore(temp_store.database_url, key="other")
    temp_store.save({"version": 2, "owner": "engine"})

    assert other.load() is None
    other.disconnect()


def test_survives_reconnect(temp_store):
    """Test that data persists across sessions."""
    temp_store.save({"version": 2, "n": 1})
    temp_store.disconnect()

    reopened = create_sqlite_store(database_path=temp_store.database_path)
    assert reopened.load() == {"version": 2, "n": 1}
    reopened.disconnect()


def test_factory_uses_environment(monkeypatch, tmp_path):
    """Test that TAXLEDGER_DB_PATH picks the database file."""
    db_file = tmp_path / "books.db"
    monkeypatch.setenv("TAXLEDGER_DB_PATH", str(db_file))

    store = create_sqlite_store()

    assert store.database_url == f"sqlite:///{db_file}"
