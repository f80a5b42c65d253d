"""Persistence layer for taxledger."""

from taxledger.database.base import SnapshotStore
from taxledger.database.factories import create_sqlite_store

__all__ = ["SnapshotStore", "create_sqlite_store"]
