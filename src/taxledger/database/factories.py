"""Store factory functions for creating snapshot store instances."""

import os
from pathlib import Path
from typing import Optional

from taxledger.database.sqlalchemy_db import SQLAlchemySnapshotStore


def create_sqlite_store(database_path: Optional[str] = None) -> SQLAlchemySnapshotStore:
    """Create a SQLite-backed snapshot store.

    Args:
        database_path: Path to SQLite database file. If None, checks TAXLEDGER_DB_PATH
            environment variable, then defaults to ~/.taxledger/taxledger.db

    Returns:
        SQLAlchemySnapshotStore instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get("TAXLEDGER_DB_PATH")

    if database_path is None:
        db_dir = Path.home() / ".taxledger"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "taxledger.db")

    return SQLAlchemySnapshotStore(f"sqlite:///{database_path}")
