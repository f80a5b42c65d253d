"""SQLAlchemy implementation of the snapshot store."""

import json
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taxledger.database.base import SnapshotStore
from taxledger.database.models import Snapshot, create_session_factory
from taxledger.domain.errors import PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_KEY = "engine"


class SQLAlchemySnapshotStore(SnapshotStore):
    """Stores the snapshot blob as JSON text in a single table row."""

    def __init__(self, database_url: str, key: str = DEFAULT_KEY):
        """Initialize SQLAlchemy snapshot store.

        Args:
            database_url: SQLAlchemy database URL (e.g., 'sqlite:///path/to.db')
            key: Row key the snapshot is stored under
        """
        self.database_url = database_url
        self.key = key
        self.session_factory = create_session_factory(database_url)
        self._session: Optional[Session] = None

    def _get_session(self) -> Session:
        """Get current session, creating one if needed."""
        if self._session is None:
            self._session = self.session_factory()
        return self._session

    def connect(self) -> None:
        """Connect to the database."""
        # Connection is lazy, so this is a no-op
        pass

    def disconnect(self) -> None:
        """Disconnect from the database."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        # Schema is created automatically by create_session_factory
        pass

    def load(self) -> Optional[dict]:
        """Return the saved snapshot blob, or None if nothing was saved."""
        session = self._get_session()
        try:
            row = session.query(Snapshot).filter(Snapshot.key == self.key).first()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Could not read snapshot: {e}") from e
        if row is None:
            return None
        try:
            return json.loads(row.payload)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Snapshot payload is not valid JSON: {e}") from e

    def save(self, blob: dict) -> None:
        """Replace the saved snapshot blob."""
        try:
            payload = json.dumps(blob)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Snapshot is not serializable: {e}") from e

        session = self._get_session()
        try:
            row = session.query(Snapshot).filter(Snapshot.key == self.key).first()
            if row is None:
                row = Snapshot(key=self.key, version=blob.get("version", 1), payload=payload)
                session.add(row)
            else:
                row.version = blob.get("version", 1)
                row.payload = payload
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Could not save snapshot: {e}") from e
        logger.debug("Saved snapshot '%s' (%d bytes)", self.key, len(payload))

    def clear(self) -> None:
        """Delete the saved snapshot, if any."""
        session = self._get_session()
        try:
            session.query(Snapshot).filter(Snapshot.key == self.key).delete()
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Could not clear snapshot: {e}") from e
