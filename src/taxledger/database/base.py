"""Abstract snapshot store interface."""

from abc import ABC, abstractmethod
from typing import Optional


class SnapshotStore(ABC):
    """Key-value store holding the engine's persisted snapshot blob."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the store."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the store."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize storage schema (create tables)."""
        pass

    @abstractmethod
    def load(self) -> Optional[dict]:
        """Return the saved snapshot blob, or None if nothing was saved.

        Raises:
            PersistenceError: If the store cannot be read
        """
        pass

    @abstractmethod
    def save(self, blob: dict) -> None:
        """Replace the saved snapshot blob.

        Raises:
            PersistenceError: If the store cannot be written
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Delete the saved snapshot, if any."""
        pass
