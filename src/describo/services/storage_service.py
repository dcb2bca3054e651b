"""Durable key-value storage for game state."""
import logging
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from describo.models.models import StorageEntry

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Key-value storage backed by the storage_entries table.

    Every operation runs in its own short-lived session, so an idle chat
    holds no database connection. Every write fully replaces the value of
    its key and is committed immediately.
    """

    def __init__(self, session_factory: Callable[[], Session], namespace: str = "default"):
        """Initialize the store with a session factory and a key namespace."""
        self.session_factory = session_factory
        self.namespace = namespace

    def _get_entry(self, db: Session, key: str) -> Optional[StorageEntry]:
        return (
            db.query(StorageEntry)
            .filter(StorageEntry.namespace == self.namespace, StorageEntry.key == key)
            .first()
        )

    def get(self, key: str) -> Optional[str]:
        """Get the raw value stored under key."""
        db = self.session_factory()
        try:
            entry = self._get_entry(db, key)
            return entry.value if entry else None
        finally:
            db.close()

    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        db = self.session_factory()
        try:
            entry = self._get_entry(db, key)
            if entry is None:
                entry = StorageEntry(namespace=self.namespace, key=key, value=value)
                db.add(entry)
            else:
                entry.value = value
            db.commit()
        except Exception:
            db.rollback()
            logger.error("Failed to write %s/%s", self.namespace, key)
            raise
        finally:
            db.close()

    def delete(self, key: str) -> bool:
        """Delete key. Returns False if it did not exist."""
        db = self.session_factory()
        try:
            entry = self._get_entry(db, key)
            if not entry:
                return False

            db.delete(entry)
            db.commit()
            return True
        finally:
            db.close()

    def keys(self) -> List[str]:
        """List keys stored in this namespace."""
        db = self.session_factory()
        try:
            rows = (
                db.query(StorageEntry.key)
                .filter(StorageEntry.namespace == self.namespace)
                .order_by(StorageEntry.key)
                .all()
            )
            return [row.key for row in rows]
        finally:
            db.close()


class InMemoryStore:
    """Key-value store with the KeyValueStore interface that lives in memory."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> bool:
        return self.data.pop(key, None) is not None

    def keys(self) -> List[str]:
        return sorted(self.data)
