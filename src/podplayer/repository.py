"""
Persistence of the session snapshot.

Persistence is best-effort: every failure is logged and degrades to a
None or False result so the session keeps working in memory.
"""

import logging
from typing import Optional

from .config import SESSION_FILENAME
from .errors import PersistenceError
from .models import Snapshot
from .storage import Storage


class SessionRepository:
    """Reads, writes and clears the persisted session snapshot."""

    def __init__(self, storage: Storage, filename: str = SESSION_FILENAME):
        """Initialize with storage instance."""
        self.storage = storage
        self.filename = filename
        self.logger = logging.getLogger(__name__)

    @property
    def path(self) -> str:
        """Location of the snapshot file."""
        return self.storage.join_path(self.storage.base_dir, self.filename)

    def load(self) -> Optional[Snapshot]:
        """Load the stored snapshot, or None if missing or unreadable."""
        data = self.storage.read_json(self.path)
        if data is None:
            self.logger.debug("No saved session at %s", self.path)
            return None

        try:
            return self._decode(data)
        except PersistenceError as e:
            self.logger.warning("Ignoring corrupt session snapshot: %s", e)
            return None

    def save(self, snapshot: Snapshot) -> bool:
        """Write the snapshot, return success status."""
        saved = self.storage.write_json(self.path, snapshot.to_json())
        if not saved:
            self.logger.warning(
                "Session snapshot not saved; continuing in memory"
            )
        return saved

    def clear(self) -> bool:
        """Remove the stored snapshot, return success status."""
        return self.storage.remove(self.path)

    def _decode(self, data: dict) -> Snapshot:
        """Convert stored JSON into a Snapshot."""
        # Older saves wrap the payload as {"state": {...}}
        if "state" in data and isinstance(data["state"], dict):
            data = data["state"]
        try:
            return Snapshot.from_dict(data)
        except (TypeError, ValueError) as e:
            raise PersistenceError(str(e)) from e
