"""Session-scoped state threaded through the loader, resolver and browser.

One SessionContext corresponds to one visit (one browser tab). It owns the
per-key shuffle markers and the transient record stash used to hand a
selected record to the detail view without re-fetching.
"""

import logging
import time
import uuid
from typing import Optional

from .models.property import PropertyRecord

logger = logging.getLogger(__name__)


class SessionContext:
    """Per-visit shuffle markers and transient record store.

    Example:
        session = SessionContext()
        session.stash("sale_miami_3", record)
        session.recall("sale_miami_3")  # -> record
    """

    def __init__(self, session_id: Optional[str] = None):
        self.session_id = session_id or str(uuid.uuid4())
        self._shuffle_markers: dict[str, float] = {}
        self._transient: dict[str, PropertyRecord] = {}

    # Shuffle markers

    def shuffle_marker(self, key: str) -> Optional[float]:
        """Timestamp of the last shuffle for key in this session, if any."""
        return self._shuffle_markers.get(key)

    def mark_shuffled(self, key: str) -> float:
        marker = time.time()
        self._shuffle_markers[key] = marker
        return marker

    # Transient per-tab store

    def stash(self, identifier: str, record: PropertyRecord) -> None:
        """Keep a selected record for the next detail view lookup."""
        self._transient[identifier] = record
        logger.debug(f"Stashed {record.key} under {identifier}")

    def recall(self, identifier: str) -> Optional[PropertyRecord]:
        return self._transient.get(identifier)

    def forget(self, identifier: str) -> None:
        self._transient.pop(identifier, None)

    def clear(self) -> None:
        """Drop all session state (tab closed or navigated away)."""
        self._shuffle_markers.clear()
        self._transient.clear()
