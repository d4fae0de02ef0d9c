"""
Visit-history store contract and the in-memory implementation.

The store is the only state that outlives a run. It is always handed to
the classifier explicitly; nothing in the package keeps a global store.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from visit_ledger.schemas.history_schema import HistoryEntry

logger = logging.getLogger(__name__)


class HistoryStore(ABC):
    """Key-value store of completed-visit history keyed by caller id."""

    @abstractmethod
    def get(self, caller_id: str) -> Optional[HistoryEntry]:
        raise NotImplementedError

    @abstractmethod
    def upsert(self, caller_id: str, visit_date: date) -> HistoryEntry:
        """Record a completed visit.

        Re-applying a date already recorded for the caller leaves the
        entry unchanged. The last visit date only ever moves forward.
        """
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry. Operator-initiated resets only."""
        raise NotImplementedError


class InMemoryHistoryStore(HistoryStore):
    """Dict-backed store. Each instance is isolated, which suits tests."""

    def __init__(self) -> None:
        self._entries: dict[str, HistoryEntry] = {}

    def get(self, caller_id: str) -> Optional[HistoryEntry]:
        return self._entries.get(caller_id)

    def upsert(self, caller_id: str, visit_date: date) -> HistoryEntry:
        current = self._entries.get(caller_id) or HistoryEntry(caller_id=caller_id)
        updated = current.with_visit(visit_date)
        if updated is current:
            logger.debug("Visit %s for %s already recorded", visit_date, caller_id)
            return current
        self._entries[caller_id] = updated
        return updated

    def clear(self) -> None:
        logger.info("Clearing %d history entries", len(self._entries))
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
