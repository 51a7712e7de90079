"""Bounded, most-recent-first ledger of parse results."""

from __future__ import annotations

import logging
import threading
import uuid
from typing import List, Optional

from clipinspect.config import SETTINGS
from clipinspect.core.types import HistoryEntry, ParseResult


def summarize(result: ParseResult) -> str:
    return f"Parsed {len(result.items)} data items"


def _new_entry_id(timestamp_ms: int) -> str:
    return f"history_{timestamp_ms}_{uuid.uuid4().hex[:9]}"


class HistoryLedger:
    """In-memory history with FIFO eviction beyond ``max_items``."""

    def __init__(self, max_items: Optional[int] = None, visible: bool = False) -> None:
        if max_items is None:
            max_items = SETTINGS.history_max_items
        if max_items < 1:
            raise ValueError("max_items must be positive")
        self._lock = threading.RLock()
        self._items: List[HistoryEntry] = []
        self._max_items = max_items
        self._visible = visible

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def max_items(self) -> int:
        return self._max_items

    @property
    def is_visible(self) -> bool:
        with self._lock:
            return self._visible

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def append(self, result: ParseResult) -> HistoryEntry:
        """Record *result* as the newest entry, evicting the oldest excess."""

        entry = HistoryEntry(
            id=_new_entry_id(result.timestamp_ms),
            timestamp_ms=result.timestamp_ms,
            result=result,
            summary=summarize(result),
        )
        with self._lock:
            self._items.insert(0, entry)
            evicted = len(self._items) - self._max_items
            if evicted > 0:
                del self._items[self._max_items:]
                logging.debug("History evicted %d oldest entr%s", evicted, "ies" if evicted != 1 else "y")
        return entry

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def toggle_visible(self) -> bool:
        with self._lock:
            self._visible = not self._visible
            return self._visible

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def list(self) -> List[HistoryEntry]:
        """Return a snapshot, newest first."""

        with self._lock:
            return list(self._items)

    def get(self, entry_id: str) -> Optional[HistoryEntry]:
        with self._lock:
            for entry in self._items:
                if entry.id == entry_id:
                    return entry
        return None


_global_history: Optional[HistoryLedger] = None
_global_history_lock = threading.Lock()


def get_global_history() -> HistoryLedger:
    """Return the process-wide ledger, creating it from settings if required."""

    global _global_history
    with _global_history_lock:
        if _global_history is None:
            _global_history = HistoryLedger()
        return _global_history
