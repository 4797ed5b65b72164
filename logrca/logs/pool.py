"""
Reusable `LogEntry` records for the clustering hot path.

The pool is an explicit free list of slot indexes over a growing list of entries:
- `acquire()` never blocks; it grows the backing list when no free slot exists
- `release()` resets every field before the slot becomes reusable
- a single `threading.Lock` guards the free list, so one pool may be shared across threads
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass
class LogEntry:
    """Parsed view of one raw event. Owned by exactly one caller between acquire and release."""

    timestamp: Optional[datetime] = None
    severity: str = ""
    severity_num: int = 0
    message: str = ""
    app: str = ""
    subsystem: str = ""
    trace_id: str = ""
    span_id: str = ""
    labels: Dict[str, str] = field(default_factory=dict)
    template: str = ""
    template_id: str = ""
    slot: int = -1

    def reset(self) -> None:
        self.timestamp = None
        self.severity = ""
        self.severity_num = 0
        self.message = ""
        self.app = ""
        self.subsystem = ""
        self.trace_id = ""
        self.span_id = ""
        self.labels.clear()
        self.template = ""
        self.template_id = ""


class LogEntryPool:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: List[LogEntry] = []
        self._free: List[int] = []

    def acquire(self) -> LogEntry:
        with self._lock:
            if self._free:
                return self._entries[self._free.pop()]
            entry = LogEntry(slot=len(self._entries))
            self._entries.append(entry)
            return entry

    def release(self, entry: LogEntry) -> None:
        with self._lock:
            if entry.slot < 0 or entry.slot >= len(self._entries) or self._entries[entry.slot] is not entry:
                raise ValueError("LogEntry does not belong to this pool")
            if entry.slot in self._free:
                raise ValueError(f"LogEntry slot {entry.slot} released twice")
            entry.reset()
            self._free.append(entry.slot)

    @property
    def size(self) -> int:
        """Total slots ever allocated."""
        with self._lock:
            return len(self._entries)

    @property
    def available(self) -> int:
        with self._lock:
            return len(self._free)


_DEFAULT_POOL: LogEntryPool | None = None
_DEFAULT_POOL_LOCK = threading.Lock()


def get_default_pool() -> LogEntryPool:
    global _DEFAULT_POOL
    with _DEFAULT_POOL_LOCK:
        if _DEFAULT_POOL is None:
            _DEFAULT_POOL = LogEntryPool()
        return _DEFAULT_POOL
