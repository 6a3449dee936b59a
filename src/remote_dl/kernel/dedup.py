from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import List, Optional

from ..util.time import now_ms

logger = logging.getLogger("remote_dl.dedup")

MAX_STORED_EVENTS = 1000


class EventDedupCache:
    """Bounded record of recently processed inbound event ids.

    Eviction is FIFO by insertion order; the stored timestamps are
    informational only.
    """

    def __init__(self, max_size: int = MAX_STORED_EVENTS):
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.max_size = int(max_size)
        self._events: "OrderedDict[str, int]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def seen(self, event_id: str) -> bool:
        with self._lock:
            return str(event_id) in self._events

    def mark_seen(self, event_id: str, at_ms: Optional[int] = None) -> None:
        key = str(event_id)
        with self._lock:
            if key not in self._events:
                self._events[key] = int(at_ms if at_ms is not None else now_ms())
            evicted = 0
            while len(self._events) > self.max_size:
                self._events.popitem(last=False)
                evicted += 1
        if evicted:
            logger.debug("evicted %d old event ids", evicted)

    def snapshot(self) -> List[str]:
        with self._lock:
            return list(self._events.keys())
