"""In-memory store of captured upstream response bodies."""

import threading
from collections import OrderedDict

from .logging import get_logger

logger = get_logger(__name__)


class ResponseRegistry:
    """Maps relay identifiers to captured response bodies.

    Writes are atomic with respect to each other. With no ``capacity`` the
    registry grows for as long as it lives. With a capacity, the oldest
    entry is evicted once the limit is exceeded.
    """

    def __init__(self, capacity: int | None = None) -> None:
        if capacity is not None and capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._entries: OrderedDict[str, str] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int | None:
        return self._capacity

    def put(self, entry_id: str, body: str) -> None:
        """Store a body under ``entry_id``, replacing any previous entry."""
        with self._lock:
            self._entries[entry_id] = body
            self._entries.move_to_end(entry_id)
            if self._capacity is not None and len(self._entries) > self._capacity:
                evicted_id, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted registry entry {evicted_id}")

    def get(self, entry_id: str) -> str | None:
        """In-process lookup of a stored body. Not exposed over HTTP."""
        with self._lock:
            return self._entries.get(entry_id)

    def __contains__(self, entry_id: object) -> bool:
        with self._lock:
            return entry_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
