"""
Prefetch support for drivers that fetch messages in batches.
Messages claimed beyond the first are buffered locally per queue and
handed out on subsequent pops without another round trip.
"""

from collections import deque
from typing import Any, Deque, Dict, Optional, Tuple

from .driver import Driver

DEFAULT_PREFETCH = 2

CachedMessage = Tuple[Any, str]


class PrefetchMessageCache:
    """Per-queue FIFO of (message, receipt) pairs."""

    def __init__(self):
        self._caches: Dict[str, Deque[CachedMessage]] = {}

    def push(self, queue_name: str, message: CachedMessage):
        self._caches.setdefault(queue_name, deque()).append(message)

    def pop(self, queue_name: str) -> Optional[CachedMessage]:
        cache = self._caches.get(queue_name)
        if cache:
            return cache.popleft()
        return None

    def size(self, queue_name: str) -> int:
        return len(self._caches.get(queue_name, ()))


class AbstractPrefetchDriver(Driver):
    """
    Base for drivers that claim up to `prefetch` messages per request.

    Args:
        prefetch: Batch size per claim request (default 2)
    """

    def __init__(self, prefetch: Optional[int] = None):
        self.prefetch = int(prefetch) if prefetch else DEFAULT_PREFETCH
        self.cache = PrefetchMessageCache()
