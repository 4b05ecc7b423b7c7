"""
Cloud Queues driver.
Maps the abstract queue driver operations onto the Cloud Queues v1 API.
Popped messages are claimed in batches of `prefetch`; the surplus is kept
in a local cache and the claims are tracked until acknowledged.

Instances are single-owner: the caches are not locked.
"""

import logging
import time
from itertools import islice
from typing import Any, Dict, Iterable, List, Optional, Tuple

import requests

from .prefetch import AbstractPrefetchDriver
from .service import CLAIM_GRACE_DEFAULT, CLAIM_TTL_MAX, Message, Queue, Service

log = logging.getLogger(__name__)

# Sleep between empty polls (seconds)
POLL_INTERVAL = 0.01


def is_not_found(error: requests.HTTPError) -> bool:
    """Check if an HTTP error is a 404 response."""
    return error.response is not None and error.response.status_code == 404


class OpenCloudDriver(AbstractPrefetchDriver):
    """
    Args:
        service: Cloud Queues service client
        queues: Queue names to register up front (no lookup is made for them)
        prefetch: Messages to claim per request (default 2)
        ttl: TTL for pushed messages and for claims, in seconds
        grace: Extra lifetime given to claimed messages, in seconds
    """

    def __init__(
        self,
        service: Service,
        queues: Optional[Iterable[str]] = None,
        prefetch: Optional[int] = None,
        ttl: int = CLAIM_TTL_MAX,
        grace: int = CLAIM_GRACE_DEFAULT
    ):
        super().__init__(prefetch)

        self.service = service
        self.ttl = ttl
        self.grace = grace

        self.queues: Dict[str, Queue] = {}
        # Claimed messages not yet acknowledged, keyed by receipt (href)
        self.claims: Dict[str, Message] = {}

        self._populate_queues(queues or [])

    def list_queues(self) -> List[str]:
        return [queue.name for queue in self.service.list_queues()]

    def create_queue(self, queue_name: str):
        self.queues[queue_name] = self.service.create_queue(queue_name)

    def count_messages(self, queue_name: str) -> int:
        try:
            queue = self._get_queue(queue_name, create=False)
            stats = queue.get_stats()
        except requests.HTTPError as e:
            if not is_not_found(e):
                raise
            return 0
        return int(stats.get('total', 0))

    def push_message(self, queue_name: str, message: Any):
        queue = self._get_queue(queue_name)
        try:
            queue.create_message(message, ttl=self.ttl)
        except requests.HTTPError as e:
            # Registered or cached handle whose queue is gone
            if not is_not_found(e):
                raise
            log.info("Queue %s not found, creating it", queue_name)
            queue = self.service.create_queue(queue_name)
            self.queues[queue_name] = queue
            queue.create_message(message, ttl=self.ttl)

    def pop_message(self, queue_name: str, duration: float = 5) -> Tuple[Optional[Any], Optional[str]]:
        cached = self.cache.pop(queue_name)
        if cached:
            return cached

        deadline = time.monotonic() + duration
        while time.monotonic() < deadline:
            claimed = self._claim_messages(queue_name)
            if claimed:
                log.debug("Claimed %d message(s) from %s", len(claimed), queue_name)
                for message in claimed:
                    self.claims[message.href] = message
                    self.cache.push(queue_name, (message.body, message.href))
                return self.cache.pop(queue_name)

            time.sleep(POLL_INTERVAL)

        return None, None

    def acknowledge_message(self, queue_name: str, receipt: str):
        message = self.claims.get(receipt)
        if message is None:
            return
        queue = self.queues.get(queue_name) or Queue(self.service, queue_name)
        queue.delete_message(message.id, claim_id=message.claim_id)
        del self.claims[receipt]

    def peek_queue(self, queue_name: str, index: int = 0, limit: int = 20) -> List[Any]:
        # The API has no offset, so walk a fresh listing up to index + limit
        start = max(index, 0)
        try:
            queue = self._get_queue(queue_name, create=False)
            messages = list(islice(queue.list_messages(echo=True), start, start + max(limit, 0)))
        except requests.HTTPError as e:
            if not is_not_found(e):
                raise
            return []
        return [message.body for message in messages]

    def remove_queue(self, queue_name: str):
        queue = self._get_queue(queue_name, create=False)
        queue.delete()
        self.queues.pop(queue_name, None)
        self._drop_cached(queue_name)

    def info(self) -> Dict[str, Any]:
        return {
            'client_id': self.service.client_id,
            'name': self.service.name,
            'url': str(self.service.url),
            'region': self.service.region,
            'url_type': self.service.url_type,
            'prefetch': self.prefetch,
            'ttl': self.ttl,
        }

    def _populate_queues(self, names: Iterable[str]):
        for name in names:
            self.queues[name] = Queue(self.service, name)

    def _get_queue(self, name: str, create: bool = True) -> Queue:
        """
        Get a cached queue handle, looking it up on first use.

        Args:
            name: Queue name
            create: Create the queue if the lookup returns 404

        Raises:
            requests.HTTPError: lookup failed (404 only when create is False)
        """
        if name in self.queues:
            return self.queues[name]

        try:
            queue = self.service.get_queue(name)
        except requests.HTTPError as e:
            if not (create and is_not_found(e)):
                raise
            log.info("Queue %s not found, creating it", name)
            queue = self.service.create_queue(name)

        self.queues[name] = queue
        return queue

    def _claim_messages(self, queue_name: str) -> List[Message]:
        """Claim up to `prefetch` messages; a missing queue yields none."""
        try:
            queue = self._get_queue(queue_name, create=False)
            return queue.claim_messages(limit=self.prefetch, ttl=self.ttl, grace=self.grace)
        except requests.HTTPError as e:
            if not is_not_found(e):
                raise
            return []

    def _drop_cached(self, queue_name: str):
        """Forget prefetched messages of a removed queue."""
        cached = self.cache.pop(queue_name)
        while cached:
            self.claims.pop(cached[1], None)
            cached = self.cache.pop(queue_name)
