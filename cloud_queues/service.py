"""
Cloud Queues (OpenStack Zaqar v1) REST client.
Thin wrapper over a requests.Session: queues, messages and claims.
Error responses are raised as requests.HTTPError, unchanged.
"""

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import parse_qs, parse_qsl, urlsplit

import requests

log = logging.getLogger(__name__)

# Maximum claim TTL of the v1 API and default grace (seconds)
CLAIM_TTL_MAX = 43200
CLAIM_GRACE_DEFAULT = 60

# Page size limits
QUEUE_PAGE_LIMIT = 20
MESSAGE_PAGE_LIMIT = 10


@dataclass
class Message:
    """A message as returned by a claim or a listing."""
    body: Any
    href: str
    ttl: int = 0
    age: int = 0

    @property
    def id(self) -> str:
        return urlsplit(self.href).path.rstrip('/').rsplit('/', 1)[-1]

    @property
    def claim_id(self) -> Optional[str]:
        query = parse_qs(urlsplit(self.href).query)
        values = query.get('claim_id')
        return values[0] if values else None

    @classmethod
    def from_dict(cls, data: Dict) -> 'Message':
        return cls(
            body=data.get('body'),
            href=data['href'],
            ttl=data.get('ttl', 0),
            age=data.get('age', 0),
        )


class Service:
    """
    Client for one Cloud Queues endpoint.

    Args:
        url: Versioned endpoint, e.g. https://ord.queues.api.rackspacecloud.com/v1/123456
        token: Auth token sent as X-Auth-Token
        client_id: Client-ID header value (a UUID is generated if omitted)
        name: Catalog service name the endpoint was resolved from
        region: Catalog region
        url_type: Catalog URL type ('publicURL' or 'internalURL')
        session: Optional requests.Session to reuse
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        client_id: Optional[str] = None,
        name: str = 'cloudQueues',
        region: Optional[str] = None,
        url_type: str = 'publicURL',
        session: Optional[requests.Session] = None,
        timeout: float = 30.0
    ):
        self.url = url.rstrip('/')
        self.token = token
        self.name = name
        self.region = region
        self.url_type = url_type
        self.timeout = timeout
        self.session = session or requests.Session()
        self.client_id = client_id or str(uuid.uuid4())

    def set_client_id(self, client_id: Optional[str] = None):
        """Set the Client-ID header value, generating a UUID if none given."""
        self.client_id = client_id or str(uuid.uuid4())

    # -- transport ---------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        headers = {
            'Accept': 'application/json',
            'Content-Type': 'application/json',
            'Client-ID': self.client_id,
        }
        if self.token:
            headers['X-Auth-Token'] = self.token
        return headers

    def _url(self, path: str) -> str:
        return f"{self.url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict] = None,
        body: Any = None
    ) -> requests.Response:
        """
        Send a request and raise requests.HTTPError on an error status.

        Args:
            method: HTTP method
            path: Path relative to the endpoint
            params: Query parameters
            body: JSON-serializable request body

        Returns:
            The successful response
        """
        url = self._url(path)
        data = json.dumps(body) if body is not None else None
        log.debug("%s %s params=%s", method, url, params)
        response = self.session.request(
            method,
            url,
            params=params,
            data=data,
            headers=self._headers(),
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response

    def paginate(self, path: str, key: str, params: Dict) -> Iterator[Dict]:
        """
        Follow 'next' links until the service stops returning items.

        Only the query of a 'next' href (marker, limit, ...) is used; it is
        applied to `path` so requests stay under this endpoint's tenant URL.
        """
        query: Optional[Dict] = params
        while query is not None:
            response = self.request('GET', path, params=query)
            if response.status_code == 204 or not response.content:
                return
            page = response.json()
            items = page.get(key, [])
            if not items:
                return
            yield from items

            query = None
            for link in page.get('links', []):
                if link.get('rel') == 'next':
                    query = dict(parse_qsl(urlsplit(link['href']).query))
                    break

    # -- queues ------------------------------------------------------------

    def list_queues(self, limit: int = QUEUE_PAGE_LIMIT) -> Iterator['Queue']:
        """Iterate over every queue, following pagination."""
        for item in self.paginate('queues', 'queues', {'limit': limit}):
            yield Queue(self, item['name'])

    def create_queue(self, name: str) -> 'Queue':
        """Create a queue (a no-op on the service if it already exists)."""
        self.request('PUT', f"queues/{name}")
        log.info("Created queue: %s", name)
        return Queue(self, name)

    def get_queue(self, name: str) -> 'Queue':
        """
        Get an existing queue.

        Raises:
            requests.HTTPError: 404 if the queue does not exist
        """
        self.request('HEAD', f"queues/{name}")
        return Queue(self, name)

    def has_queue(self, name: str) -> bool:
        try:
            self.get_queue(name)
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                return False
            raise
        return True


class Queue:
    """Handle to a named remote queue. Creating one makes no request."""

    def __init__(self, service: Service, name: str):
        self.service = service
        self.name = name

    def __repr__(self):
        return f"Queue({self.name!r})"

    @property
    def path(self) -> str:
        return f"queues/{self.name}"

    def delete(self):
        self.service.request('DELETE', self.path)

    def get_stats(self) -> Dict:
        """
        Get queue statistics.

        Returns:
            Dict with 'free', 'claimed' and 'total' message counts
        """
        response = self.service.request('GET', f"{self.path}/stats")
        return response.json().get('messages', {})

    def create_messages(self, messages: List[Dict]) -> List[str]:
        """
        Post messages to the queue.

        Args:
            messages: List of dicts with 'body' and 'ttl' keys

        Returns:
            Hrefs of the created messages
        """
        response = self.service.request('POST', f"{self.path}/messages", body=messages)
        return response.json().get('resources', [])

    def create_message(self, body: Any, ttl: int) -> Optional[str]:
        resources = self.create_messages([{'ttl': ttl, 'body': body}])
        return resources[0] if resources else None

    def claim_messages(
        self,
        limit: int,
        ttl: int = CLAIM_TTL_MAX,
        grace: int = CLAIM_GRACE_DEFAULT
    ) -> List[Message]:
        """
        Claim up to `limit` messages.

        Returns:
            Claimed messages; empty when nothing is available (204)
        """
        response = self.service.request(
            'POST',
            f"{self.path}/claims",
            params={'limit': limit},
            body={'ttl': ttl, 'grace': grace},
        )
        if response.status_code == 204 or not response.content:
            return []
        return [Message.from_dict(item) for item in response.json()]

    def list_messages(self, echo: bool = True, limit: int = MESSAGE_PAGE_LIMIT) -> Iterator[Message]:
        """
        Lazily iterate over the messages in the queue.

        Args:
            echo: Include messages posted by this client
            limit: Page size
        """
        params = {'echo': 'true' if echo else 'false', 'limit': limit}
        for item in self.service.paginate(f"{self.path}/messages", 'messages', params):
            yield Message.from_dict(item)

    def delete_message(self, message_id: str, claim_id: Optional[str] = None):
        """
        Delete a message. A claimed message must be deleted with its claim_id.

        Args:
            message_id: Message id (last segment of its href)
            claim_id: Claim holding the message, if any
        """
        params = {'claim_id': claim_id} if claim_id else None
        self.service.request('DELETE', f"{self.path}/messages/{message_id}", params=params)
