"""
Rackspace Identity (Keystone v2.0) authentication.
Exchanges a username + API key for a token and resolves the queues
endpoint from the service catalog.
"""

import logging
from typing import Dict, List, Optional

import requests

from .service import Service

log = logging.getLogger(__name__)

US_IDENTITY_ENDPOINT = 'https://identity.api.rackspacecloud.com/v2.0/'
UK_IDENTITY_ENDPOINT = 'https://lon.identity.api.rackspacecloud.com/v2.0/'

# Short names accepted in place of an identity URL
IDENTITY_ENDPOINTS = {
    'us': US_IDENTITY_ENDPOINT,
    'uk': UK_IDENTITY_ENDPOINT,
}


class EndpointNotFound(LookupError):
    """The service catalog has no endpoint for the requested service/region/url type."""


class Identity:
    """
    Authenticated identity session.

    Args:
        username: Rackspace username
        api_key: Rackspace API key
        identity_url: Identity endpoint (defaults to the US endpoint)
        session: Optional requests.Session to reuse for auth and queue calls
    """

    def __init__(
        self,
        username: str,
        api_key: str,
        identity_url: str = US_IDENTITY_ENDPOINT,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0
    ):
        self.username = username
        self.api_key = api_key
        self.identity_url = identity_url.rstrip('/') + '/'
        self.session = session or requests.Session()
        self.timeout = timeout
        self.token: Optional[str] = None
        self.catalog: List[Dict] = []

    def authenticate(self) -> str:
        """
        Request a token from the identity service.

        Returns:
            The auth token

        Raises:
            requests.HTTPError: on rejected credentials or service errors
        """
        payload = {
            'auth': {
                'RAX-KSKEY:apiKeyCredentials': {
                    'username': self.username,
                    'apiKey': self.api_key,
                }
            }
        }
        response = self.session.post(
            self.identity_url + 'tokens',
            json=payload,
            headers={'Accept': 'application/json'},
            timeout=self.timeout,
        )
        response.raise_for_status()

        access = response.json()['access']
        self.token = access['token']['id']
        self.catalog = access.get('serviceCatalog', [])
        log.info("Authenticated %s against %s", self.username, self.identity_url)
        return self.token

    def endpoint_url(self, name: str, region: str, url_type: str = 'publicURL') -> str:
        """
        Find an endpoint URL in the service catalog.

        Args:
            name: Catalog service name, e.g. 'cloudQueues'
            region: Region code, e.g. 'ORD'
            url_type: 'publicURL' or 'internalURL'

        Raises:
            EndpointNotFound: if no matching endpoint exists
        """
        for service in self.catalog:
            if service.get('name') != name:
                continue
            for endpoint in service.get('endpoints', []):
                # Global endpoints have no region
                if endpoint.get('region', region).upper() != region.upper():
                    continue
                if endpoint.get(url_type):
                    return endpoint[url_type]
        raise EndpointNotFound(f"No {url_type} for service {name!r} in region {region!r}")

    def queues_service(
        self,
        name: str = 'cloudQueues',
        region: str = 'ORD',
        url_type: str = 'publicURL',
        client_id: Optional[str] = None
    ) -> Service:
        """
        Build a queues Service bound to this identity's token.
        Authenticates first if no token has been obtained yet.
        """
        if self.token is None:
            self.authenticate()
        return Service(
            url=self.endpoint_url(name, region, url_type),
            token=self.token,
            client_id=client_id,
            name=name,
            region=region,
            url_type=url_type,
            session=self.session,
            timeout=self.timeout,
        )
