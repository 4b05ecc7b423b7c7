"""
Environment-driven construction of the queues service and driver.
Values are read from os.environ, optionally loaded from a .env file.
"""

import os
from typing import Dict, List, Optional

from dotenv import load_dotenv

from .identity import IDENTITY_ENDPOINTS, US_IDENTITY_ENDPOINT, Identity
from .opencloud_driver import OpenCloudDriver
from .prefetch import DEFAULT_PREFETCH
from .service import CLAIM_GRACE_DEFAULT, CLAIM_TTL_MAX, Service

_service = None
_driver = None


def load_env(path: Optional[str] = None) -> bool:
    """
    Load a .env file into os.environ (existing variables win).

    Args:
        path: Explicit .env path; searched from the working directory if omitted
    """
    return load_dotenv(path) if path else load_dotenv()


def _identity_url(value: str) -> str:
    return IDENTITY_ENDPOINTS.get(value.strip().lower(), value)


def _split_names(value: str) -> List[str]:
    return [name.strip() for name in value.split(',') if name.strip()]


def get_settings() -> Dict:
    """
    Read queue settings from the environment.

    Environment variables:
        RACKSPACE_USERNAME / RACKSPACE_API_KEY: Identity credentials
        RACKSPACE_IDENTITY_URL: Identity endpoint, or 'us' / 'uk' (default: us)
        RACKSPACE_REGION: Catalog region (default: ORD)
        RACKSPACE_URL_TYPE: publicURL or internalURL (default: publicURL)
        QUEUES_SERVICE_NAME: Catalog service name (default: cloudQueues)
        QUEUES_ENDPOINT / QUEUES_AUTH_TOKEN: Use an endpoint directly, skipping identity
        QUEUES_CLIENT_ID: Client-ID header (default: random UUID)
        QUEUES_PREFETCH: Messages claimed per request (default: 2)
        QUEUES_TTL: Message and claim TTL in seconds (default: 43200)
        QUEUES_GRACE: Claim grace period in seconds (default: 60)
        QUEUES_NAMES: Comma-separated queue names to register up front

    Returns:
        Dict of settings
    """
    return {
        'username': os.environ.get('RACKSPACE_USERNAME'),
        'api_key': os.environ.get('RACKSPACE_API_KEY'),
        'identity_url': _identity_url(os.environ.get('RACKSPACE_IDENTITY_URL', US_IDENTITY_ENDPOINT)),
        'region': os.environ.get('RACKSPACE_REGION', 'ORD'),
        'url_type': os.environ.get('RACKSPACE_URL_TYPE', 'publicURL'),
        'service_name': os.environ.get('QUEUES_SERVICE_NAME', 'cloudQueues'),
        'endpoint': os.environ.get('QUEUES_ENDPOINT'),
        'auth_token': os.environ.get('QUEUES_AUTH_TOKEN'),
        'client_id': os.environ.get('QUEUES_CLIENT_ID'),
        'prefetch': int(os.environ.get('QUEUES_PREFETCH', DEFAULT_PREFETCH)),
        'ttl': int(os.environ.get('QUEUES_TTL', CLAIM_TTL_MAX)),
        'grace': int(os.environ.get('QUEUES_GRACE', CLAIM_GRACE_DEFAULT)),
        'queues': _split_names(os.environ.get('QUEUES_NAMES', '')),
    }


def build_service(settings: Dict) -> Service:
    """
    Create a Service from settings.

    An explicit endpoint is used as-is (self-hosted Zaqar); otherwise the
    endpoint is resolved from the Rackspace service catalog.

    Raises:
        ValueError: if neither an endpoint nor identity credentials are set
    """
    if settings.get('endpoint'):
        return Service(
            url=settings['endpoint'],
            token=settings.get('auth_token'),
            client_id=settings.get('client_id'),
            name=settings['service_name'],
            region=settings['region'],
            url_type=settings['url_type'],
        )

    if not settings.get('username') or not settings.get('api_key'):
        raise ValueError(
            "Set RACKSPACE_USERNAME and RACKSPACE_API_KEY, or QUEUES_ENDPOINT"
        )

    identity = Identity(settings['username'], settings['api_key'], settings['identity_url'])
    return identity.queues_service(
        name=settings['service_name'],
        region=settings['region'],
        url_type=settings['url_type'],
        client_id=settings.get('client_id'),
    )


def get_queue_service() -> Service:
    """Get or create the queues Service singleton."""
    global _service
    if _service is None:
        _service = build_service(get_settings())
    return _service


def get_driver() -> OpenCloudDriver:
    """Get or create the driver singleton bound to get_queue_service()."""
    global _driver
    if _driver is None:
        settings = get_settings()
        _driver = OpenCloudDriver(
            get_queue_service(),
            queues=settings['queues'],
            prefetch=settings['prefetch'],
            ttl=settings['ttl'],
            grace=settings['grace'],
        )
    return _driver


def reset():
    """Drop the cached singletons (used when the environment changes)."""
    global _service, _driver
    _service = None
    _driver = None
