"""
Cloud Queues driver for job queues.
Claims messages in batches and serves them from a local prefetch cache.
"""

from .driver import Driver
from .identity import EndpointNotFound, Identity
from .opencloud_driver import OpenCloudDriver
from .prefetch import AbstractPrefetchDriver, PrefetchMessageCache
from .service import Message, Queue, Service

__all__ = [
    'Driver',
    'AbstractPrefetchDriver',
    'PrefetchMessageCache',
    'OpenCloudDriver',
    'Service',
    'Queue',
    'Message',
    'Identity',
    'EndpointNotFound',
]
