"""Dispatch layer for servicelayer.

Provides the :class:`Dispatcher` together with the pieces it is assembled
from:

    :class:`Dispatcher` -- cache-or-network orchestration for one call.
    :func:`derive_cache_key` -- deterministic cache keys.
    :class:`TransportOptions` -- structured per-call transport options.
    :class:`HttpxTransport` -- blocking transport backed by :class:`httpx.Client`.
    :class:`DefaultResponseFactory` -- builds response values from raw responses.

Example::

    from servicelayer.client import DefaultResponseFactory, Dispatcher, HttpxTransport

    with Dispatcher(HttpxTransport(), DefaultResponseFactory(), base_url) as dispatcher:
        response = dispatcher.call(request)
"""

from servicelayer.client.cache_key import CACHE_KEY_PREFIX, derive_cache_key
from servicelayer.client.dispatcher import Dispatcher
from servicelayer.client.options import TransportOptions, build_transport_options
from servicelayer.client.response import DefaultResponseFactory
from servicelayer.client.transport import HttpxTransport

__all__ = [
    "CACHE_KEY_PREFIX",
    "DefaultResponseFactory",
    "Dispatcher",
    "HttpxTransport",
    "TransportOptions",
    "build_transport_options",
    "derive_cache_key",
]
