"""Collaborator contracts the dispatcher depends on.

Any object with matching methods satisfies these protocols; no inheritance
is required. The package ships one adapter for each:

- :class:`TransportClient` -- :class:`~servicelayer.client.transport.HttpxTransport`
- :class:`ResponseFactory` -- :class:`~servicelayer.client.response.DefaultResponseFactory`
- :class:`CacheBackend` -- :class:`~servicelayer.cache.DiskCache`

Logging goes through a stdlib :class:`logging.Logger`, so no protocol is
declared for it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

import httpx

if TYPE_CHECKING:
    from servicelayer.client.options import TransportOptions
    from servicelayer.models import ApiResponse, ErrorResponse, SuccessResponse


@runtime_checkable
class TransportClient(Protocol):
    """Performs the actual network call.

    Implementations may raise :class:`httpx.HTTPStatusError` for a completed
    call with an unwanted status; the dispatcher reads ``exc.response`` and
    classifies it like any other answer. Every other exception is treated as
    a fault that cannot produce a response.
    """

    def request(self, method: str, url: str, options: TransportOptions) -> httpx.Response:
        """Send one request and return the raw response."""
        ...


@runtime_checkable
class ResponseFactory(Protocol):
    """Builds response values from a raw transport result."""

    def create_success(self, raw: httpx.Response) -> SuccessResponse:
        ...

    def create_error(self, raw: httpx.Response) -> ErrorResponse:
        ...


@runtime_checkable
class CacheBackend(Protocol):
    """Key/value store for response snapshots.

    Expiry, if any, is the backend's own policy.
    """

    def has(self, key: str) -> bool:
        ...

    def get(self, key: str) -> Optional[ApiResponse]:
        ...

    def set(self, key: str, response: ApiResponse) -> None:
        ...
