"""Blocking transport adapter backed by :class:`httpx.Client`.

:class:`HttpxTransport` is the stock
:class:`~servicelayer.protocols.TransportClient`. It sends exactly one
request per call -- there is no retry loop -- and, when
``raise_for_status`` is enabled, turns every non-2xx answer into an
:class:`httpx.HTTPStatusError` that carries the response, which the
dispatcher then classifies like a normal answer.

Network-level failures (:class:`httpx.ConnectError`,
:class:`httpx.TimeoutException`, ...) propagate unchanged.
"""

from __future__ import annotations

from typing import Optional

import httpx

from servicelayer.client.options import TransportOptions


class HttpxTransport:
    """Send requests through a shared :class:`httpx.Client`.

    Can be used as a context manager so that the underlying connection
    pool is closed.

    Args:
        client: Pre-built client (e.g. one using :class:`httpx.MockTransport`).
            When ``None`` a client is created from the remaining arguments.
        verify_ssl: Verify SSL certificates.
        follow_redirects: Follow HTTP redirects.
        raise_for_status: Raise :class:`httpx.HTTPStatusError` for non-2xx answers.

    Example::

        with HttpxTransport() as transport:
            raw = transport.request("GET", "https://api.example.com/users",
                                    TransportOptions(timeout=5.0))
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        verify_ssl: bool = True,
        follow_redirects: bool = True,
        raise_for_status: bool = True,
    ) -> None:
        if client is None:
            client = httpx.Client(verify=verify_ssl, follow_redirects=follow_redirects)
        self._client = client
        self._raise_for_status = raise_for_status

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def request(self, method: str, url: str, options: TransportOptions) -> httpx.Response:
        """Send one request.

        Raises:
            httpx.HTTPStatusError: For a non-2xx answer when ``raise_for_status``
                is enabled. ``exc.response`` holds the answer.
            httpx.RequestError: On network-level failures.
        """
        response = self._client.request(method, url, **options.as_kwargs())
        if self._raise_for_status:
            response.raise_for_status()
        return response

    def close(self) -> None:
        """Close the underlying :class:`httpx.Client`."""
        self._client.close()
