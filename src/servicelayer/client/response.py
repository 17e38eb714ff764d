"""Response factory -- maps :class:`httpx.Response` to response values.

:class:`DefaultResponseFactory` is the stock
:class:`~servicelayer.protocols.ResponseFactory`. The dispatcher decides
which of its two methods to call; the factory only shapes the value.

See Also:
    :mod:`servicelayer.models` -- :class:`SuccessResponse` and
    :class:`ErrorResponse`.
"""

from __future__ import annotations

from typing import Any

import httpx

from servicelayer.models import ErrorResponse, SuccessResponse


class DefaultResponseFactory:
    """Build :class:`SuccessResponse` / :class:`ErrorResponse` from raw responses."""

    def create_success(self, raw: httpx.Response) -> SuccessResponse:
        return SuccessResponse(
            status_code=raw.status_code,
            headers=dict(raw.headers),
            data=extract_response_data(raw),
        )

    def create_error(self, raw: httpx.Response) -> ErrorResponse:
        return ErrorResponse(
            status_code=raw.status_code,
            headers=dict(raw.headers),
            reason=raw.reason_phrase or "",
            body=raw.text,
        )


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from an HTTP response.

    Attempts to parse the body as JSON first.  If that fails (e.g. the
    response is HTML or plain text), returns the raw text.  Returns
    ``None`` for responses with no content.

    Args:
        response: The :class:`httpx.Response` to extract data from.

    Returns:
        A JSON-decoded object (``dict``, ``list``, etc.), a ``str`` of raw
        text, or ``None`` if the body is empty.
    """
    if not response.content:
        return None

    try:
        return response.json()
    except ValueError:
        return response.text
