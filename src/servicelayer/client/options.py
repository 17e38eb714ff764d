"""Structured transport options for a single dispatched call.

:func:`build_transport_options` merges the caller's per-call option overlay
with what the request itself declares. The precedence is fixed:

1. caller-supplied extras (anything the transport accepts, e.g.
   ``follow_redirects`` or ``cookies``);
2. the dispatcher's timeout, which always replaces a caller ``timeout``;
3. the request payload, under the key named by its data placement;
4. the request headers, when there are any.

The placement is validated here, once per call, so that an unknown kind
fails before anything is sent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from servicelayer.exceptions import InvalidOptionError
from servicelayer.models import ApiRequest, DataPlacement

TIMEOUT_OPTION = "timeout"
HEADERS_OPTION = "headers"


@dataclass
class TransportOptions:
    """Options handed to a :class:`~servicelayer.protocols.TransportClient`.

    Attributes:
        timeout: Transport timeout in seconds.
        placement: Where ``payload`` goes, or ``None`` when there is no payload.
        payload: Request data.
        headers: Request headers.
        extras: Passthrough options from the caller.
    """

    timeout: float
    placement: Optional[DataPlacement] = None
    payload: Any = None
    headers: dict[str, str] = field(default_factory=dict)
    extras: dict[str, Any] = field(default_factory=dict)

    def as_kwargs(self) -> dict[str, Any]:
        """Render the options as httpx keyword arguments."""
        kwargs = dict(self.extras)
        kwargs[TIMEOUT_OPTION] = self.timeout
        if self.placement is not None:
            kwargs[self.placement.option_key] = self.payload
        if self.headers:
            kwargs[HEADERS_OPTION] = dict(self.headers)
        return kwargs


def resolve_placement(value: str) -> DataPlacement:
    """Return the :class:`DataPlacement` named by *value*.

    Raises:
        InvalidOptionError: If *value* is not a recognised placement.
    """
    try:
        return DataPlacement(value)
    except ValueError:
        raise InvalidOptionError(f"Unknown data request option ({value})") from None


def build_transport_options(
    request: ApiRequest,
    request_options: Optional[Mapping[str, Any]],
    timeout: float,
) -> TransportOptions:
    """Merge *request_options* with what *request* declares.

    Args:
        request: The request being dispatched.
        request_options: Caller overlay; a ``timeout`` key is ignored.
        timeout: The dispatcher's timeout.

    Returns:
        The merged :class:`TransportOptions`.

    Raises:
        InvalidOptionError: If the request carries data with an unknown placement.
    """
    extras = {k: v for k, v in (request_options or {}).items() if k != TIMEOUT_OPTION}
    options = TransportOptions(timeout=timeout, extras=extras)

    if request.data is not None:
        options.placement = resolve_placement(request.data_placement)
        options.payload = request.data

    if request.headers:
        options.headers = dict(request.headers)

    return options
