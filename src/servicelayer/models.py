"""Canonical Pydantic models shared across all servicelayer modules.

The models fall into three groups:

**Request models** -- built by the caller and passed into the dispatcher:
    :class:`HTTPMethod`, :class:`DataPlacement` and :class:`ApiRequest`.

**Response models** -- produced by a response factory from a raw transport
result and, for successes, stored in the cache:
    :class:`SuccessResponse`, :class:`ErrorResponse` and the discriminated
    union :data:`ApiResponse`.

**Configuration models** -- serialised as JSON in the user's config
directory: :class:`CacheConfig` and :class:`DispatcherConfig`.

All request and response models are frozen. A request is owned by the
caller and only borrowed by the dispatcher for the duration of one call.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, ClassVar, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TIMEOUT = 10.0
"""Transport timeout in seconds applied to every call unless configured."""

SUCCESS_STATUS_CODES = frozenset(range(200, 300))
"""Status codes that classify a completed call as a success."""


# --- Request ---


class HTTPMethod(str, enum.Enum):
    """HTTP verbs a request can be dispatched with."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class DataPlacement(str, enum.Enum):
    """Where a request payload is embedded in the outbound call.

    Each member maps to the keyword option the transport understands
    (see :attr:`option_key`).
    """

    JSON = "json"
    FORM = "form"
    QUERY = "query"

    @property
    def option_key(self) -> str:
        """The httpx keyword argument that carries a payload for this placement."""
        return _PLACEMENT_OPTION_KEYS[self]


_PLACEMENT_OPTION_KEYS = {
    DataPlacement.JSON: "json",
    DataPlacement.FORM: "data",
    DataPlacement.QUERY: "params",
}


class ApiRequest(BaseModel):
    """Abstract description of one API call.

    ``data_placement`` is kept as a plain string so that an unknown kind is
    reported by the dispatcher as an
    :class:`~servicelayer.exceptions.InvalidOptionError` at call time rather
    than at construction. It is only consulted when ``data`` is not ``None``.

    Example::

        ApiRequest(
            endpoint="users",
            method=HTTPMethod.POST,
            data={"name": "Ada"},
            data_placement=DataPlacement.JSON,
            headers={"X-Trace": "1"},
        )
    """

    model_config = ConfigDict(frozen=True)

    endpoint: str = Field(description="Path appended to the dispatcher's base URL")
    method: HTTPMethod = HTTPMethod.GET
    data: Any = None
    data_placement: str = Field(
        default=DataPlacement.JSON.value,
        description="Payload placement: json, form or query",
    )
    headers: dict[str, str] = Field(default_factory=dict)
    cacheable: bool = Field(
        default=False, description="Allow a successful result to be served from cache"
    )


# --- Response ---


class _BaseResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status_code: int
    headers: dict[str, str] = Field(default_factory=dict)

    # True when the call was answered with a status outside the 2xx range.
    is_error: ClassVar[bool]


class SuccessResponse(_BaseResponse):
    """A call answered with a 2xx status.

    ``data`` holds the decoded JSON body, the raw text when the body is not
    JSON, or ``None`` for an empty body.
    """

    kind: Literal["success"] = "success"
    data: Any = None

    is_error: ClassVar[bool] = False


class ErrorResponse(_BaseResponse):
    """A call answered with a status outside the 2xx range.

    Keeps the raw body and headers for diagnostics. Never cached.
    """

    kind: Literal["error"] = "error"
    reason: str = ""
    body: str = ""

    is_error: ClassVar[bool] = True


ApiResponse = Annotated[Union[SuccessResponse, ErrorResponse], Field(discriminator="kind")]


# --- Configuration ---


class CacheConfig(BaseModel):
    """Response cache settings stored in :class:`DispatcherConfig`."""

    enabled: bool = Field(default=False, description="Enable response caching")
    ttl_seconds: Optional[int] = Field(
        default=300, ge=1, description="Entry lifetime in seconds; null keeps entries forever"
    )
    directory: Optional[str] = Field(
        default=None, description="Cache directory; defaults to the XDG cache dir"
    )


class DispatcherConfig(BaseModel):
    """Settings used by :meth:`~servicelayer.client.Dispatcher.from_config`.

    Example::

        DispatcherConfig(
            base_url="https://api.example.com/v1/",
            timeout=5.0,
            cache=CacheConfig(enabled=True, ttl_seconds=600),
        )
    """

    base_url: str = Field(default="", description="Base address every endpoint is appended to")
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    follow_redirects: bool = Field(default=True, description="Follow HTTP redirects")
    raise_for_status: bool = Field(
        default=True,
        description="Transport raises HTTPStatusError for non-2xx answers",
    )
    cache: CacheConfig = Field(default_factory=CacheConfig)
