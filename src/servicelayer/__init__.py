"""servicelayer -- Dispatch abstract API requests to a cache or a live HTTP call.

This package sits between application code and a remote HTTP API. A caller
describes a request with :class:`~servicelayer.models.ApiRequest` and hands
it to a :class:`~servicelayer.client.Dispatcher`, which either serves a
previously stored success from the cache or performs exactly one network
call, classifies the outcome, and returns a response value.

Typical usage::

    from servicelayer import ApiRequest, Dispatcher, DispatcherConfig

    config = DispatcherConfig(base_url="https://api.example.com/")
    with Dispatcher.from_config(config) as dispatcher:
        response = dispatcher.call(ApiRequest(endpoint="users", cacheable=True))
        if not response.is_error:
            print(response.data)

Modules:
    client: The dispatcher, cache key derivation, options and default adapters.
    cache: Disk-backed cache backend.
    models: Pydantic value objects and configuration models.
    protocols: Collaborator contracts (transport, response factory, cache).
    config: XDG-aware configuration loading and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

from servicelayer.client import Dispatcher
from servicelayer.exceptions import InvalidOptionError, ServiceLayerError
from servicelayer.models import (
    ApiRequest,
    DataPlacement,
    DispatcherConfig,
    ErrorResponse,
    HTTPMethod,
    SuccessResponse,
)

__version__ = "0.1.0"

__all__ = [
    "ApiRequest",
    "DataPlacement",
    "Dispatcher",
    "DispatcherConfig",
    "ErrorResponse",
    "HTTPMethod",
    "InvalidOptionError",
    "ServiceLayerError",
    "SuccessResponse",
]
