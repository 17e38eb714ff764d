"""Call dispatcher -- cache-or-network orchestration for one logical call.

:class:`Dispatcher` takes an :class:`~servicelayer.models.ApiRequest` and:

- **Cache path** -- for a cacheable request with a cache configured, returns
  the stored response when the derived key is present, otherwise performs
  the network path and stores the result if it is a success.
- **Network path** -- builds the URL and transport options, performs exactly
  one transport call, classifies the outcome by status code and hands the
  raw response to the response factory.

Every network-path invocation emits exactly one log record:

=============================================  ==========
Outcome                                        Level
=============================================  ==========
2xx answer                                     INFO
non-2xx answer (including ``HTTPStatusError``) WARNING
``httpx.HTTPError`` without a response         ERROR
any other exception                            CRITICAL
=============================================  ==========

A cache hit emits nothing. Faults without a response are re-raised after
logging; API error statuses are returned as
:class:`~servicelayer.models.ErrorResponse` values.

Collaborators are fixed at construction and never mutated afterwards, so one
instance can serve concurrent calls as long as the collaborators themselves
are thread-safe.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Optional

import httpx

from servicelayer.client.cache_key import derive_cache_key
from servicelayer.client.options import build_transport_options
from servicelayer.exceptions import ConfigError
from servicelayer.models import (
    DEFAULT_TIMEOUT,
    SUCCESS_STATUS_CODES,
    ApiRequest,
    ApiResponse,
    DispatcherConfig,
)
from servicelayer.protocols import CacheBackend, ResponseFactory, TransportClient

_null_logger = logging.getLogger(f"{__name__}.null")
_null_logger.addHandler(logging.NullHandler())
_null_logger.propagate = False


class Dispatcher:
    """Dispatch requests to a cache or a live HTTP call.

    Args:
        transport: Performs the network call.
        response_factory: Builds response values from raw responses.
        base_url: Base address; a single trailing slash is stripped.
        timeout: Transport timeout in seconds, forced on every call.
        cache: Optional cache backend.  When ``None`` every call goes live.
        logger: Optional logger.  When ``None`` log records are discarded.

    Example::

        dispatcher = Dispatcher(
            HttpxTransport(),
            DefaultResponseFactory(),
            "https://api.example.com/",
            cache=DiskCache("/tmp/api-cache"),
            logger=logging.getLogger("api"),
        )
        response = dispatcher.call(ApiRequest(endpoint="users", cacheable=True))
    """

    def __init__(
        self,
        transport: TransportClient,
        response_factory: ResponseFactory,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        cache: Optional[CacheBackend] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._transport = transport
        self._response_factory = response_factory
        self._base_url = base_url[:-1] if base_url.endswith("/") else base_url
        self._timeout = float(timeout)
        self._cache = cache
        self._logger = logger if logger is not None else _null_logger

    @classmethod
    def from_config(
        cls,
        config: DispatcherConfig,
        logger: Optional[logging.Logger] = None,
        transport: Optional[TransportClient] = None,
    ) -> Dispatcher:
        """Build a dispatcher wired with the stock adapters.

        Args:
            config: Base URL, timeout, transport and cache settings.
            logger: Optional logger for call outcomes.
            transport: Override for the default :class:`HttpxTransport`.

        Raises:
            ConfigError: If no base URL is configured.
        """
        from servicelayer.cache import DiskCache
        from servicelayer.client.response import DefaultResponseFactory
        from servicelayer.client.transport import HttpxTransport

        if not config.base_url:
            raise ConfigError("No base URL configured. Set base_url or SERVICELAYER_BASE_URL.")

        if transport is None:
            transport = HttpxTransport(
                verify_ssl=config.verify_ssl,
                follow_redirects=config.follow_redirects,
                raise_for_status=config.raise_for_status,
            )

        cache: Optional[DiskCache] = None
        if config.cache.enabled:
            from servicelayer.config import get_cache_dir

            directory = config.cache.directory or get_cache_dir()
            cache = DiskCache(directory, ttl_seconds=config.cache.ttl_seconds)

        return cls(
            transport,
            DefaultResponseFactory(),
            config.base_url,
            timeout=config.timeout,
            cache=cache,
            logger=logger,
        )

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Dispatcher:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the transport and cache when they support it."""
        for collaborator in (self._transport, self._cache):
            close = getattr(collaborator, "close", None)
            if callable(close):
                close()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def cache(self) -> Optional[CacheBackend]:
        return self._cache

    def call(
        self,
        request: ApiRequest,
        request_options: Optional[Mapping[str, Any]] = None,
    ) -> ApiResponse:
        """Dispatch *request* and return its response.

        Args:
            request: The request to dispatch.
            request_options: Extra transport options for this call only.
                A ``timeout`` key is ignored.

        Returns:
            A :class:`~servicelayer.models.SuccessResponse` or
            :class:`~servicelayer.models.ErrorResponse`.

        Raises:
            InvalidOptionError: If the request declares an unknown data placement.
            httpx.HTTPError: On a transport fault that carries no response.
            Exception: Any other transport fault, re-raised unchanged.
        """
        if self._cache is not None and request.cacheable:
            return self._load_from_cache(request, request_options)
        return self._load_from_api(request, request_options)

    def url_for(self, request: ApiRequest) -> str:
        """Return the absolute URL *request* is sent to."""
        return f"{self._base_url}/{request.endpoint}"

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _load_from_cache(
        self,
        request: ApiRequest,
        request_options: Optional[Mapping[str, Any]],
    ) -> ApiResponse:
        assert self._cache is not None
        cache_key = derive_cache_key(request, request_options)

        if self._cache.has(cache_key):
            # The entry may expire between has and get.
            cached = self._cache.get(cache_key)
            if cached is not None:
                return cached

        response = self._load_from_api(request, request_options)
        if response.is_error:
            return response

        self._cache.set(cache_key, response)
        return response

    def _load_from_api(
        self,
        request: ApiRequest,
        request_options: Optional[Mapping[str, Any]],
    ) -> ApiResponse:
        url = self.url_for(request)
        options = build_transport_options(request, request_options, self._timeout)

        start = time.perf_counter()
        try:
            raw = self._transport.request(request.method.value, url, options)
        except httpx.HTTPStatusError as exc:
            raw = exc.response
        except httpx.HTTPError as exc:
            elapsed = time.perf_counter() - start
            self._logger.error(
                "%s %s failed after %.3fs: %s",
                request.method.value, url, elapsed, exc,
                extra={"request": request, "elapsed": elapsed},
            )
            raise
        except Exception as exc:
            elapsed = time.perf_counter() - start
            self._logger.critical(
                "%s %s crashed after %.3fs: %r",
                request.method.value, url, elapsed, exc,
                extra={"request": request, "elapsed": elapsed},
            )
            raise
        elapsed = time.perf_counter() - start

        status_code = raw.status_code
        context = {"status_code": status_code, "request": request, "elapsed": elapsed}
        if status_code not in SUCCESS_STATUS_CODES:
            self._logger.warning(
                "%s %s returned %d in %.3fs",
                request.method.value, url, status_code, elapsed,
                extra=context,
            )
            return self._response_factory.create_error(raw)

        self._logger.info(
            "%s %s returned %d in %.3fs",
            request.method.value, url, status_code, elapsed,
            extra=context,
        )
        return self._response_factory.create_success(raw)
