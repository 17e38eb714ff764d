"""Tests for the call dispatcher."""

from __future__ import annotations

import logging

import httpx
import pytest

from servicelayer.client.cache_key import derive_cache_key
from servicelayer.client.dispatcher import Dispatcher, _null_logger
from servicelayer.exceptions import ConfigError, InvalidOptionError
from servicelayer.models import (
    DEFAULT_TIMEOUT,
    ApiRequest,
    CacheConfig,
    DataPlacement,
    DispatcherConfig,
    ErrorResponse,
    HTTPMethod,
    SuccessResponse,
)


BASE_URL = "https://api.example.com"


def _dispatcher(transport, factory, cache=None, logger=None, **kwargs) -> Dispatcher:
    return Dispatcher(transport, factory, BASE_URL, cache=cache, logger=logger, **kwargs)


# ---------------------------------------------------------------------------
# URL and option building
# ---------------------------------------------------------------------------


class TestNetworkPathOptions:
    def test_url_joins_base_and_endpoint(self, transport, factory) -> None:
        dispatcher = _dispatcher(transport, factory)
        dispatcher.call(ApiRequest(endpoint="users"))
        method, url, _ = transport.calls[0]
        assert method == "GET"
        assert url == "https://api.example.com/users"

    def test_single_trailing_slash_stripped(self, transport, factory) -> None:
        dispatcher = Dispatcher(transport, factory, "https://api.example.com/v1/")
        assert dispatcher.base_url == "https://api.example.com/v1"
        dispatcher.call(ApiRequest(endpoint="users"))
        assert transport.calls[0][1] == "https://api.example.com/v1/users"

    def test_only_one_trailing_slash_stripped(self, transport, factory) -> None:
        dispatcher = Dispatcher(transport, factory, "https://api.example.com//")
        assert dispatcher.base_url == "https://api.example.com/"

    def test_timeout_forced_over_caller_option(self, transport, factory) -> None:
        dispatcher = _dispatcher(transport, factory, timeout=2.5)
        dispatcher.call(ApiRequest(endpoint="users"), {"timeout": 99, "follow_redirects": False})
        options = transport.calls[0][2]
        kwargs = options.as_kwargs()
        assert kwargs["timeout"] == 2.5
        assert kwargs["follow_redirects"] is False

    def test_default_timeout(self, transport, factory) -> None:
        dispatcher = _dispatcher(transport, factory)
        dispatcher.call(ApiRequest(endpoint="users"))
        assert transport.calls[0][2].timeout == DEFAULT_TIMEOUT

    @pytest.mark.parametrize(
        ("placement", "key"),
        [(DataPlacement.JSON, "json"), (DataPlacement.FORM, "data"), (DataPlacement.QUERY, "params")],
    )
    def test_data_placed_under_placement_key(self, transport, factory, placement, key) -> None:
        dispatcher = _dispatcher(transport, factory)
        request = ApiRequest(
            endpoint="users", method=HTTPMethod.POST, data={"a": 1}, data_placement=placement.value
        )
        dispatcher.call(request)
        kwargs = transport.calls[0][2].as_kwargs()
        assert kwargs[key] == {"a": 1}

    def test_no_data_means_no_payload_option(self, transport, factory) -> None:
        dispatcher = _dispatcher(transport, factory)
        dispatcher.call(ApiRequest(endpoint="users"))
        kwargs = transport.calls[0][2].as_kwargs()
        assert set(kwargs) == {"timeout"}

    def test_headers_attached_when_present(self, transport, factory) -> None:
        dispatcher = _dispatcher(transport, factory)
        dispatcher.call(ApiRequest(endpoint="users", headers={"X-Trace": "1"}))
        assert transport.calls[0][2].as_kwargs()["headers"] == {"X-Trace": "1"}


# ---------------------------------------------------------------------------
# Data placement validation
# ---------------------------------------------------------------------------


class TestInvalidPlacement:
    def test_unknown_placement_fails_before_transport(self, transport, factory) -> None:
        dispatcher = _dispatcher(transport, factory)
        request = ApiRequest(endpoint="users", data={"a": 1}, data_placement="multipart")
        with pytest.raises(InvalidOptionError, match="multipart"):
            dispatcher.call(request)
        assert transport.calls == []

    def test_unknown_placement_fails_on_cache_path(self, transport, factory, dict_cache) -> None:
        dispatcher = _dispatcher(transport, factory, cache=dict_cache)
        request = ApiRequest(
            endpoint="users", data={"a": 1}, data_placement="xml", cacheable=True
        )
        with pytest.raises(InvalidOptionError):
            dispatcher.call(request)
        assert transport.calls == []
        assert dict_cache.entries == {}

    def test_unknown_placement_ignored_without_data(self, transport, factory) -> None:
        dispatcher = _dispatcher(transport, factory)
        response = dispatcher.call(ApiRequest(endpoint="users", data_placement="xml"))
        assert not response.is_error
        assert len(transport.calls) == 1


# ---------------------------------------------------------------------------
# Status classification
# ---------------------------------------------------------------------------


class TestStatusClassification:
    @pytest.mark.parametrize(
        ("status", "is_success"),
        [(199, False), (200, True), (204, True), (299, True), (300, False), (404, False), (500, False)],
    )
    def test_success_boundary(
        self, make_transport, make_response, factory, status, is_success
    ) -> None:
        transport = make_transport(lambda m, u, o: make_response(status, url=u))
        dispatcher = _dispatcher(transport, factory)

        response = dispatcher.call(ApiRequest(endpoint="users"))

        assert factory.success_calls == (1 if is_success else 0)
        assert factory.error_calls == (0 if is_success else 1)
        assert response.is_error is not is_success
        assert response.status_code == status

    def test_success_carries_decoded_body(self, make_transport, make_response, factory) -> None:
        transport = make_transport(lambda m, u, o: make_response(200, json={"id": 7}, url=u))
        response = _dispatcher(transport, factory).call(ApiRequest(endpoint="users/7"))
        assert isinstance(response, SuccessResponse)
        assert response.data == {"id": 7}

    def test_error_carries_raw_body(self, make_transport, make_response, factory) -> None:
        transport = make_transport(
            lambda m, u, o: make_response(404, json={"error": "missing"}, url=u)
        )
        response = _dispatcher(transport, factory).call(ApiRequest(endpoint="users/7"))
        assert isinstance(response, ErrorResponse)
        assert response.reason == "Not Found"
        assert "missing" in response.body


# ---------------------------------------------------------------------------
# Transport faults
# ---------------------------------------------------------------------------


class TestTransportFaults:
    def test_status_error_with_response_is_classified(
        self, make_transport, make_response, factory, log_records
    ) -> None:
        logger, handler = log_records

        def handler_fn(method, url, options):
            raw = make_response(503, url=url)
            raise httpx.HTTPStatusError("server error", request=raw.request, response=raw)

        dispatcher = _dispatcher(make_transport(handler_fn), factory, logger=logger)
        response = dispatcher.call(ApiRequest(endpoint="users"))

        assert response.is_error
        assert response.status_code == 503
        assert factory.error_calls == 1
        assert [r.levelno for r in handler.records] == [logging.WARNING]

    def test_fault_without_response_propagates_and_logs_error(
        self, make_transport, factory, log_records
    ) -> None:
        logger, handler = log_records
        fault = httpx.ConnectError("connection reset", request=httpx.Request("GET", BASE_URL))

        def handler_fn(method, url, options):
            raise fault

        dispatcher = _dispatcher(make_transport(handler_fn), factory, logger=logger)
        request = ApiRequest(endpoint="users")

        with pytest.raises(httpx.ConnectError) as exc_info:
            dispatcher.call(request)

        assert exc_info.value is fault
        assert len(handler.records) == 1
        record = handler.records[0]
        assert record.levelno == logging.ERROR
        assert record.request is request
        assert record.elapsed >= 0
        assert factory.success_calls == factory.error_calls == 0

    def test_timeout_propagates_and_logs_error(self, make_transport, factory, log_records) -> None:
        logger, handler = log_records

        def handler_fn(method, url, options):
            raise httpx.ReadTimeout("timed out", request=httpx.Request(method, url))

        dispatcher = _dispatcher(make_transport(handler_fn), factory, logger=logger)
        with pytest.raises(httpx.ReadTimeout):
            dispatcher.call(ApiRequest(endpoint="users"))
        assert [r.levelno for r in handler.records] == [logging.ERROR]

    def test_unexpected_fault_propagates_and_logs_critical(
        self, make_transport, factory, log_records
    ) -> None:
        logger, handler = log_records

        def handler_fn(method, url, options):
            raise RuntimeError("boom")

        dispatcher = _dispatcher(make_transport(handler_fn), factory, logger=logger)
        with pytest.raises(RuntimeError, match="boom"):
            dispatcher.call(ApiRequest(endpoint="users"))
        assert [r.levelno for r in handler.records] == [logging.CRITICAL]

    def test_fault_is_never_cached(self, make_transport, factory, dict_cache) -> None:
        def handler_fn(method, url, options):
            raise httpx.ConnectError("down", request=httpx.Request(method, url))

        dispatcher = _dispatcher(make_transport(handler_fn), factory, cache=dict_cache)
        with pytest.raises(httpx.ConnectError):
            dispatcher.call(ApiRequest(endpoint="users", cacheable=True))
        assert dict_cache.entries == {}


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


class TestLogging:
    def test_success_logs_one_info_record(self, transport, factory, log_records) -> None:
        logger, handler = log_records
        request = ApiRequest(endpoint="users")
        _dispatcher(transport, factory, logger=logger).call(request)

        assert len(handler.records) == 1
        record = handler.records[0]
        assert record.levelno == logging.INFO
        assert record.status_code == 200
        assert record.request is request
        assert record.elapsed >= 0
        assert "200" in record.getMessage()

    def test_error_status_logs_one_warning_record(
        self, make_transport, make_response, factory, log_records
    ) -> None:
        logger, handler = log_records
        transport = make_transport(lambda m, u, o: make_response(500, url=u))
        _dispatcher(transport, factory, logger=logger).call(ApiRequest(endpoint="users"))

        assert [r.levelno for r in handler.records] == [logging.WARNING]
        assert handler.records[0].status_code == 500

    def test_cache_hit_logs_nothing(self, transport, factory, dict_cache, log_records) -> None:
        logger, handler = log_records
        dispatcher = _dispatcher(transport, factory, cache=dict_cache, logger=logger)
        request = ApiRequest(endpoint="users", cacheable=True)

        dispatcher.call(request)
        dispatcher.call(request)

        assert len(handler.records) == 1

    def test_missing_logger_discards_records(self, transport, factory, root_log_records) -> None:
        _dispatcher(transport, factory).call(ApiRequest(endpoint="users"))
        assert root_log_records.records == []

    def test_fallback_logger_only_has_null_handler(self) -> None:
        assert _null_logger.propagate is False
        assert len(_null_logger.handlers) == 1
        assert isinstance(_null_logger.handlers[0], logging.NullHandler)


# ---------------------------------------------------------------------------
# Cache path
# ---------------------------------------------------------------------------


class TestCachePath:
    def test_miss_then_hit(self, transport, factory, dict_cache) -> None:
        dispatcher = _dispatcher(transport, factory, cache=dict_cache)
        request = ApiRequest(endpoint="users", method=HTTPMethod.GET, cacheable=True)

        first = dispatcher.call(request)

        key = derive_cache_key(request, None)
        assert isinstance(first, SuccessResponse)
        assert dict_cache.entries[key] is first
        assert len(transport.calls) == 1

        second = dispatcher.call(request)
        assert second is first
        assert len(transport.calls) == 1

    def test_repeated_hits_issue_one_live_call(self, transport, factory, dict_cache) -> None:
        dispatcher = _dispatcher(transport, factory, cache=dict_cache)
        request = ApiRequest(endpoint="users", data={"page": 1}, cacheable=True)

        responses = [dispatcher.call(request, {"follow_redirects": True}) for _ in range(5)]

        assert len(transport.calls) == 1
        assert all(r is responses[0] for r in responses)

    def test_error_never_cached(self, make_transport, make_response, factory, dict_cache) -> None:
        transport = make_transport(lambda m, u, o: make_response(404, url=u))
        dispatcher = _dispatcher(transport, factory, cache=dict_cache)
        request = ApiRequest(endpoint="users/9", cacheable=True)

        for _ in range(3):
            assert dispatcher.call(request).is_error

        assert dict_cache.entries == {}
        assert not any(op == "set" for op, _ in dict_cache.operations)
        assert len(transport.calls) == 3

    def test_non_cacheable_request_never_touches_cache(
        self, transport, factory, dict_cache
    ) -> None:
        dispatcher = _dispatcher(transport, factory, cache=dict_cache)
        request = ApiRequest(endpoint="users", cacheable=False)

        for _ in range(4):
            dispatcher.call(request)

        assert len(transport.calls) == 4
        assert dict_cache.operations == []

    def test_no_cache_configured_goes_live(self, transport, factory) -> None:
        dispatcher = _dispatcher(transport, factory)
        request = ApiRequest(endpoint="users", cacheable=True)
        dispatcher.call(request)
        dispatcher.call(request)
        assert len(transport.calls) == 2

    def test_different_options_with_data_miss(self, transport, factory, dict_cache) -> None:
        dispatcher = _dispatcher(transport, factory, cache=dict_cache)
        request = ApiRequest(endpoint="search", data={"q": "ada"}, cacheable=True)

        dispatcher.call(request, {"follow_redirects": True})
        dispatcher.call(request, {"follow_redirects": False})

        assert len(transport.calls) == 2
        assert len(dict_cache.entries) == 2

    def test_entry_expiring_between_has_and_get_goes_live(
        self, transport, factory, expiring_cache
    ) -> None:
        cache = expiring_cache
        dispatcher = _dispatcher(transport, factory, cache=cache)
        request = ApiRequest(endpoint="users", cacheable=True)

        response = dispatcher.call(request)

        assert isinstance(response, SuccessResponse)
        assert len(transport.calls) == 1
        assert [op for op, _ in cache.operations] == ["has", "get", "set"]

    def test_method_variation_shares_entry(self, transport, factory, dict_cache) -> None:
        dispatcher = _dispatcher(transport, factory, cache=dict_cache)
        dispatcher.call(ApiRequest(endpoint="users", method=HTTPMethod.GET, cacheable=True))
        dispatcher.call(ApiRequest(endpoint="users", method=HTTPMethod.POST, cacheable=True))
        assert len(transport.calls) == 1


# ---------------------------------------------------------------------------
# Construction and lifecycle
# ---------------------------------------------------------------------------


class TestFromConfig:
    def test_requires_base_url(self) -> None:
        with pytest.raises(ConfigError, match="base URL"):
            Dispatcher.from_config(DispatcherConfig())

    def test_wires_transport_and_timeout(self, transport) -> None:
        config = DispatcherConfig(base_url="https://api.example.com/", timeout=3.0)
        dispatcher = Dispatcher.from_config(config, transport=transport)
        assert dispatcher.base_url == "https://api.example.com"
        assert dispatcher.timeout == 3.0
        assert dispatcher.cache is None

    def test_enabled_cache_uses_configured_directory(self, tmp_path, transport) -> None:
        config = DispatcherConfig(
            base_url=BASE_URL,
            cache=CacheConfig(enabled=True, directory=str(tmp_path)),
        )
        with Dispatcher.from_config(config, transport=transport) as dispatcher:
            assert dispatcher.cache is not None
            first = dispatcher.call(ApiRequest(endpoint="users", cacheable=True))
            second = dispatcher.call(ApiRequest(endpoint="users", cacheable=True))
        assert (tmp_path / "responses").is_dir()
        assert len(transport.calls) == 1
        assert second == first

    def test_close_closes_collaborators(self, transport, factory) -> None:
        with _dispatcher(transport, factory):
            pass
        assert transport.closed
