"""Shared test fixtures for servicelayer.

Provides stub collaborators (transport, response factory, cache backend,
log capture), isolated config environments, and output state management.
These fixtures are automatically discovered by pytest.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from servicelayer.client.options import TransportOptions
from servicelayer.client.response import DefaultResponseFactory
from servicelayer.models import ApiResponse, ErrorResponse, SuccessResponse
from servicelayer.output import LOGGER_NAME, reset_output


BASE_URL = "https://api.example.com"


# ---------------------------------------------------------------------------
# Stub collaborators
# ---------------------------------------------------------------------------


def make_raw_response(
    status_code: int = 200,
    json: Any = None,
    url: str = f"{BASE_URL}/users",
    method: str = "GET",
) -> httpx.Response:
    """Build an httpx.Response bound to a request, as a real transport returns."""
    return httpx.Response(
        status_code=status_code,
        json=json if json is not None else {"ok": status_code < 400},
        request=httpx.Request(method, url),
    )


class StubTransport:
    """Transport that records calls and answers through *handler*.

    *handler* receives ``(method, url, options)`` and returns an
    httpx.Response or raises.
    """

    def __init__(self, handler: Optional[Callable[..., httpx.Response]] = None) -> None:
        self.calls: list[tuple[str, str, TransportOptions]] = []
        self._handler = handler or (lambda method, url, options: make_raw_response(200, url=url))
        self.closed = False

    def request(self, method: str, url: str, options: TransportOptions) -> httpx.Response:
        self.calls.append((method, url, options))
        return self._handler(method, url, options)

    def close(self) -> None:
        self.closed = True


class CountingFactory(DefaultResponseFactory):
    """Response factory that counts which constructor was used."""

    def __init__(self) -> None:
        self.success_calls = 0
        self.error_calls = 0

    def create_success(self, raw: httpx.Response) -> SuccessResponse:
        self.success_calls += 1
        return super().create_success(raw)

    def create_error(self, raw: httpx.Response) -> ErrorResponse:
        self.error_calls += 1
        return super().create_error(raw)


class DictCache:
    """In-memory cache backend that records every operation."""

    def __init__(self) -> None:
        self.entries: dict[str, ApiResponse] = {}
        self.operations: list[tuple[str, str]] = []

    def has(self, key: str) -> bool:
        self.operations.append(("has", key))
        return key in self.entries

    def get(self, key: str) -> Optional[ApiResponse]:
        self.operations.append(("get", key))
        return self.entries.get(key)

    def set(self, key: str, response: ApiResponse) -> None:
        self.operations.append(("set", key))
        self.entries[key] = response


class ExpiringCache(DictCache):
    """Cache whose entries always expire between ``has`` and ``get``."""

    def has(self, key: str) -> bool:
        super().has(key)
        return True

    def get(self, key: str) -> Optional[ApiResponse]:
        super().get(key)
        return None


class RecordingHandler(logging.Handler):
    """Logging handler that keeps every record it receives."""

    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def transport() -> StubTransport:
    return StubTransport()


@pytest.fixture
def make_transport() -> type[StubTransport]:
    """The StubTransport class, for tests that need a custom handler."""
    return StubTransport


@pytest.fixture
def make_response() -> Callable[..., httpx.Response]:
    """The make_raw_response helper."""
    return make_raw_response


@pytest.fixture
def factory() -> CountingFactory:
    return CountingFactory()


@pytest.fixture
def dict_cache() -> DictCache:
    return DictCache()


@pytest.fixture
def expiring_cache() -> ExpiringCache:
    return ExpiringCache()


@pytest.fixture
def log_records(request: pytest.FixtureRequest) -> tuple[logging.Logger, RecordingHandler]:
    """A dedicated, non-propagating logger and the handler capturing its records."""
    logger = logging.getLogger(f"tests.dispatcher.{request.node.name}")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    handler = RecordingHandler()
    logger.addHandler(handler)
    yield logger, handler
    logger.removeHandler(handler)


@pytest.fixture
def root_log_records() -> RecordingHandler:
    """A handler attached to the root logger for the duration of a test."""
    root = logging.getLogger()
    previous_level = root.level
    handler = RecordingHandler()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)
    yield handler
    root.removeHandler(handler)
    root.setLevel(previous_level)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time, which go stale once CliRunner restores the streams.
    The same holds for the log handler installed by ``setup_logging``.
    """
    yield
    reset_output()
    package_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories at subdirectories of tmp_path, clears all
    SERVICELAYER_* environment variables, and changes the working
    directory to tmp_path.
    """
    monkeypatch.setattr("servicelayer.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["SERVICELAYER_BASE_URL", "SERVICELAYER_TIMEOUT", "SERVICELAYER_CACHE"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
