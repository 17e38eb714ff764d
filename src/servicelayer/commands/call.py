"""Call command -- dispatch one request from the command line.

Builds an :class:`~servicelayer.models.ApiRequest` from CLI arguments,
resolves the effective :class:`~servicelayer.models.DispatcherConfig`
(flags > environment > config file), and runs it through a
:class:`~servicelayer.client.Dispatcher`. The response body goes to stdout;
the status line and the dispatcher's log record go to stderr.

Exit codes: 0 for a 2xx answer, ``EXIT_API_ERROR`` for any other status,
``EXIT_CONNECTION_ERROR`` for a network fault, and the error's own code
for :class:`~servicelayer.exceptions.ServiceLayerError`.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx
import typer

from servicelayer.client import Dispatcher
from servicelayer.config import resolve_config
from servicelayer.exceptions import InvalidUsageError, ServiceLayerError
from servicelayer.exit_codes import EXIT_API_ERROR, EXIT_CONNECTION_ERROR
from servicelayer.models import ApiRequest, HTTPMethod
from servicelayer.output import LOGGER_NAME, debug, error, format_response, info, warning


def _parse_data(raw: Optional[str]) -> Any:
    """Parse *raw* as JSON if possible, returning the raw string on failure."""
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return raw


def _parse_headers(raw_headers: Optional[list[str]]) -> dict[str, str]:
    """Parse ``"Name: value"`` strings into a header dict."""
    headers: dict[str, str] = {}
    for raw in raw_headers or []:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise InvalidUsageError(f"Invalid header {raw!r}, expected 'Name: value'")
        headers[name.strip()] = value.strip()
    return headers


def call_command(
    endpoint: str = typer.Argument(help="Endpoint path appended to the base URL."),
    method: HTTPMethod = typer.Option(
        HTTPMethod.GET, "--method", "-X", case_sensitive=False, help="HTTP method."
    ),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="Request data (JSON, or a raw string)."
    ),
    placement: str = typer.Option(
        "json", "--placement", help="Where data goes: json, form or query."
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Request header as 'Name: value'. Repeatable."
    ),
    cacheable: Optional[bool] = typer.Option(
        None,
        "--cacheable/--no-cacheable",
        help="Allow serving the result from cache (default: GET requests only).",
    ),
    cache: Optional[bool] = typer.Option(
        None, "--cache/--no-cache", help="Enable or disable the response cache."
    ),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Override the base URL."),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", min=0.001, help="Timeout in seconds."
    ),
) -> None:
    """Dispatch a request and print the response body.

    Example::

        servicelayer call users --base-url https://api.example.com
        servicelayer call users -X POST -d '{"name": "Ada"}'
        servicelayer call search -d '{"q": "ada"}' --placement query --cacheable
    """
    try:
        config = resolve_config(cli_base_url=base_url, cli_timeout=timeout, cli_cache=cache)
        request = ApiRequest(
            endpoint=endpoint,
            method=method,
            data=_parse_data(data),
            data_placement=placement,
            headers=_parse_headers(header),
            cacheable=(method == HTTPMethod.GET) if cacheable is None else cacheable,
        )
        if cacheable and not config.cache.enabled:
            warning("Response cache is disabled; --cacheable has no effect.")
        logger = logging.getLogger(f"{LOGGER_NAME}.dispatch")
        with Dispatcher.from_config(config, logger=logger) as dispatcher:
            debug(f"{request.method.value} {dispatcher.url_for(request)}")
            response = dispatcher.call(request)
    except ServiceLayerError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)
    except httpx.HTTPError as exc:
        error(f"Request failed: {exc}")
        raise typer.Exit(code=EXIT_CONNECTION_ERROR)

    if response.is_error:
        error(f"HTTP {response.status_code} {response.reason}".rstrip())
        format_response(response.body or None)
        raise typer.Exit(code=EXIT_API_ERROR)

    info(f"HTTP {response.status_code}")
    format_response(response.data)
