"""Cache commands -- inspect and clear the response cache.

Operates on the :class:`~servicelayer.cache.DiskCache` directory named by the
effective configuration (``cache.directory``, defaulting to the XDG cache
directory).
"""

from __future__ import annotations

import typer

from servicelayer.cache import DiskCache
from servicelayer.config import get_cache_dir, resolve_config
from servicelayer.exceptions import ServiceLayerError
from servicelayer.output import error, format_response, success

cache_app = typer.Typer(no_args_is_help=True)


def _open_cache() -> tuple[DiskCache, bool]:
    try:
        config = resolve_config()
    except ServiceLayerError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)
    directory = config.cache.directory or get_cache_dir()
    return DiskCache(directory, ttl_seconds=config.cache.ttl_seconds), config.cache.enabled


@cache_app.command("stats")
def cache_stats() -> None:
    """Show the number of cached entries, their size and location.

    Example::

        servicelayer cache stats --json
    """
    cache, enabled = _open_cache()
    try:
        format_response({"enabled": enabled, **cache.stats()})
    finally:
        cache.close()


@cache_app.command("clear")
def cache_clear() -> None:
    """Remove every cached response."""
    cache, _ = _open_cache()
    try:
        removed = cache.clear()
    finally:
        cache.close()
    success(f"Removed {removed} cached response(s).")
