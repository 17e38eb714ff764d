"""Disk-based cache backend for dispatched responses.

Uses :mod:`diskcache` to persist response snapshots on the filesystem with an
optional time-to-live.  Snapshots are stored as JSON-compatible dicts
(``model_dump(mode="json")``) and rehydrated through the
:data:`~servicelayer.models.ApiResponse` discriminated union, so entries do
not depend on pickling model classes.

The dispatcher decides *what* is cached (successes only) and derives the
keys; this backend only stores and returns values.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import diskcache
from pydantic import TypeAdapter

from servicelayer.models import ApiResponse

_response_adapter: TypeAdapter[ApiResponse] = TypeAdapter(ApiResponse)


class DiskCache:
    """Disk-backed :class:`~servicelayer.protocols.CacheBackend`.

    Args:
        cache_dir: Root directory for the cache.  A ``responses/``
            subdirectory is created inside it.
        ttl_seconds: Entry lifetime in seconds.  ``None`` keeps entries
            until they are cleared.

    Example::

        from servicelayer.cache import DiskCache

        cache = DiskCache("/tmp/api-cache", ttl_seconds=300)
        cache.set("servicelayer_abc", SuccessResponse(status_code=200, data=[1]))
        if cache.has("servicelayer_abc"):
            hit = cache.get("servicelayer_abc")
    """

    def __init__(self, cache_dir: str | Path, ttl_seconds: Optional[int] = None) -> None:
        self._cache_dir = Path(cache_dir)
        self._ttl_seconds = ttl_seconds
        self._cache = diskcache.Cache(str(self._cache_dir / "responses"))

    def has(self, key: str) -> bool:
        """Return ``True`` if *key* holds an unexpired entry."""
        return key in self._cache

    def get(self, key: str) -> Optional[ApiResponse]:
        """Return the response stored under *key*, or ``None`` on a miss."""
        snapshot = self._cache.get(key)
        if snapshot is None:
            return None
        return _response_adapter.validate_python(snapshot)

    def set(self, key: str, response: ApiResponse) -> None:
        """Store a snapshot of *response* under *key*."""
        self._cache.set(key, response.model_dump(mode="json"), expire=self._ttl_seconds)

    def clear(self) -> int:
        """Remove all entries and return how many were removed."""
        return self._cache.clear()

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``size`` (number of entries), ``volume`` (bytes
            on disk), ``directory`` (str path) and ``ttl_seconds``.
        """
        return {
            "size": len(self._cache),
            "volume": self._cache.volume(),
            "directory": str(self._cache_dir / "responses"),
            "ttl_seconds": self._ttl_seconds,
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()
