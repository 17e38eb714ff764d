"""Disk-based response caching for servicelayer.

This package provides :class:`DiskCache`, a cache backend that stores
successful response snapshots on disk using :mod:`diskcache`.  Keys are
derived by :func:`servicelayer.client.derive_cache_key`; expiry is an
optional TTL applied by the backend.

The cache is consumed by :class:`~servicelayer.client.Dispatcher` and is
controlled by the ``cache`` section of
:class:`~servicelayer.models.DispatcherConfig`.
"""

from servicelayer.cache.cache import DiskCache

__all__ = ["DiskCache"]
