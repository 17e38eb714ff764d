"""Deterministic cache keys for dispatched requests.

Keys are ``CACHE_KEY_PREFIX`` followed by the MD5 hex digest of the
endpoint and, when the request carries data, the canonical JSON of that
data and of the caller's option overlay. MD5 is used only for a short,
well-distributed key.

The HTTP method and the request headers are not part of the key: two
requests to the same endpoint with the same data share one cache entry.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping, Optional

from servicelayer.models import ApiRequest

CACHE_KEY_PREFIX = "servicelayer_"


def _json_default(value: Any) -> Any:
    # Set iteration order depends on the hash seed; sort so keys are stable
    # across processes sharing one cache.
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=_canonical_json)
    return str(value)


def _canonical_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=_json_default)


def derive_cache_key(
    request: ApiRequest,
    request_options: Optional[Mapping[str, Any]] = None,
) -> str:
    """Return the cache key for *request* dispatched with *request_options*.

    Pure function: identical logical input always yields the same key,
    regardless of dict ordering.
    """
    raw = request.endpoint
    if request.data is not None:
        raw += _canonical_json(request.data)
        raw += _canonical_json(dict(request_options or {}))

    digest = hashlib.md5(raw.encode("utf-8", "surrogatepass"), usedforsecurity=False).hexdigest()
    return CACHE_KEY_PREFIX + digest
