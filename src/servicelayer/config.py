"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for servicelayer:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.servicelayer/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir` and :func:`get_data_dir`.
* **Dispatcher config** -- A single :class:`~servicelayer.models.DispatcherConfig`
  JSON file managed via :func:`load_config` and :func:`save_config`.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables and the config file into the effective settings.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from servicelayer.exceptions import ConfigError
from servicelayer.models import DispatcherConfig

_APP_NAME = "servicelayer"
_CONFIG_FILENAME = "config.json"

ENV_BASE_URL = "SERVICELAYER_BASE_URL"
ENV_TIMEOUT = "SERVICELAYER_TIMEOUT"
ENV_CACHE = "SERVICELAYER_CACHE"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/servicelayer/`` (default ``~/.config/servicelayer/``).
    On macOS/Windows: ``~/.servicelayer/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the default :class:`~servicelayer.cache.DiskCache`. Cached data can
    be safely deleted at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/servicelayer/`` (default ``~/.cache/servicelayer/``).
    On macOS/Windows: ``~/.servicelayer/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/servicelayer/`` (default ``~/.local/share/servicelayer/``).
    On macOS/Windows: ``~/.servicelayer/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Dispatcher config ---


def config_path() -> Path:
    """Path to the config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_config(path: Optional[Path] = None) -> DispatcherConfig:
    """Load the dispatcher configuration.

    Args:
        path: Config file to read; defaults to :func:`config_path`.

    Returns:
        The deserialised :class:`~servicelayer.models.DispatcherConfig`.
        If the file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = path or config_path()
    if not path.is_file():
        return DispatcherConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return DispatcherConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config(config: DispatcherConfig, path: Optional[Path] = None) -> Path:
    """Persist the configuration atomically and return the path written."""
    path = path or config_path()
    data = config.model_dump(mode="json")
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


def set_config_value(config: DispatcherConfig, key: str, value: str) -> DispatcherConfig:
    """Return a copy of *config* with the dot-separated *key* set to *value*.

    The string *value* is coerced by Pydantic validation to the field's type.

    Raises:
        ConfigError: If the key path does not exist or the value is invalid.
    """
    data: dict[str, Any] = config.model_dump(mode="json")
    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if not isinstance(target.get(k), dict):
            raise ConfigError(f"Invalid config key: {key}")
        target = target[k]
    if keys[-1] not in target:
        raise ConfigError(f"Invalid config key: {key}")

    target[keys[-1]] = None if value.lower() in ("null", "none") else value
    try:
        return DispatcherConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid value for {key}: {exc.errors()[0]['msg']}") from exc


# --- Precedence resolution ---


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def resolve_config(
    cli_base_url: Optional[str] = None,
    cli_timeout: Optional[float] = None,
    cli_cache: Optional[bool] = None,
    path: Optional[Path] = None,
) -> DispatcherConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_base_url``, ``cli_timeout``, ``cli_cache``)
        2. Environment variables (``SERVICELAYER_BASE_URL``,
           ``SERVICELAYER_TIMEOUT``, ``SERVICELAYER_CACHE``)
        3. Config file (``~/.config/servicelayer/config.json``)
        4. Defaults

    Raises:
        ConfigError: If an environment variable or the file holds an invalid value.
    """
    config = load_config(path)
    updates: dict[str, Any] = {}
    cache_updates: dict[str, Any] = {}

    env_base_url = os.environ.get(ENV_BASE_URL)
    if env_base_url:
        updates["base_url"] = env_base_url
    env_timeout = os.environ.get(ENV_TIMEOUT)
    if env_timeout:
        try:
            updates["timeout"] = float(env_timeout)
        except ValueError:
            raise ConfigError(f"{ENV_TIMEOUT} must be a number, got {env_timeout!r}") from None
    env_cache = os.environ.get(ENV_CACHE)
    if env_cache:
        cache_updates["enabled"] = _parse_bool(ENV_CACHE, env_cache)

    if cli_base_url is not None:
        updates["base_url"] = cli_base_url
    if cli_timeout is not None:
        updates["timeout"] = cli_timeout
    if cli_cache is not None:
        cache_updates["enabled"] = cli_cache

    data = config.model_dump()
    data.update(updates)
    data["cache"].update(cache_updates)
    try:
        return DispatcherConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc.errors()[0]['msg']}") from exc
