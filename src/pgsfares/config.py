"""Configuration loading with XDG paths and precedence resolution.

This module produces the :class:`~pgsfares.models.ClientConfig` a
:class:`~pgsfares.client.PegasusClient` runs with:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.pgsfares/`` on macOS and Windows. See :func:`get_config_dir`.
* **Config file** -- an optional ``config.json`` in that directory holding
  any subset of :class:`~pgsfares.models.ClientConfig` fields.
* **Precedence resolution** -- :func:`resolve_config` layers explicit
  overrides, ``PGSFARES_*`` environment variables and the config file over
  the model defaults.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from pgsfares.exceptions import ConfigError
from pgsfares.models import ClientConfig

_APP_NAME = "pgsfares"
_CONFIG_FILENAME = "config.json"

ENV_LANGUAGE = "PGSFARES_LANGUAGE"
ENV_CACHING_MODE = "PGSFARES_CACHING_MODE"
ENV_TIMEOUT = "PGSFARES_TIMEOUT"
ENV_CONFIG = "PGSFARES_CONFIG"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory without creating it.

    On Linux/BSD: ``$XDG_CONFIG_HOME/pgsfares/`` (default ``~/.config/pgsfares/``).
    On macOS/Windows: ``~/.pgsfares/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        return base / _APP_NAME
    return Path.home() / f".{_APP_NAME}"


def config_path() -> Path:
    """Path of the config file; ``PGSFARES_CONFIG`` overrides the default location."""
    override = os.environ.get(ENV_CONFIG)
    if override:
        return Path(override).expanduser()
    return get_config_dir() / _CONFIG_FILENAME


# --- Loading ---


def load_config_file(path: Optional[Path] = None) -> dict[str, Any]:
    """Load the raw config file.

    Returns:
        The parsed JSON object, or an empty dict if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = path or config_path()
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config at {path}: expected a JSON object")
    return data


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    language = os.environ.get(ENV_LANGUAGE)
    if language:
        overrides["default_language"] = language
    mode = os.environ.get(ENV_CACHING_MODE)
    if mode:
        overrides["caching_mode"] = mode.lower()
    timeout = os.environ.get(ENV_TIMEOUT)
    if timeout:
        overrides["timeout"] = timeout
    return overrides


def resolve_config(**overrides: Any) -> ClientConfig:
    """Resolve the effective client configuration.

    Precedence (high to low):
        1. Keyword *overrides* whose value is not ``None``
        2. Environment variables (``PGSFARES_LANGUAGE``,
           ``PGSFARES_CACHING_MODE``, ``PGSFARES_TIMEOUT``)
        3. Config file (``~/.config/pgsfares/config.json``)
        4. Defaults

    Raises:
        ConfigError: If the file is invalid or a value fails validation.
    """
    data = load_config_file()
    data.update(_env_overrides())
    data.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return ClientConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
