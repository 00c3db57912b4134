"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for resendcli:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.resend/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~resendcli.models.CliConfig` JSON
  file holding the API key, default sender and client settings. The file
  contains a secret, so it is written with mode ``0600``.
* **Project config** -- An optional ``./.resend.json`` whose keys are
  layered over the global file.
* **Precedence resolution** -- :func:`resolve_settings` merges the CLI
  ``--api-key`` flag, ``RESEND_*`` environment variables, project config,
  and global config into the effective :class:`~resendcli.models.CliConfig`.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from resendcli.exceptions import ConfigError
from resendcli.models import CliConfig

_APP_NAME = "resend"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = ".resend.json"

API_KEY_PREFIX = "re_"

ENV_API_KEY = "RESEND_API_KEY"
ENV_DEFAULT_FROM = "RESEND_DEFAULT_FROM"
ENV_BASE_URL = "RESEND_API_BASE_URL"
ENV_OUTPUT_FORMAT = "RESEND_OUTPUT_FORMAT"

_ENV_OVERRIDES = {
    "api_key": ENV_API_KEY,
    "default_from": ENV_DEFAULT_FROM,
    "base_url": ENV_BASE_URL,
    "output_format": ENV_OUTPUT_FORMAT,
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True on platforms that use XDG base directories (Linux/BSD)."""
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

    On Linux/BSD: ``$XDG_CONFIG_HOME/resend/`` (default ``~/.config/resend/``).
    On macOS/Windows: ``~/.resend/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/resend/`` (default ``~/.local/share/resend/``).
    On macOS/Windows: ``~/.resend/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_file_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def project_config_path() -> Path:
    """Path to the project-local config file in the working directory."""
    return Path.cwd() / _PROJECT_CONFIG_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str, mode: int = 0o600) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    Its permissions are set to *mode* before any data is written. On any
    failure the temp file is cleaned up.
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
        os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close in finally
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _read_json(path: Path, label: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc


def load_config() -> CliConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~resendcli.models.CliConfig`. If the file
        does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = config_file_path()
    if not path.is_file():
        return CliConfig()
    data = _read_json(path, "config")
    try:
        return CliConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config(config: CliConfig) -> Path:
    """Persist the global configuration atomically to disk.

    Unset keys are omitted from the file.

    Returns:
        The path written to.
    """
    path = config_file_path()
    data = config.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./.resend.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = project_config_path()
    if not path.is_file():
        return None
    data = _read_json(path, "project config")
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_settings(cli_api_key: Optional[str] = None) -> CliConfig:
    """Resolve the effective settings with the full precedence chain.

    Precedence (high to low):
        1. CLI flag (``--api-key``)
        2. Environment variables (``RESEND_API_KEY``, ``RESEND_DEFAULT_FROM``,
           ``RESEND_API_BASE_URL``, ``RESEND_OUTPUT_FORMAT``)
        3. Project config (``./.resend.json``)
        4. User config (``~/.config/resend/config.json``)
        5. Defaults

    Raises:
        ConfigError: If any config file is invalid.
    """
    data = load_config().model_dump(exclude_unset=True, exclude_none=True)

    project = load_project_config()
    if project:
        data.update({key: value for key, value in project.items() if value is not None})

    for field, env_var in _ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            data[field] = value

    if cli_api_key:
        data["api_key"] = cli_api_key

    try:
        return CliConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def require_api_key(settings: CliConfig) -> str:
    """Return the API key from resolved *settings*.

    Raises:
        ConfigError: If no key is configured anywhere.
    """
    if not settings.api_key:
        raise ConfigError(
            "No API key found. Set RESEND_API_KEY, pass --api-key, "
            "or run 'resend config init'."
        )
    return settings.api_key


def looks_like_api_key(value: str) -> bool:
    return value.startswith(API_KEY_PREFIX)


def mask_api_key(api_key: str) -> str:
    """Mask an API key for display: ``re_abc...wxyz``.

    Keys of seven characters or fewer are returned unchanged.
    """
    if len(api_key) <= 7:
        return api_key
    return f"{api_key[:3]}...{api_key[-4:]}"
