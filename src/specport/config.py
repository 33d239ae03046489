"""Persistent import settings and where specport keeps its files.

Directories follow the XDG Base Directory layout on Linux and the BSDs
(``$XDG_CONFIG_HOME/specport``, ``$XDG_DATA_HOME/specport``) and live under
``~/.specport`` everywhere else. The only file in the config directory is
``config.json``, the serialized :class:`~specport.models.ImportSettings`;
the data directory holds crash logs.

:func:`resolve_settings` is what commands call. It layers, from lowest to
highest priority, the model defaults, ``config.json``, ``SPECPORT_*``
environment variables and CLI flags.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from specport.exceptions import ConfigError
from specport.models import ImportSettings

_APP_NAME = "specport"
_CONFIG_FILENAME = "config.json"

# Environment variable -> ImportSettings field.
ENV_OVERRIDES: dict[str, str] = {
    "SPECPORT_TIMEOUT": "fetch_timeout",
    "SPECPORT_VERIFY_SSL": "verify_ssl",
    "SPECPORT_BODY_MAX_DEPTH": "body_max_depth",
    "SPECPORT_PARAMETER_MAX_DEPTH": "parameter_max_depth",
}


# --- Directories ---


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(xdg_var: str, xdg_default: str, fallback: str) -> Path:
    """Return (and create) an application directory.

    Args:
        xdg_var: ``XDG_*_HOME`` variable consulted on XDG platforms.
        xdg_default: Path under ``$HOME`` used when *xdg_var* is unset.
        fallback: Path under ``~/.specport`` used on other platforms.
    """
    if _is_xdg_platform():
        base = os.environ.get(xdg_var) or str(Path.home() / xdg_default)
        path = Path(base) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / fallback
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """``~/.config/specport`` (XDG) or ``~/.specport``."""
    return _app_dir("XDG_CONFIG_HOME", ".config", "")


def get_data_dir() -> Path:
    """``~/.local/share/specport`` (XDG) or ``~/.specport/logs``."""
    return _app_dir("XDG_DATA_HOME", os.path.join(".local", "share"), "logs")


# --- Writing ---


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* so readers never see a partial file.

    The text goes to a hidden sibling temp file, is fsynced, then renamed
    over *path*. The temp file is removed if any step fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    )
    try:
        with handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(handle.name, path)
    except BaseException:
        Path(handle.name).unlink(missing_ok=True)
        raise


# --- Settings file ---


def settings_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_settings() -> ImportSettings:
    """Read ``config.json``; defaults when it does not exist.

    Raises:
        ConfigError: The file is not JSON or does not validate.
    """
    path = settings_path()
    if not path.is_file():
        return ImportSettings()
    try:
        return ImportSettings.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except ValueError as exc:
        # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors.
        raise ConfigError(f"Invalid settings at {path}: {exc}") from exc


def save_settings(settings: ImportSettings) -> None:
    _atomic_write(
        settings_path(), json.dumps(settings.model_dump(mode="json"), indent=2) + "\n"
    )


# --- Resolution ---


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for env_var, field_name in ENV_OVERRIDES.items():
        value = os.environ.get(env_var, "").strip()
        if value:
            overrides[field_name] = value
    return overrides


def resolve_settings(cli_timeout: Optional[float] = None) -> ImportSettings:
    """Return the effective settings.

    Precedence (high to low):
        1. CLI flags (``cli_timeout``)
        2. Environment variables (see :data:`ENV_OVERRIDES`)
        3. ``config.json``
        4. Defaults

    Environment values are strings; pydantic coerces them (``"false"``,
    ``"30"``).

    Raises:
        ConfigError: If ``config.json`` or a resulting value is invalid. The
            message names the environment variables in play.
    """
    data = load_settings().model_dump()

    env = _env_overrides()
    data.update(env)
    if cli_timeout is not None:
        data["fetch_timeout"] = cli_timeout

    try:
        return ImportSettings.model_validate(data)
    except ValidationError as exc:
        names = ", ".join(var for var, field_name in ENV_OVERRIDES.items() if field_name in env)
        source = f" (check {names})" if names else ""
        raise ConfigError(f"Invalid settings{source}: {exc}") from exc
