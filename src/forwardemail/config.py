"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for forwardemail:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.forwardemail/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Config file** -- a single YAML file holding the current profile name and
  every :class:`~forwardemail.models.Profile`, managed via
  :func:`load_config` and :func:`save_config`.
* **Precedence resolution** -- :func:`resolve_profile_name` and
  :func:`resolve_base_url` merge CLI flags, environment variables and the
  config file.
* **Durations** -- :func:`parse_duration` turns ``"30s"`` / ``"1m30s"`` into
  seconds.

File writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) with ``0o600`` permissions, because the config file may
hold an inline API key.
"""

from __future__ import annotations

import os
import platform
import re
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import SecretStr, ValidationError

from forwardemail.exceptions import ConfigError
from forwardemail.models import DEFAULT_BASE_URL, DEFAULT_PROFILE, Config, Profile

_APP_NAME = "forwardemail"
_CONFIG_FILENAME = "config.yaml"

ENV_PREFIX = "FORWARDEMAIL"
ENV_PROFILE = f"{ENV_PREFIX}_PROFILE"
ENV_BASE_URL = f"{ENV_PREFIX}_API_BASE_URL"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports the XDG Base Directory layout (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/forwardemail/`` (default
    ``~/.config/forwardemail/``). On macOS/Windows: ``~/.forwardemail/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs, encrypted key files), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/forwardemail/`` (default
    ``~/.local/share/forwardemail/``). On macOS/Windows: ``~/.forwardemail/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_path() -> Path:
    """Path to the YAML config file."""
    return get_config_dir() / _CONFIG_FILENAME


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: int = 0o600) -> None:
    """Write *data* to *path* atomically using a temp file + rename.

    The temporary file is created next to *path* and restricted to *mode*
    before any content is written, so a secret never sits in a
    world-readable file, even briefly.
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


# --- Config file ---


def default_config() -> Config:
    """Config used when no file exists: a single ``default`` profile."""
    return Config(current_profile=DEFAULT_PROFILE, profiles={DEFAULT_PROFILE: Profile()})


def load_config(path: Optional[Path] = None) -> Config:
    """Load the configuration file.

    Args:
        path: Explicit file location. Defaults to :func:`config_path`.

    Returns:
        The validated :class:`~forwardemail.models.Config`. If the file does
        not exist, :func:`default_config` is returned.

    Raises:
        ConfigError: If the file exists but contains invalid YAML or fails
            validation.
    """
    path = path or config_path()
    if not path.is_file():
        return default_config()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (yaml.YAMLError, OSError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config at {path}: expected a mapping at the top level")
    try:
        return Config.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def _dump_config(config: Config) -> dict[str, Any]:
    """Serialise *config*, writing inline secrets in clear text for the file."""
    data = config.model_dump(mode="python", exclude_none=True)
    for name, profile in config.profiles.items():
        entry = data["profiles"][name]
        if isinstance(profile.api_key, SecretStr) and profile.inline_secret():
            entry["api_key"] = profile.inline_secret()
        else:
            entry.pop("api_key", None)
    return data


def save_config(config: Config, path: Optional[Path] = None) -> None:
    """Persist the configuration atomically with ``0o600`` permissions."""
    path = path or config_path()
    text = yaml.safe_dump(_dump_config(config), default_flow_style=False, sort_keys=False)
    atomic_write(path, text)


# --- Precedence resolution ---


def resolve_profile_name(
    config: Config,
    cli_profile: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """Pick the active profile name.

    Precedence (high to low):
        1. CLI flag (``--profile``)
        2. ``FORWARDEMAIL_PROFILE``
        3. ``current_profile`` from the config file

    Raises:
        ConfigError: If none of the sources names a profile.
    """
    env = os.environ if environ is None else environ
    if cli_profile:
        return cli_profile
    env_profile = env.get(ENV_PROFILE, "")
    if env_profile:
        return env_profile
    if config.current_profile:
        return config.current_profile
    raise ConfigError(
        "no profile configured. Use 'forward-email profile create <name>' to create a profile "
        "and 'forward-email profile switch <name>' to set it as current"
    )


def resolve_base_url(
    config: Config,
    profile_name: str,
    cli_base_url: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """Pick the API base URL: CLI argument > ``FORWARDEMAIL_API_BASE_URL`` > profile > default."""
    env = os.environ if environ is None else environ
    if cli_base_url:
        return cli_base_url
    env_url = env.get(ENV_BASE_URL, "")
    if env_url:
        return env_url
    profile = config.profiles.get(profile_name)
    if profile is not None and profile.base_url:
        return profile.base_url
    return DEFAULT_BASE_URL


# --- Durations ---

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: str) -> float:
    """Parse a duration string into seconds.

    Accepts compound durations (``"1m30s"``, ``"500ms"``, ``"2h"``)
    and bare numbers, which are read as seconds.

    Raises:
        ConfigError: If *value* is not a valid duration.
    """
    text = value.strip()
    if not text:
        raise ConfigError("empty duration")
    try:
        return float(text)
    except ValueError:
        pass
    pos = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos != len(text):
        raise ConfigError(f"invalid duration: {value!r}")
    return total
