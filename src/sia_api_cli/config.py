"""Configuration and credential loading for the Sia API CLI."""

from __future__ import annotations

import os
import sys
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

from .errors import ConfigError, PasswordLoadError


CONFIG_ENV_PREFIX = "SIA_API_CLI_"
PASSWORD_ENV = "SIA_API_PASSWORD"
DATA_DIR_ENV = "SIA_DATA_DIR"
PASSWORD_FILENAME = "apipassword"

DEFAULT_API_ADDRESS = "localhost:9980"
DEFAULT_USER_AGENT = "Sia-Agent"


def default_sia_dir(platform: Optional[str] = None) -> Path:
    """Return the default siad data directory for the running platform.

    Linux:   $HOME/.sia
    MacOS:   $HOME/Library/Application Support/Sia
    Windows: %LOCALAPPDATA%\\Sia
    """

    platform = platform or sys.platform
    if platform.startswith("win"):
        return Path(os.environ.get("LOCALAPPDATA", "")) / "Sia"
    if platform == "darwin":
        return Path(os.environ.get("HOME", "")) / "Library" / "Application Support" / "Sia"
    return Path(os.environ.get("HOME", "")) / ".sia"


@dataclass(frozen=True)
class Config:
    """Process-wide settings resolved before any request is built."""

    api_address: str = DEFAULT_API_ADDRESS
    user_agent: str = DEFAULT_USER_AGENT
    sia_dir: Optional[Path] = None
    timeout: Optional[float] = None
    log_level: str = "WARNING"
    log_format: str = "plain"

    def __post_init__(self) -> None:
        _validate_config(self)

    @property
    def password_path(self) -> Path:
        return (self.sia_dir or default_sia_dir()) / PASSWORD_FILENAME

    def logging_dict(self) -> Dict[str, Any]:
        """Return a sanitized mapping suitable for structured logging."""

        return {
            "api_address": self.api_address,
            "user_agent": self.user_agent,
            "sia_dir": str(self.sia_dir) if self.sia_dir else None,
            "timeout": self.timeout,
            "log_level": self.log_level,
            "log_format": self.log_format,
        }

    @classmethod
    def from_sources(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Load configuration from defaults, file and env (in that order)."""

        environ = os.environ if environ is None else environ
        config_path = environ.get(f"{CONFIG_ENV_PREFIX}CONFIG")
        file_config = _load_file_config(Path(config_path).expanduser() if config_path else None)
        env_config = _load_env_config(environ)

        config = cls()
        config = _apply_mapping(config, file_config)
        config = _apply_mapping(config, env_config)
        return config


def _validate_config(config: Config) -> None:
    if not config.api_address:
        raise ValueError("api_address must not be empty.")
    if config.timeout is not None and config.timeout <= 0:
        raise ValueError(f"timeout must be positive; got {config.timeout}.")
    allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if config.log_level.upper() not in allowed:
        raise ValueError(f"log_level must be one of {sorted(allowed)}; got {config.log_level}.")
    if config.log_format not in {"plain", "json"}:
        raise ValueError(f"log_format must be 'plain' or 'json'; got {config.log_format}.")


_FILE_KEYS = {
    "addr": "api_address",
    "api_address": "api_address",
    "user_agent": "user_agent",
    "useragent": "user_agent",
    "sia_dir": "sia_dir",
    "timeout": "timeout",
    "log_level": "log_level",
    "log_format": "log_format",
}


def _load_file_config(path: Optional[Path]) -> Dict[str, Any]:
    if path is None:
        return {}
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with path.open("rb") as f:
            parsed = tomllib.load(f)
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Invalid config file {path}: {exc}") from exc
    mapping: Dict[str, Any] = {}
    for key, value in parsed.items():
        field = _FILE_KEYS.get(key.replace("-", "_").lower())
        if field is None:
            raise ConfigError(f"Unknown config key '{key}' in {path}")
        mapping[field] = value
    return mapping


def _load_env_config(environ: Mapping[str, str]) -> Dict[str, Any]:
    mapping: Dict[str, Any] = {}
    for suffix, field in (
        ("ADDR", "api_address"),
        ("USER_AGENT", "user_agent"),
        ("TIMEOUT", "timeout"),
        ("LOG_LEVEL", "log_level"),
        ("LOG_FORMAT", "log_format"),
    ):
        env_key = f"{CONFIG_ENV_PREFIX}{suffix}"
        if env_key in environ:
            mapping[field] = environ[env_key]
    if DATA_DIR_ENV in environ:
        mapping["sia_dir"] = environ[DATA_DIR_ENV]
    return mapping


def _apply_mapping(config: Config, overrides: Mapping[str, Any]) -> Config:
    data: MutableMapping[str, Any] = {}
    for key, value in overrides.items():
        if value is None:
            continue
        if key == "sia_dir":
            data[key] = value if isinstance(value, Path) else Path(str(value)).expanduser()
        elif key == "timeout":
            try:
                data[key] = float(value)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"timeout must be a number; got {value!r}") from exc
        elif key == "log_level":
            data[key] = str(value).upper()
        elif key == "log_format":
            data[key] = str(value).lower()
        else:
            data[key] = str(value)
    try:
        return replace(config, **data)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def load_api_password(config: Config, environ: Optional[Mapping[str, str]] = None) -> str:
    """Return the default API password.

    ``SIA_API_PASSWORD`` wins when set and non-empty; otherwise the trimmed
    contents of the ``apipassword`` file in the Sia data directory are used.
    """

    environ = os.environ if environ is None else environ
    password = environ.get(PASSWORD_ENV, "")
    if password:
        return password
    path = config.password_path
    try:
        return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as exc:
        raise PasswordLoadError(f"unable to load API password from {path}: {exc}") from exc
