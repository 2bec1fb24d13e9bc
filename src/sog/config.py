"""sog configuration loading and validation.

Reads ``config.toml`` (default ``~/.config/sog/config.toml``, overridable via
``SOG_CONFIG``), resolves ``${VAR}`` references, and returns a validated
SogConfig dataclass. A missing file yields the defaults.
"""

from __future__ import annotations

import os
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from sog.ical.mapper import PRODUCT_ID

CONFIG_ENV_VAR = "SOG_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/sog/config.toml")

# Pattern matching ${VAR_NAME}; supports alphanumeric + underscore variable names.
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")
_VALID_LOG_FORMATS = ("text", "json")


class ConfigError(Exception):
    """Raised when sog configuration is malformed or invalid."""


@dataclass
class LoggingConfig:
    """Logging configuration from the [logging] section."""

    level: str = "WARNING"
    format: str = "text"  # "text" or "json"


@dataclass
class AccountConfig:
    """Default account from the [account] section."""

    email: str | None = None
    name: str | None = None


@dataclass
class SogConfig:
    account: AccountConfig = field(default_factory=AccountConfig)
    product_id: str = PRODUCT_ID
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    source: Path | None = None


def resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ``${VAR_NAME}`` references in config values.

    Raises
    ------
    ConfigError
        If a referenced environment variable is not set.
    """
    if isinstance(value, dict):
        return {k: resolve_env_vars(v) for k, v in value.items()}

    if isinstance(value, list):
        return [resolve_env_vars(item) for item in value]

    if isinstance(value, str):
        return _resolve_string(value)

    return value


def _resolve_string(s: str) -> str:
    missing: list[str] = []

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            missing.append(var_name)
            return match.group(0)
        return env_value

    result = _ENV_VAR_PATTERN.sub(_replace, s)

    if missing:
        vars_str = ", ".join(missing)
        raise ConfigError(
            f"Unresolved environment variable(s) in config value: {vars_str} (original: {s!r})"
        )

    return result


def _optional_string(section: dict, key: str, label: str) -> str | None:
    raw = section.get(key)
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ConfigError(f"{label} must be a string when set")
    return raw.strip() or None


def _section(data: dict, name: str) -> dict:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ConfigError(f"[{name}] must be a table")
    return section


def default_config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return DEFAULT_CONFIG_PATH.expanduser()


def load_config(path: Path | None = None) -> SogConfig:
    """Load and validate the sog configuration file.

    Parameters
    ----------
    path:
        Explicit config file. When omitted, ``default_config_path()`` is used
        and a missing file yields the defaults.

    Raises
    ------
    ConfigError
        If an explicit file is missing, the TOML is invalid, or a value is
        malformed.
    """
    explicit = path is not None
    toml_path = Path(path).expanduser() if path is not None else default_config_path()

    if not toml_path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {toml_path}")
        return SogConfig()

    try:
        data = tomllib.loads(toml_path.read_bytes().decode())
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {toml_path}: {exc}") from exc

    data = resolve_env_vars(data)

    # --- [account] ---
    account_section = _section(data, "account")
    account = AccountConfig(
        email=_optional_string(account_section, "email", "account.email"),
        name=_optional_string(account_section, "name", "account.name"),
    )
    if account.email is not None and "@" not in account.email:
        raise ConfigError(f"account.email must be an e-mail address, got {account.email!r}")

    # --- [calendar] ---
    calendar_section = _section(data, "calendar")
    product_id = _optional_string(calendar_section, "product_id", "calendar.product_id")

    # --- [logging] ---
    logging_section = _section(data, "logging")
    log_level = str(logging_section.get("level", "WARNING")).upper()
    log_format = str(logging_section.get("format", "text")).lower()
    if log_format not in _VALID_LOG_FORMATS:
        raise ConfigError(f"Invalid logging.format: {log_format!r}. Expected 'text' or 'json'.")

    return SogConfig(
        account=account,
        product_id=product_id or PRODUCT_ID,
        logging=LoggingConfig(level=log_level, format=log_format),
        source=toml_path,
    )
