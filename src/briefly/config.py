"""Configuration management for Briefly."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from briefly.errors import ConfigError

logger = logging.getLogger(__name__)

BRIEFLY_HOME = Path(os.environ.get("BRIEFLY_HOME", Path.home() / "briefly"))
CONFIG_FILE = BRIEFLY_HOME / "config" / "briefly.conf"

# Keys that may be set in briefly.conf and overridden by an upper-case env var.
CONFIG_KEYS = (
    "todoist_api_token",
    "telegram_bot_token",
    "telegram_chat_id",
    "openai_api_key",
    "ical_urls",
    "environment",
    "morning_time",
    "afternoon_time",
    "evening_time",
    "openai_model",
    "fetch_timeout",
    "claude_workdir",
    "claude_timeout",
)


@dataclass
class Config:
    """Briefly configuration."""

    todoist_api_token: str = ""
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""
    openai_api_key: str = ""
    ical_urls: list[str] = field(default_factory=list)
    environment: str = "development"
    # Digest schedule, wall clock in America/Sao_Paulo
    morning_time: str = "07:00"
    afternoon_time: str = "15:30"
    evening_time: str = "20:00"
    openai_model: str = "gpt-4.1-mini"
    fetch_timeout: float = 15
    claude_workdir: str = ""
    claude_timeout: int = 600

    def require(self, name: str):
        """Return a configured value, or raise ConfigError if it is empty."""
        value = getattr(self, name, None)
        if not value:
            raise ConfigError(f"Required configuration {name.upper()} is missing")
        return value

    def is_development(self) -> bool:
        return self.environment.lower() == "development"


def parse_time(value: str) -> tuple[int, int]:
    """Parse "HH:MM" into (hour, minute)."""
    try:
        hour, minute = (int(part) for part in value.split(":"))
    except ValueError as e:
        raise ConfigError(f"Invalid time {value!r}, expected HH:MM") from e
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ConfigError(f"Invalid time {value!r}, expected HH:MM")
    return hour, minute


def _strip_value(value: str) -> str:
    value = value.strip()
    # Handle quoted values with inline comments: "value" # comment
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def read_config_file(path: Path) -> dict[str, str]:
    """Read KEY=value lines into a dict keyed by lower-case name."""
    values: dict[str, str] = {}
    if not path.exists():
        return values

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        values[key.strip().lower()] = _strip_value(value)
    return values


def _apply(config: Config, key: str, value: str) -> None:
    match key:
        case "ical_urls":
            config.ical_urls = [u.strip() for u in value.split(",") if u.strip()]
        case "fetch_timeout":
            try:
                config.fetch_timeout = float(value)
            except ValueError as e:
                raise ConfigError(f"FETCH_TIMEOUT must be a number, got {value!r}") from e
        case "claude_timeout":
            try:
                config.claude_timeout = int(value)
            except ValueError as e:
                raise ConfigError(f"CLAUDE_TIMEOUT must be an integer, got {value!r}") from e
        case "morning_time" | "afternoon_time" | "evening_time":
            parse_time(value)
            setattr(config, key, value)
        case _:
            setattr(config, key, value)


def load_config(path: Path | None = None, environ: Mapping[str, str] | None = None) -> Config:
    """
    Load configuration from briefly.conf, then apply environment overrides.

    Every key can be overridden by an environment variable of the same name
    in upper case (ICAL_URLS is comma separated).
    """
    path = path or CONFIG_FILE
    environ = os.environ if environ is None else environ

    values = read_config_file(path)
    for key in CONFIG_KEYS:
        env_value = environ.get(key.upper())
        if env_value:
            values[key] = env_value

    config = Config()
    for key, value in values.items():
        if key not in CONFIG_KEYS:
            logger.warning(f"Ignoring unknown configuration key: {key.upper()}")
            continue
        _apply(config, key, value)

    logger.debug(f"Loaded configuration from {path} (environment={config.environment})")
    return config
