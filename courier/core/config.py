"""
Courier Configuration — loads and merges config from multiple sources.

Precedence (highest to lowest):
1. Explicit overrides (passed in code)
2. Environment variables
3. Project config (./courier.toml)
4. Defaults (hardcoded)

Environment variable mapping:
    GOOGLE_CHAT_SUBSCRIPTION       → chat.subscription
    GOOGLE_APPLICATION_CREDENTIALS → chat.credentials_path
    REACTION_USER_EMAIL            → chat.reaction_user_email
    ANTHROPIC_MODEL                → claude.model
    CLAUDE_TIMEOUT_MS              → claude.timeout_ms
    HEARTBEAT_SPACE                → heartbeat.space
    HEARTBEAT_INTERVAL_MINUTES     → heartbeat.interval_minutes (bad or < 1 → 30)
    HEARTBEAT_ACTIVE_HOURS         → heartbeat.active_start / active_end
    HEARTBEAT_TIMEZONE             → heartbeat.timezone
    COURIER_DATA_DIR               → paths.data_dir
"""

from __future__ import annotations

import os
import re
import tomllib
from pathlib import Path
from typing import Any

import pytz
from pydantic import BaseModel, Field, field_validator

from courier.core.errors import ConfigError

DEFAULT_HEARTBEAT_INTERVAL = 30  # minutes

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Config Sub-Models
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class ChatConfig(BaseModel):
    """Chat transport configuration."""

    subscription: str = ""
    credentials_path: str = ""
    reaction_user_email: str = ""
    max_message_length: int = 4096

    @property
    def reactions_enabled(self) -> bool:
        return bool(self.reaction_user_email)


class ClaudeConfig(BaseModel):
    """AI process configuration."""

    executable: str = "claude"
    model: str = "sonnet"
    timeout_ms: int = 10 * 60 * 1000
    soul_path: str = "SOUL.md"
    interactive_args: list[str] = Field(default_factory=lambda: ["--chrome"])

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


class HeartbeatConfig(BaseModel):
    """Periodic checklist review. Disabled when space is empty."""

    space: str = ""
    interval_minutes: int = DEFAULT_HEARTBEAT_INTERVAL
    active_start: int = 7
    active_end: int = 23
    timezone: str = "America/Denver"

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as e:
            raise ValueError(f"Unknown timezone: {value!r}") from e
        return value

    @field_validator("interval_minutes")
    @classmethod
    def _positive_interval(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Heartbeat interval must be at least 1 minute")
        return value

    @property
    def configured(self) -> bool:
        return bool(self.space)

    @property
    def interval_seconds(self) -> int:
        return self.interval_minutes * 60


class SchedulerConfig(BaseModel):
    """Scheduler configuration."""

    enabled: bool = True
    poll_interval: int = 60  # seconds


class PathsConfig(BaseModel):
    """Where persisted state lives."""

    data_dir: str = "data"
    transcripts_root: str = "~/.claude/projects"

    @property
    def root(self) -> Path:
        return Path(self.data_dir).expanduser()

    @property
    def sessions_file(self) -> Path:
        return self.root / "sessions.json"

    @property
    def schedules_file(self) -> Path:
        return self.root / "schedules.json"

    @property
    def checklist_file(self) -> Path:
        return self.root / "heartbeat.md"

    @property
    def telos_dir(self) -> Path:
        return self.root / "telos"

    @property
    def uploads_dir(self) -> Path:
        return self.root / "workspace" / "user-files"

    @property
    def log_dir(self) -> Path:
        return self.root / "logs"

    @property
    def transcripts_dir(self) -> Path:
        return Path(self.transcripts_root).expanduser()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Main Config
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class CourierConfig(BaseModel):
    """Root configuration for Courier."""

    chat: ChatConfig = Field(default_factory=ChatConfig)
    claude: ClaudeConfig = Field(default_factory=ClaudeConfig)
    heartbeat: HeartbeatConfig = Field(default_factory=HeartbeatConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)

    @staticmethod
    def load(
        overrides: dict[str, Any] | None = None,
        project_path: Path | None = None,
    ) -> CourierConfig:
        """
        Load configuration from all sources and merge.

        Precedence: overrides > env vars > project toml > defaults
        """
        merged: dict[str, Any] = {}

        # Layer 1: Project config (./courier.toml)
        project_config_path = project_path or Path.cwd() / "courier.toml"
        if project_config_path.exists():
            _deep_merge(merged, _load_toml(project_config_path))

        # Layer 2: Environment variables
        _deep_merge(merged, _load_from_env())

        # Layer 3: Explicit overrides
        if overrides:
            _deep_merge(merged, overrides)

        _substitute_env_vars(merged)

        try:
            return CourierConfig(**merged)
        except Exception as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    def require_runtime(self) -> None:
        """Raise ConfigError if a value needed to run the relay is missing."""
        if not self.chat.subscription:
            raise ConfigError("GOOGLE_CHAT_SUBSCRIPTION is required")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Internal Helpers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

_ENV_MAPPING = {
    "GOOGLE_CHAT_SUBSCRIPTION": ("chat", "subscription"),
    "GOOGLE_APPLICATION_CREDENTIALS": ("chat", "credentials_path"),
    "REACTION_USER_EMAIL": ("chat", "reaction_user_email"),
    "ANTHROPIC_MODEL": ("claude", "model"),
    "CLAUDE_TIMEOUT_MS": ("claude", "timeout_ms"),
    "HEARTBEAT_SPACE": ("heartbeat", "space"),
    "HEARTBEAT_TIMEZONE": ("heartbeat", "timezone"),
    "COURIER_DATA_DIR": ("paths", "data_dir"),
}


def _load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML file."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e


def _load_from_env() -> dict[str, Any]:
    """Load configuration from the process environment."""
    result: dict[str, Any] = {}

    for env_var, (section, key) in _ENV_MAPPING.items():
        value = os.environ.get(env_var)
        if value:
            result.setdefault(section, {})[key] = value

    interval = os.environ.get("HEARTBEAT_INTERVAL_MINUTES")
    if interval:
        minutes = _int_or(interval, DEFAULT_HEARTBEAT_INTERVAL)
        if minutes < 1:
            minutes = DEFAULT_HEARTBEAT_INTERVAL
        result.setdefault("heartbeat", {})["interval_minutes"] = minutes

    hours = os.environ.get("HEARTBEAT_ACTIVE_HOURS")
    if hours:
        start, end = parse_active_hours(hours)
        result.setdefault("heartbeat", {}).update(active_start=start, active_end=end)

    return result


def parse_active_hours(value: str) -> tuple[int, int]:
    """
    Parse "7-23" into (7, 23).

    An unparsable start falls back to 0 and an unparsable end to 23,
    so "x-y" opens the window for most of the day rather than failing.
    """
    parts = value.split("-")
    start = _int_or(parts[0], 0)
    end = _int_or(parts[1], 23) if len(parts) > 1 else 23
    return start, end


def _int_or(value: str, default: int) -> int:
    try:
        return int(value.strip()) or default
    except ValueError:
        return default


def _deep_merge(base: dict, override: dict) -> None:
    """Deep merge override into base (mutates base)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def _substitute_env_vars(data: dict) -> None:
    """Recursively substitute ${ENV_VAR} patterns in string values."""
    pattern = re.compile(r"\$\{([^}]+)\}")

    for key, value in data.items():
        if isinstance(value, dict):
            _substitute_env_vars(value)
        elif isinstance(value, str):
            for var_name in pattern.findall(value):
                value = value.replace(f"${{{var_name}}}", os.environ.get(var_name, ""))
            data[key] = value
