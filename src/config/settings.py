# src/config/settings.py — v3
"""Typed configuration loaded from vanish.toml via pydantic-settings.

The engine never parses TOML itself: callers build a Settings value with
load_settings() and pass it in explicitly.
"""

from __future__ import annotations

import contextvars
import logging
import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from vanish.config.themes import THEMES, apply_theme
from vanish.core.paths import expand_path, home_directory
from vanish.logging.handlers import parse_size

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_RELATIVE = Path(".config") / "vanish" / "vanish.toml"

# TOML file read by Settings(); set only for the duration of load_settings().
_config_file: contextvars.ContextVar[Path | None] = contextvars.ContextVar(
    "vanish_config_file", default=None
)

DEFAULT_PROTECTED_PATHS = [
    "/bin",
    "/boot",
    "/dev",
    "/etc",
    "/lib",
    "/lib64",
    "/proc",
    "/sbin",
    "/sys",
    "/usr",
    "/var",
]

DEFAULT_REQUIRE_CONFIRM = ["*.env", "*.key", "*.pem", "config.toml", "*.config"]


class ConfigurationError(Exception):
    """Raised when configuration cannot be read or is internally inconsistent."""


# === SECTIONS ===


class CacheSettings(BaseModel):
    directory: str = ".cache/vanish"
    days: int = Field(default=10, ge=0)


class LoggingSettings(BaseModel):
    enabled: bool = True
    directory: str = ".cache/vanish/logs"
    level: Literal["info", "debug", "error"] = "info"
    # Diagnostic (developer) log, separate from the audit trail.
    format: Literal["text", "json"] = "text"
    rotation: str = "10MB"
    retention: int = Field(default=5, ge=0)

    @field_validator("level", mode="before")
    @classmethod
    def _lower_level(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    @field_validator("rotation")
    @classmethod
    def _valid_rotation(cls, v: str) -> str:
        parse_size(v)
        return v


class ColorSettings(BaseModel):
    primary: str = "#3B82F6"
    secondary: str = "#6366F1"
    success: str = "#10B981"
    warning: str = "#F59E0B"
    error: str = "#EF4444"
    text: str = "#F9FAFB"
    muted: str = "#9CA3AF"
    border: str = "#374151"
    highlight: str = "#FBBF24"


class ProgressSettings(BaseModel):
    style: Literal["gradient", "solid", "rainbow"] = "gradient"
    show_emoji: bool = True
    animation: bool = True
    enabled: bool = True


class UISettings(BaseModel):
    theme: str = "default"
    colors: ColorSettings = Field(default_factory=ColorSettings)
    progress: ProgressSettings = Field(default_factory=ProgressSettings)
    padding_x: int = 2
    padding_y: int = 1
    show_details: bool = True
    compact: bool = False

    @model_validator(mode="before")
    @classmethod
    def _merge_theme(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return apply_theme(data)
        return data

    @field_validator("theme")
    @classmethod
    def _known_theme(cls, v: str) -> str:
        if v not in THEMES:
            raise ValueError(
                f"unknown theme {v!r}; choose one of {', '.join(sorted(THEMES))}"
            )
        return v


class BehaviorSettings(BaseModel):
    auto_confirm: bool = False
    verbose_output: bool = False
    show_file_count: bool = True
    confirm_on_large: bool = True
    large_size_limit: int = Field(default=100 * 1024 * 1024, gt=0)
    large_count_limit: int = Field(default=1000, gt=0)
    # Several restore patterns hitting one entry queue it once.
    dedupe_matches: bool = True


class SafetySettings(BaseModel):
    protected_paths: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PROTECTED_PATHS)
    )
    require_confirm: list[str] = Field(
        default_factory=lambda: list(DEFAULT_REQUIRE_CONFIRM)
    )
    backup_important: bool = False


# === ROOT ===


class Settings(BaseSettings):
    """Application settings, one nested model per TOML table."""

    model_config = SettingsConfigDict(
        env_prefix="VANISH_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    cache: CacheSettings = Field(default_factory=CacheSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    ui: UISettings = Field(default_factory=UISettings)
    behavior: BehaviorSettings = Field(default_factory=BehaviorSettings)
    safety: SafetySettings = Field(default_factory=SafetySettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Precedence: explicit overrides, then the file, then VANISH_* env vars.
        path = _config_file.get()
        if path is None:
            return (init_settings, env_settings)
        return (
            init_settings,
            TomlConfigSettingsSource(settings_cls, toml_file=path),
            env_settings,
        )

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        errors: list[str] = []

        if not self.cache.directory.strip():
            errors.append("cache.directory must not be empty")
        if not self.logging.directory.strip() and self.logging.enabled:
            errors.append("logging.directory must not be empty when logging is enabled")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def cache_dir(self) -> Path:
        return expand_path(self.cache.directory)

    @property
    def log_dir(self) -> Path:
        return expand_path(self.logging.directory)

    @property
    def protected_paths(self) -> list[Path]:
        return [expand_path(p) for p in self.safety.protected_paths]


def default_config_path() -> Path:
    """Return ~/.config/vanish/vanish.toml (relative if home is unknown)."""
    home = home_directory()
    if home is None:
        return DEFAULT_CONFIG_RELATIVE
    return home / DEFAULT_CONFIG_RELATIVE


def load_settings(config_path: Path | str | None = None, **overrides: Any) -> Settings:
    """Load settings from a TOML file with optional overrides.

    Args:
        config_path: TOML file to read. Defaults to ~/.config/vanish/vanish.toml.
            A missing file yields defaults.
        **overrides: Table-level overrides, e.g. ``cache={"days": 3}``.

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If the file is unreadable or values are invalid.
    """
    path = Path(config_path) if config_path is not None else default_config_path()
    if path.exists() and not path.is_file():
        raise ConfigurationError(f"error reading config file {path}: not a regular file")
    token = _config_file.set(path)
    try:
        settings = Settings(**overrides)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"error parsing config file {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(
            f"error reading config file {path}: {e.strerror or e}"
        ) from e
    except ValidationError as e:
        raise ConfigurationError(f"invalid configuration in {path}: {e}") from e
    finally:
        _config_file.reset(token)
    logger.debug("Loaded settings from %s", path)
    return settings


DEFAULT_CONFIG_TOML = """\
# Vanish Configuration File

[cache]
# Directory where deleted files are stored (relative to home directory)
directory = ".cache/vanish"
# Number of days to keep deleted files
days = 10

[logging]
# Enable the audit log
enabled = true
# Directory for log files (relative to home directory)
directory = ".cache/vanish/logs"
# Log level: "info", "debug", "error"
level = "info"

[ui]
# Theme: "default", "dark", "light", "cyberpunk", "minimal"
theme = "default"
padding_x = 2
padding_y = 1
# Show detailed file information in confirmation
show_details = true
# Use compact display mode (less spacing)
compact = false

[ui.progress]
style = "gradient"       # "gradient", "solid", "rainbow"
show_emoji = true
animation = true
enabled = true

[behavior]
auto_confirm = false     # Skip confirmation prompts (same as --noconfirm)
verbose_output = false
show_file_count = true
confirm_on_large = true  # Always confirm for large files/directories
large_size_limit = 104857600  # 100MB
large_count_limit = 1000
dedupe_matches = true    # Restore each cached item once even if several patterns match

[safety]
protected_paths = [      # Deleting these (or anything below them) needs confirmation
    "/bin", "/boot", "/dev", "/etc", "/lib", "/lib64", "/proc", "/sbin", "/sys", "/usr", "/var"
]
require_confirm = [      # File name patterns that always require confirmation
    "*.env", "*.key", "*.pem", "config.toml", "*.config"
]
backup_important = false # Keep an extra copy of protected items in the cache
"""


def ensure_default_config(path: Path | None = None) -> Path:
    """Write the commented default config file if none exists.

    Returns the config path. Failure to write is logged, not raised.
    """
    path = path or default_config_path()
    if path.exists():
        return path
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(DEFAULT_CONFIG_TOML, encoding="utf-8")
        logger.info("Created default config at %s", path)
    except OSError as e:
        logger.warning("Could not create default config %s: %s", path, e)
    return path
