"""Agent configuration.

Configuration is an explicit value handed to each component at construction,
so several agent configurations can live side by side in one process.

Priority (highest to lowest):
1. Environment variables (OFFLINE_AGENT_SECTION__KEY)
2. Config file (.offline-agent.toml)
3. Defaults
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from offline_agent.config.exceptions import ConfigFileError, ConfigValidationError

CONFIG_FILENAME = ".offline-agent.toml"

DEFAULT_STATIC_ASSETS: tuple[str, ...] = (
    "/",
    "/index.html",
    "/manifest.json",
    "/assets/css/main.css",
    "/assets/js/main.js",
    "/assets/images/favicon.svg",
    "/assets/images/icon-192.png",
    "/assets/images/icon-512.png",
)

DEFAULT_DYNAMIC_PREFIXES: tuple[str, ...] = (
    "/pages/",
    "/assets/images/",
    "/assets/audio/",
    "/assets/video/",
)


def _deep_merge(destination: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Merge source into destination, with source values overwriting."""
    for key, value in source.items():
        if isinstance(value, Mapping) and key in destination and isinstance(destination[key], Mapping):
            destination[key] = _deep_merge(dict(destination[key]), dict(value))
        else:
            destination[key] = value
    return destination


def _require_absolute_paths(paths: tuple[str, ...]) -> tuple[str, ...]:
    for path in paths:
        if not path.startswith("/"):
            msg = f"Path must be absolute (start with '/'): {path!r}"
            raise ValueError(msg)
    return paths


class CacheGenerations(BaseModel):
    """Identifiers of the current static and dynamic cache generations."""

    static_version: str = Field(default="v1.0.0", description="Version tag of the static tier")
    dynamic_version: str = Field(default="v1.0.0", description="Version tag of the dynamic tier")
    static_prefix: str = Field(default="static", description="Logical name of the static tier")
    dynamic_prefix: str = Field(default="dynamic", description="Logical name of the dynamic tier")

    @property
    def static(self) -> str:
        return f"{self.static_prefix}-{self.static_version}"

    @property
    def dynamic(self) -> str:
        return f"{self.dynamic_prefix}-{self.dynamic_version}"

    @property
    def current(self) -> frozenset[str]:
        return frozenset({self.static, self.dynamic})

    def is_current(self, name: str) -> bool:
        return name in self.current


class NotificationAction(BaseModel):
    action: str
    title: str
    icon: str


class NotificationSettings(BaseModel):
    """Fixed parts of every notification shown for a push payload."""

    icon: str = Field(default="/assets/images/icon-192.png", description="Notification icon")
    badge: str = Field(default="/assets/images/badge-72.png", description="Notification badge")
    vibrate: list[int] = Field(default_factory=lambda: [200, 100, 200], description="Vibration pattern")
    explore_url: str = Field(default="/#demos", description="Page opened by the 'explore' action")
    root_url: str = Field(default="/", description="Page opened by a plain click")
    actions: list[NotificationAction] = Field(
        default_factory=lambda: [
            NotificationAction(action="explore", title="Explore", icon="/assets/images/action-explore.png"),
            NotificationAction(action="dismiss", title="Dismiss", icon="/assets/images/action-dismiss.png"),
        ]
    )


class AgentSettings(BaseSettings):
    """Root configuration for the offline agent.

    Supports environment variable overrides with the pattern:
    OFFLINE_AGENT_SECTION__KEY (e.g., OFFLINE_AGENT_GENERATIONS__STATIC_VERSION)
    """

    origin: str = Field(default="http://localhost:8000", description="Origin the agent serves")
    release: str = Field(default="advanced-html-v1.0.0", description="Release label reported to pages")
    generations: CacheGenerations = Field(default_factory=CacheGenerations)
    static_assets: tuple[str, ...] = Field(default=DEFAULT_STATIC_ASSETS, description="Install manifest")
    dynamic_prefixes: tuple[str, ...] = Field(
        default=DEFAULT_DYNAMIC_PREFIXES, description="Path prefixes cached on demand"
    )
    offline_document: str = Field(default="/offline.html", description="Pre-cached offline page")
    cache_dir: Path = Field(default=Path(".offline-agent/caches"), description="Tier store directory")
    fetch_timeout: float | None = Field(default=10.0, description="Network timeout in seconds, None to disable")
    fetch_retries: int = Field(default=1, ge=1, description="Network attempts per request")
    skip_waiting_on_install: bool = Field(default=False, description="Activate right after install")
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)

    model_config = SettingsConfigDict(
        extra="ignore",
        env_prefix="OFFLINE_AGENT_",
        env_nested_delimiter="__",
    )

    @field_validator("origin")
    @classmethod
    def _validate_origin(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            msg = f"Origin must be an http(s) URL: {value!r}"
            raise ValueError(msg)
        return value.rstrip("/")

    @field_validator("static_assets", "dynamic_prefixes")
    @classmethod
    def _validate_paths(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return _require_absolute_paths(value)

    @field_validator("offline_document")
    @classmethod
    def _validate_offline_document(cls, value: str) -> str:
        return _require_absolute_paths((value,))[0]

    def resolve_cache_dir(self, root: Path) -> Path:
        return self.cache_dir if self.cache_dir.is_absolute() else root / self.cache_dir


def load_settings(root: Path | None = None) -> AgentSettings:
    """Load configuration from .offline-agent.toml and environment variables.

    Raises:
        ConfigFileError: If the TOML file cannot be parsed.
        ConfigValidationError: If the merged configuration is invalid.

    """
    root_path = root if root is not None else Path.cwd()
    config_file = root_path / CONFIG_FILENAME

    file_settings: dict[str, Any] = {}
    if config_file.is_file():
        try:
            with config_file.open("rb") as f:
                file_settings = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigFileError(config_file, e) from e

    try:
        env_settings = AgentSettings().model_dump(exclude_unset=True)
        merged = _deep_merge(file_settings, env_settings)
        settings = AgentSettings.model_validate(merged)
    except ValidationError as e:
        raise ConfigValidationError(e.errors()) from e

    return settings.model_copy(update={"cache_dir": settings.resolve_cache_dir(root_path)})
