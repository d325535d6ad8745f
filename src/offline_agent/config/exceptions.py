"""Custom exceptions for configuration handling."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from offline_agent.exceptions import OfflineAgentError


class ConfigError(OfflineAgentError):
    """Base exception for all configuration-related errors."""


class ConfigValidationError(ConfigError):
    """Raised when the configuration fails validation."""

    def __init__(self, errors: Sequence[dict[str, Any]] | None = None) -> None:
        self.errors = list(errors or [])
        super().__init__(f"Configuration validation failed with {len(self.errors)} error(s).")


class ConfigFileError(ConfigError):
    """Raised when the configuration file exists but cannot be parsed."""

    def __init__(self, path: Path, original_exception: Exception) -> None:
        self.path = path
        self.original_exception = original_exception
        super().__init__(f"Could not parse {path}: {original_exception}")
