"""Exceptions raised by the cache tier store."""

from __future__ import annotations

from offline_agent.exceptions import OfflineAgentError


class CacheError(OfflineAgentError):
    """Base exception for cache tier store errors."""


class CacheKeyNotFoundError(CacheError):
    """Raised when a key is not found in a tier."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Key not found in cache: '{key}'")


class CacheDeserializationError(CacheError):
    """Raised when a stored value cannot be turned back into a response snapshot."""

    def __init__(self, key: str, original_exception: Exception) -> None:
        self.key = key
        self.original_exception = original_exception
        super().__init__(f"Failed to deserialize cache entry '{key}': {original_exception}")


class CachePayloadTypeError(CacheError):
    """Raised when a stored payload has an unexpected type."""

    def __init__(self, key: str, payload_type: type) -> None:
        self.key = key
        self.payload_type = payload_type
        super().__init__(f"Unexpected payload type for key '{key}': {payload_type.__name__}")


class TierDeletionError(CacheError):
    """Raised when a tier directory cannot be removed."""

    def __init__(self, name: str, original_exception: Exception) -> None:
        self.name = name
        self.original_exception = original_exception
        super().__init__(f"Could not delete tier '{name}': {original_exception}")
