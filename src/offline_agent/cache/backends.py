"""Low-level cache backend protocols and implementations."""

from __future__ import annotations

import contextlib
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, Protocol

import diskcache

from offline_agent.cache.exceptions import CacheKeyNotFoundError

if TYPE_CHECKING:
    from pathlib import Path


class CacheBackend(Protocol):
    """Abstract protocol for cache backends."""

    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any, expire: float | None = None) -> None: ...

    def delete(self, key: str) -> bool: ...

    def keys(self) -> Iterator[str]: ...

    def close(self) -> None: ...

    def __contains__(self, key: str) -> bool: ...

    def __len__(self) -> int: ...


class DiskCacheBackend:
    """Adapter for diskcache.Cache to match CacheBackend protocol."""

    def __init__(self, directory: Path, **kwargs: Any) -> None:
        self.directory = directory
        self._cache = diskcache.Cache(str(directory), **kwargs)

    def get(self, key: str) -> Any:
        try:
            return self._cache[key]
        except KeyError as e:
            raise CacheKeyNotFoundError(key) from e

    def set(self, key: str, value: Any, expire: float | None = None) -> None:
        self._cache.set(key, value, expire=expire)

    def delete(self, key: str) -> bool:
        with contextlib.suppress(KeyError):
            del self._cache[key]
            return True
        return False

    def keys(self) -> Iterator[str]:
        yield from self._cache.iterkeys()

    def close(self) -> None:
        self._cache.close()

    def __contains__(self, key: str) -> bool:
        return key in self._cache

    def __len__(self) -> int:
        return len(self._cache)
