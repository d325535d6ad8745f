"""Durable, named cache tiers keyed by request identity.

Each tier is a separate ``diskcache.Cache`` directory under the store's base
directory, so a whole generation can be dropped by removing its directory.
Tiers are opened for a single logical operation and closed again; nothing in
the agent keeps a tier open across a suspension point.
"""

from __future__ import annotations

import logging
import re
import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from offline_agent.cache.backends import CacheBackend, DiskCacheBackend
from offline_agent.cache.exceptions import (
    CacheDeserializationError,
    CacheKeyNotFoundError,
    CachePayloadTypeError,
    TierDeletionError,
)
from offline_agent.messages import ResponseSnapshot

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

_TIER_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def validate_tier_name(name: str) -> str:
    """Reject tier names that would escape the store directory."""
    if not _TIER_NAME_RE.match(name):
        msg = f"Invalid tier name: {name!r}"
        raise ValueError(msg)
    return name


class CacheTier:
    """A single opened tier mapping request identities to response snapshots."""

    def __init__(self, name: str, backend: CacheBackend) -> None:
        self.name = name
        self.backend = backend

    def match(self, identity: str) -> ResponseSnapshot | None:
        """Return the stored snapshot for *identity*, or None if absent.

        Raises:
            CacheDeserializationError: If the stored data fails validation.
            CachePayloadTypeError: If the stored payload is not a dictionary.

        """
        try:
            data = self.backend.get(identity)
        except CacheKeyNotFoundError:
            return None

        if not isinstance(data, dict):
            logger.warning("Unexpected cache payload type in tier %s for %s; clearing entry", self.name, identity)
            self.backend.delete(identity)
            raise CachePayloadTypeError(key=identity, payload_type=type(data))

        try:
            return ResponseSnapshot.model_validate(data)
        except ValidationError as e:
            logger.warning("Corrupt cache entry in tier %s for %s; clearing entry", self.name, identity)
            self.backend.delete(identity)
            raise CacheDeserializationError(key=identity, original_exception=e) from e

    def put(self, identity: str, snapshot: ResponseSnapshot) -> None:
        """Store *snapshot* under *identity*, overwriting any previous entry."""
        self.backend.set(identity, snapshot.model_dump(), expire=None)

    def delete(self, identity: str) -> bool:
        return self.backend.delete(identity)

    def keys(self) -> list[str]:
        return list(self.backend.keys())

    def __len__(self) -> int:
        return len(self.backend)

    def close(self) -> None:
        self.backend.close()


class TierStore:
    """Directory-backed collection of named cache tiers."""

    def __init__(self, base_dir: Path, **backend_options: Any) -> None:
        self.base_dir = base_dir.expanduser().resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._backend_options = backend_options
        logger.debug("Initialized TierStore at %s", self.base_dir)

    def _tier_dir(self, name: str) -> Path:
        return self.base_dir / validate_tier_name(name)

    @contextmanager
    def open(self, name: str) -> Iterator[CacheTier]:
        """Open (creating if needed) the tier called *name* for one operation."""
        tier = CacheTier(name, DiskCacheBackend(self._tier_dir(name), **self._backend_options))
        try:
            yield tier
        finally:
            tier.close()

    def has_tier(self, name: str) -> bool:
        return self._tier_dir(name).is_dir()

    def list_tier_names(self) -> list[str]:
        """Return the tier directories, ignoring anything that is not a valid tier name."""
        return sorted(
            path.name for path in self.base_dir.iterdir() if path.is_dir() and _TIER_NAME_RE.match(path.name)
        )

    def delete_tier(self, name: str) -> bool:
        """Remove the tier called *name*.

        Returns:
            True if the tier existed and was removed, False if there was nothing to delete.

        Raises:
            TierDeletionError: If the tier directory could not be removed.

        """
        path = self._tier_dir(name)
        if not path.is_dir():
            return False
        try:
            shutil.rmtree(path)
        except OSError as e:
            raise TierDeletionError(name, e) from e
        logger.debug("Deleted tier %s", name)
        return True

    def match(self, identity: str) -> ResponseSnapshot | None:
        """Look *identity* up in every tier and return the first hit."""
        for name in self.list_tier_names():
            # A concurrent delete must not be resurrected by opening the tier.
            if not self.has_tier(name):
                continue
            with self.open(name) as tier:
                try:
                    snapshot = tier.match(identity)
                except (CacheDeserializationError, CachePayloadTypeError) as e:
                    logger.warning("Ignoring unreadable entry in tier %s: %s", name, e)
                    continue
            if snapshot is not None:
                return snapshot
        return None
