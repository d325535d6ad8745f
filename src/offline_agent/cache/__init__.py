"""Cache tier store.

Key Components:
- `TierStore`: directory of named, durable tiers with store-wide lookup.
- `CacheTier`: one opened tier mapping request identities to snapshots.
- `CacheBackend`: protocol for the key-value storage under a tier.
- `DiskCacheBackend`: diskcache-backed implementation of the protocol.
"""

from offline_agent.cache.backends import CacheBackend, DiskCacheBackend
from offline_agent.cache.store import CacheTier, TierStore, validate_tier_name

__all__ = ["CacheBackend", "CacheTier", "DiskCacheBackend", "TierStore", "validate_tier_name"]
