# src/datastash/storage/tiers/volatile.py
"""
Volatile Memory Tier - In-memory storage with TTL.

This module provides the thread-safe key-value engine behind the memory
record cache. It supports:
- Per-item TTL, with a configurable default and a "never expires" marker
- An optional item-count limit
- Lazy expiry on access plus an explicit purge for background sweepers
- Statistics tracking

Unlike a general purpose cache there is no LRU eviction: items stored
with ``ttl_seconds=0`` back persisted records and must stay resident until
the process exits. When the item limit is hit the write is refused with
:class:`~datastash.exceptions.CacheCapacityError` instead.

Usage:
    tier = VolatileMemoryTier(default_ttl_seconds=86400)

    tier.set("Xmnw48xJKpolFYwLn7a0wetEdsTKym1M", {"Title": "t"})
    tier.set("Ab3...", payload, ttl_seconds=300)   # expires in 5 minutes
    tier.set("Cd4...", payload, ttl_seconds=0)     # never expires

    item = tier.get("Xmnw48xJKpolFYwLn7a0wetEdsTKym1M")
    if item is None:
        # Item expired or doesn't exist
        pass
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field

from ...exceptions import CacheCapacityError

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================


class VolatileMemoryConfig(BaseModel):
    """Configuration for volatile memory tier.

    Attributes:
        max_items: Maximum number of live items (0 = unlimited).
        default_ttl_seconds: TTL applied when a caller passes None
            (0 = no expiration).
        cleanup_interval_seconds: Minimum delay between lazy purges.
    """

    max_items: int = Field(default=0, ge=0, description="Maximum number of items (0=unlimited)")
    default_ttl_seconds: int = Field(
        default=86400, ge=0, description="Default TTL in seconds (0=no expiry)"
    )
    cleanup_interval_seconds: int = Field(
        default=60, ge=1, le=3600, description="Cleanup interval in seconds"
    )


# =============================================================================
# DATA MODELS
# =============================================================================


@dataclass
class VolatileItem:
    """An item stored in volatile memory.

    Attributes:
        key: Unique identifier for the item.
        value: The stored value.
        created_at: Unix timestamp when item was stored.
        expires_at: Unix timestamp when item expires (None = never).
    """

    key: str
    value: Any
    created_at: float
    expires_at: float | None = None

    def is_expired(self, now: float | None = None) -> bool:
        """Check if the item has a TTL and it has elapsed."""
        if self.expires_at is None:
            return False
        return (now if now is not None else time.time()) > self.expires_at

    def time_until_expiry(self) -> float | None:
        """Seconds until expiration; 0 if already expired, None if no TTL."""
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - time.time())


# =============================================================================
# VOLATILE MEMORY TIER
# =============================================================================


class VolatileMemoryTier:
    """In-memory storage with TTL support.

    A single RLock guards the dictionary; every operation holds it only for
    a dictionary lookup or update, so callers working on unrelated keys are
    never blocked for long.

    Attributes:
        max_items: Maximum number of live items (0 = unlimited).
        default_ttl_seconds: TTL for items stored with ``ttl_seconds=None``.
        cleanup_interval: Seconds between lazy cleanup runs.
    """

    def __init__(
        self,
        max_items: int = 0,
        default_ttl_seconds: int = 86400,
        cleanup_interval_seconds: int = 60,
        config: VolatileMemoryConfig | None = None,
    ) -> None:
        if config is not None:
            max_items = config.max_items
            default_ttl_seconds = config.default_ttl_seconds
            cleanup_interval_seconds = config.cleanup_interval_seconds

        self.max_items = max_items
        self.default_ttl_seconds = default_ttl_seconds
        self.cleanup_interval = cleanup_interval_seconds

        self._store: dict[str, VolatileItem] = {}
        self._lock = threading.RLock()
        self._last_cleanup: float = time.time()

        self._stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "expirations": 0,
            "rejected": 0,
        }

        logger.debug(
            f"VolatileMemoryTier initialized: max_items={max_items}, "
            f"default_ttl={default_ttl_seconds}s"
        )

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    def _maybe_cleanup(self) -> None:
        """Purge expired items if the cleanup interval has passed."""
        if time.time() - self._last_cleanup > self.cleanup_interval:
            self._cleanup_expired()

    def _cleanup_expired(self) -> int:
        now = time.time()
        expired_keys = [k for k, v in self._store.items() if v.is_expired(now)]
        for key in expired_keys:
            del self._store[key]
        self._stats["expirations"] += len(expired_keys)
        self._last_cleanup = now

        if expired_keys:
            logger.debug(f"Cleaned up {len(expired_keys)} expired items")

        return len(expired_keys)

    def _resolve_expiry(self, ttl_seconds: float | None, now: float) -> float | None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl < 0:
            raise ValueError(f"ttl_seconds must be >= 0, got {ttl}")
        # 0 means no expiry
        return now + ttl if ttl else None

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def get(self, key: str) -> VolatileItem | None:
        """Get a live item.

        Returns:
            The stored item, or None if not found or expired.
        """
        with self._lock:
            self._maybe_cleanup()
            item = self._store.get(key)

            if item is None:
                self._stats["misses"] += 1
                return None

            if item.is_expired():
                del self._store[key]
                self._stats["misses"] += 1
                self._stats["expirations"] += 1
                return None

            self._stats["hits"] += 1
            return item

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> VolatileItem:
        """Store an item, replacing any existing item under ``key``.

        Args:
            key: The key to store under.
            value: The value to store.
            ttl_seconds: None uses the default TTL, 0 means no expiry.

        Returns:
            The stored item.

        Raises:
            ValueError: If ``ttl_seconds`` is negative.
            CacheCapacityError: If the item limit is reached for a new key.
        """
        with self._lock:
            self._maybe_cleanup()
            now = time.time()
            expires_at = self._resolve_expiry(ttl_seconds, now)

            if self.max_items > 0 and key not in self._store and len(self._store) >= self.max_items:
                # Expired entries may still be occupying slots
                self._cleanup_expired()
                if len(self._store) >= self.max_items:
                    self._stats["rejected"] += 1
                    raise CacheCapacityError(self.max_items)

            item = VolatileItem(key=key, value=value, created_at=now, expires_at=expires_at)
            self._store[key] = item
            self._stats["sets"] += 1
            return item

    def purge_expired(self) -> int:
        """Remove all expired items now.

        Returns:
            Number of items removed.
        """
        with self._lock:
            return self._cleanup_expired()

    def stats(self) -> dict[str, Any]:
        """Get storage statistics.

        Returns:
            Dictionary with item_count, non_expiring_count, max_items,
            default_ttl_seconds, hit_rate and the raw operation counters.
        """
        with self._lock:
            total = self._stats["hits"] + self._stats["misses"]
            return {
                "item_count": len(self._store),
                "non_expiring_count": sum(1 for v in self._store.values() if v.expires_at is None),
                "max_items": self.max_items,
                "default_ttl_seconds": self.default_ttl_seconds,
                "hit_rate": self._stats["hits"] / total if total > 0 else 0.0,
                **self._stats.copy(),
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

