# src/datastash/storage/tiers/__init__.py
"""
Storage tier engines.

- **VolatileMemoryTier**: thread-safe in-memory key-value store with
  per-item TTL, used by the memory record cache.
"""

from .volatile import (
    VolatileItem,
    VolatileMemoryConfig,
    VolatileMemoryTier,
)

__all__ = [
    "VolatileItem",
    "VolatileMemoryConfig",
    "VolatileMemoryTier",
]
