# src/datastash/storage/memory.py
"""
Memory record cache.

Adapts :class:`~datastash.storage.tiers.volatile.VolatileMemoryTier` to the
:class:`~datastash.storage.base.RecordStorage` interface. This is the only
tier reads are served from.
"""

import logging
from typing import Any, Dict, Optional

from ..exceptions import CacheCapacityError, CacheWriteError, RecordNotFoundError
from ..models import TTL_FOREVER, Record, TTLSeconds, utc_from_timestamp
from .base import RecordStorage
from .tiers.volatile import VolatileMemoryConfig, VolatileMemoryTier

logger = logging.getLogger(__name__)

# Smallest remaining lifetime reported for an expiring record
MIN_REMAINING_TTL = 0.001


class MemoryRecordStorage(RecordStorage):
    """
    Stores records in process memory with per-record expiry.

    Payloads are kept as the objects passed in; the API hands over freshly
    decoded JSON, so nothing else holds a reference to them.
    """

    def __init__(self, tier: Optional[VolatileMemoryTier] = None, config: Optional[VolatileMemoryConfig] = None):
        self._tier = tier if tier is not None else VolatileMemoryTier(config=config or VolatileMemoryConfig())

    @property
    def tier(self) -> VolatileMemoryTier:
        return self._tier

    async def get(self, uid: str) -> Record:
        item = self._tier.get(uid)
        if item is None:
            raise RecordNotFoundError(uid)
        if item.expires_at is None:
            ttl = TTL_FOREVER
        else:
            # Never let an about-to-expire record read as non-expiring
            ttl = max(item.time_until_expiry() or 0.0, MIN_REMAINING_TTL)
        return Record(
            uid=uid,
            payload=item.value,
            created_at=utc_from_timestamp(item.created_at),
            ttl=ttl,
        )

    async def put(self, uid: str, payload: Any, ttl: TTLSeconds = None) -> None:
        try:
            self._tier.set(uid, payload, ttl_seconds=ttl)
        except (CacheCapacityError, ValueError, OverflowError) as e:
            logger.error(f"Can't store '{uid}' in the memory tier: {e}")
            raise CacheWriteError(uid, f"Can't store data into the memory storage: {e}") from e
        logger.debug(f"Record '{uid}' cached (ttl={ttl!r})")

    def purge_expired(self) -> int:
        return self._tier.purge_expired()

    def stats(self) -> Dict[str, Any]:
        return self._tier.stats()

    def __len__(self) -> int:
        return len(self._tier)
