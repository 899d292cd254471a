# src/datastash/storage/coordinator.py
"""
Tiered record storage.

Combines a fast, expiring memory tier with a durable file tier:

- ``put`` with a Forever TTL (0) writes the durable tier first, then the
  memory tier. Any other TTL writes the memory tier only.
- ``get`` reads the memory tier only. The durable tier exists for crash
  recovery and is replayed into memory at startup (see reconcile.py).
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from ..exceptions import CacheWriteError, DurabilityWriteError, StorageError
from ..models import Record, TTLSeconds, is_forever
from .base import RecordStorage

logger = logging.getLogger(__name__)


class KeyedLocks:
    """
    A registry of asyncio locks keyed by UID.

    Locks are created on first use and dropped as soon as nobody holds or
    waits for them, so the registry only grows with the number of UIDs
    being written concurrently.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class TieredRecordStorage(RecordStorage):
    """
    Single entry point for record reads and writes.

    Args:
        cache: The memory tier. All reads are served from it.
        persistent: The durable tier, written only for Forever puts.
        default_ttl: TTL in seconds applied when a put carries no TTL.
        serialize_writes: Serialize concurrent puts for the same UID. UIDs
            are expected to be write-once, so this only matters for callers
            that reuse them.
    """

    def __init__(
        self,
        cache: RecordStorage,
        persistent: RecordStorage,
        default_ttl: int,
        serialize_writes: bool = True,
    ):
        if default_ttl < 0:
            raise ValueError(f"default_ttl must be >= 0, got {default_ttl}")
        self._cache = cache
        self._persistent = persistent
        self._default_ttl = default_ttl
        self._write_locks: Optional[KeyedLocks] = KeyedLocks() if serialize_writes else None

    @property
    def default_ttl(self) -> int:
        return self._default_ttl

    async def get(self, uid: str) -> Record:
        """
        Read a record from the memory tier.

        Raises:
            RecordNotFoundError: If the record is absent or expired.
        """
        return await self._cache.get(uid)

    async def put(self, uid: str, payload: Any, ttl: TTLSeconds = None) -> None:
        """
        Store a record in the tier(s) its TTL calls for.

        Args:
            uid: Caller-generated UID.
            payload: JSON-representable payload.
            ttl: None for the default TTL, 0 for durable, n > 0 for n seconds.

        Raises:
            ValueError: If ``ttl`` is negative.
            DurabilityWriteError: If the durable write failed; nothing was cached.
            CacheWriteError: If the memory write failed. For a Forever put the
                record is already on disk and will reappear after a restart.
        """
        if ttl is not None and ttl < 0:
            raise ValueError(f"ttl must be >= 0, got {ttl}")

        if self._write_locks is None:
            await self._put(uid, payload, ttl)
            return
        async with self._write_locks.hold(uid):
            await self._put(uid, payload, ttl)

    async def _put(self, uid: str, payload: Any, ttl: TTLSeconds) -> None:
        durable = is_forever(ttl)
        if durable:
            try:
                await self._persistent.put(uid, payload, None)
            except StorageError as e:
                logger.error(f"Durable write failed for '{uid}': {e}")
                raise DurabilityWriteError(uid, f"Can't store data into the persistent storage: {e}") from e

        resolved_ttl = self._default_ttl if ttl is None else ttl
        try:
            await self._cache.put(uid, payload, resolved_ttl)
        except StorageError as e:
            if durable:
                logger.error(f"Record '{uid}' persisted but not cached; it stays unreadable until restart: {e}")
            raise CacheWriteError(uid, f"Can't store data into the memory storage: {e}") from e

        logger.debug(f"Record '{uid}' stored (durable={durable}, ttl={resolved_ttl})")
