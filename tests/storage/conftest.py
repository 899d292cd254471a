# tests/storage/conftest.py
"""
Fixtures and fakes for storage tests.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

import pytest

from datastash.exceptions import RecordNotFoundError, StorageError
from datastash.models import TTL_FOREVER, Record, TTLSeconds
from datastash.storage.base import RecordStorage
from datastash.storage.file_store import FileRecordStorage
from datastash.storage.memory import MemoryRecordStorage
from datastash.storage.tiers.volatile import VolatileMemoryConfig


class FakeStorage(RecordStorage):
    """
    Dictionary-backed RecordStorage that records calls.

    Args:
        fail_put: Raise StorageError from every put.
        delay: Seconds each put sleeps, to widen race windows.
    """

    def __init__(self, fail_put: bool = False, delay: float = 0.0):
        self.data: Dict[str, Any] = {}
        self.ttls: Dict[str, TTLSeconds] = {}
        self.put_calls: List[Tuple[str, Any, TTLSeconds]] = []
        self.fail_put = fail_put
        self.delay = delay
        self.active = 0
        self.max_active: Dict[str, int] = {}

    async def get(self, uid: str) -> Record:
        if uid not in self.data:
            raise RecordNotFoundError(uid)
        ttl = self.ttls[uid]
        return Record(uid, self.data[uid], datetime.now(timezone.utc), TTL_FOREVER if ttl is None else ttl)

    async def put(self, uid: str, payload: Any, ttl: TTLSeconds = None) -> None:
        self.put_calls.append((uid, payload, ttl))
        if self.fail_put:
            raise StorageError("injected put failure")
        self.active += 1
        self.max_active[uid] = max(self.max_active.get(uid, 0), self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            self.data[uid] = payload
            self.ttls[uid] = ttl
        finally:
            self.active -= 1


@pytest.fixture
def file_store(data_dir, uid_generator) -> FileRecordStorage:
    return FileRecordStorage(data_dir, uid_generator)


@pytest.fixture
def memory_store() -> MemoryRecordStorage:
    return MemoryRecordStorage(config=VolatileMemoryConfig(default_ttl_seconds=3600))


@pytest.fixture
def make_fake():
    """Factory for FakeStorage instances."""
    return FakeStorage
