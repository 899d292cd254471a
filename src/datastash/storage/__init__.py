# src/datastash/storage/__init__.py
"""
Storage package for datastash.

- MemoryRecordStorage: fast tier, per-record expiry, serves all reads
- FileRecordStorage: durable tier, one JSON file per UID
- TieredRecordStorage: decides which tier(s) a write lands in
- load_persistent_records: startup replay of the durable tier into memory
"""

from .base import RecordStorage
from .coordinator import KeyedLocks, TieredRecordStorage
from .file_store import FileRecordStorage
from .manager import StorageManager
from .memory import MemoryRecordStorage
from .reconcile import load_persistent_records

__all__ = [
    "FileRecordStorage",
    "KeyedLocks",
    "MemoryRecordStorage",
    "RecordStorage",
    "StorageManager",
    "TieredRecordStorage",
    "load_persistent_records",
]
