# src/datastash/__init__.py
"""
datastash - JSON dataset storage behind short opaque UIDs.

Records live in a fast, expiring memory tier; records posted with a zero
TTL are additionally written to a file-per-UID JSON store and reloaded
into memory at startup.
"""

__version__ = "1.0.0"

from .exceptions import (
    CacheCapacityError,
    CacheWriteError,
    ConfigError,
    CorruptRecordError,
    DataStashError,
    DurabilityWriteError,
    InvalidIdentifierError,
    ReconciliationError,
    RecordNotFoundError,
    StorageError,
)
from .models import TTL_FOREVER, Record, is_forever
from .uid import UIDGenerator

__all__ = [
    "__version__",
    "CacheCapacityError",
    "CacheWriteError",
    "ConfigError",
    "CorruptRecordError",
    "DataStashError",
    "DurabilityWriteError",
    "InvalidIdentifierError",
    "ReconciliationError",
    "Record",
    "RecordNotFoundError",
    "StorageError",
    "TTL_FOREVER",
    "UIDGenerator",
    "is_forever",
]
