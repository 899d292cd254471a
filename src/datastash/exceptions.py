# src/datastash/exceptions.py
"""
Custom exceptions for the datastash service.

This module defines a hierarchy of exception classes so that each layer
(identifier validation, file store, memory tier, coordinator, API) can
raise a specific error kind and callers can handle them selectively.
Lower-level errors are chained with ``raise ... from`` at every layer
boundary, so the original cause is kept for diagnostics while the message
describes the failed operation.
"""

from typing import Optional


class DataStashError(Exception):
    """Base class for all datastash specific errors."""
    def __init__(self, message: str = "An unspecified error occurred in datastash."):
        super().__init__(message)


class ConfigError(DataStashError):
    """Raised for errors related to configuration loading or validation."""
    def __init__(self, message: str = "Configuration error."):
        super().__init__(message)


class StorageError(DataStashError):
    """Base class for errors related to storage operations."""
    def __init__(self, message: str = "Storage error."):
        super().__init__(message)


class InvalidIdentifierError(StorageError):
    """
    Raised when an identifier fails validation, or when its canonical form
    differs from the input or would resolve outside the store root.
    """
    def __init__(self, uid: Optional[str] = None, message: str = "Invalid identifier."):
        self.uid = uid
        super().__init__(f"{message} UID: {uid!r}")


class RecordNotFoundError(StorageError):
    """Raised when a record is absent from the tier it was read from."""
    def __init__(self, uid: Optional[str] = None, message: str = "Record not found."):
        self.uid = uid
        super().__init__(f"{message} UID: '{uid}'")


class CorruptRecordError(StorageError):
    """Raised when a persisted record exists but cannot be read or parsed."""
    def __init__(self, uid: Optional[str] = None, message: str = "Corrupt record."):
        self.uid = uid
        super().__init__(f"{message} UID: '{uid}'")


class DurabilityWriteError(StorageError):
    """
    Raised when the persistent write of a Forever-classified put fails.
    The fast tier is left untouched in that case.
    """
    def __init__(self, uid: Optional[str] = None, message: str = "Can't store data into the persistent storage."):
        self.uid = uid
        super().__init__(f"{message} UID: '{uid}'")


class CacheWriteError(StorageError):
    """
    Raised when the memory tier write fails, possibly after a successful
    persistent write. Disk and cache stay inconsistent until the next
    startup reconciliation.
    """
    def __init__(self, uid: Optional[str] = None, message: str = "Can't store data into the memory storage."):
        self.uid = uid
        super().__init__(f"{message} UID: '{uid}'")


class CacheCapacityError(StorageError):
    """Raised by the volatile tier when it holds ``max_items`` live entries."""
    def __init__(self, limit: int = 0, message: str = "Memory tier is full."):
        self.limit = limit
        super().__init__(f"{message} Limit: {limit} items")


class ReconciliationError(StorageError):
    """
    Raised when republishing a persisted record into the memory tier fails
    during startup. This is fatal: the service must not start serving.
    """
    def __init__(self, uid: Optional[str] = None, message: str = "Can't load persistent data into the memory cache."):
        self.uid = uid
        super().__init__(f"{message} UID: '{uid}'" if uid is not None else message)
