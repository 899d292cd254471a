# src/datastash/models.py
"""
Core data models for datastash.

A record is an opaque JSON payload addressed by a UID. Its TTL decides the
retention tier:

- ``None``: the fast tier's default expiry (memory only)
- ``0`` (:data:`TTL_FOREVER`): never expires, and is persisted to disk
- ``n > 0``: memory only, expires after ``n`` seconds
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Union

TTL_FOREVER = 0

TTLSeconds = Optional[Union[int, float]]


def is_forever(ttl: TTLSeconds) -> bool:
    """Return True if ``ttl`` marks a record as non-expiring and durable."""
    return ttl is not None and ttl == TTL_FOREVER


def utc_from_timestamp(ts: float) -> datetime:
    """Convert a Unix timestamp to a timezone-aware UTC datetime."""
    return datetime.fromtimestamp(ts, tz=timezone.utc)


@dataclass(frozen=True)
class Record:
    """A stored payload as returned by a storage tier.

    Attributes:
        uid: The canonical identifier the record is stored under.
        payload: The JSON-representable payload, never interpreted.
        created_at: When the record was written (file mtime for disk records).
        ttl: Remaining lifetime in seconds; 0 means the record does not expire.
    """

    uid: str
    payload: Any
    created_at: datetime
    ttl: float = TTL_FOREVER

    @property
    def is_forever(self) -> bool:
        return is_forever(self.ttl)
