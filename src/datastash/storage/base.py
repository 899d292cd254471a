# src/datastash/storage/base.py
"""
Abstract Base Class for record storage backends.

The memory tier, the file tier and the tiered coordinator all expose the
same two operations, so the coordinator can hold any two of them without
knowing which concrete backend it talks to.
"""

import abc
from typing import Any

from ..models import Record, TTLSeconds


class RecordStorage(abc.ABC):
    """
    Abstract Base Class for UID-addressed record storage.

    Implementations decide what a TTL means for them: the memory tier
    honours it, the file tier ignores it.
    """

    @abc.abstractmethod
    async def get(self, uid: str) -> Record:
        """
        Retrieve a record by its UID.

        Args:
            uid: The canonical UID of the record.

        Returns:
            The stored Record.

        Raises:
            RecordNotFoundError: If the UID is not stored in this backend.
            StorageError: For any other backend failure.
        """
        pass

    @abc.abstractmethod
    async def put(self, uid: str, payload: Any, ttl: TTLSeconds = None) -> None:
        """
        Store ``payload`` under ``uid``.

        Args:
            uid: The canonical UID, already generated by the caller.
            payload: A JSON-representable value.
            ttl: None for the default expiry, 0 for never, else seconds.

        Raises:
            StorageError: If the write fails.
        """
        pass
