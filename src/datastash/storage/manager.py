# src/datastash/storage/manager.py
"""
Storage Manager for datastash.

Builds the UID generator, the memory and file tiers and the tiered
coordinator from the application configuration, and runs startup
reconciliation.
"""

import logging
from typing import Any, Dict, Optional

from ..config.models import AppConfig
from ..exceptions import StorageError
from ..uid import UIDGenerator
from .coordinator import TieredRecordStorage
from .file_store import FileRecordStorage
from .memory import MemoryRecordStorage
from .reconcile import load_persistent_records
from .tiers.volatile import VolatileMemoryConfig

logger = logging.getLogger(__name__)


class StorageManager:
    """
    Owns the storage components of one service instance.

    Attributes:
        uid_generator: Generates UIDs for new records and validates file names.
        cache: The memory tier.
        persistent: The durable file tier.
        records: The coordinator used by the Data API.
    """

    def __init__(self, config: AppConfig):
        self._config = config
        self._initialized = False
        self._loaded_count = 0

        self.uid_generator = UIDGenerator.from_config(config.uid)
        self.cache = MemoryRecordStorage(
            config=VolatileMemoryConfig(
                max_items=config.cache.max_items,
                default_ttl_seconds=config.cache.data_ttl,
                cleanup_interval_seconds=config.cache.cleanup_interval_seconds,
            )
        )
        self.persistent = FileRecordStorage(
            config.data.path,
            self.uid_generator,
            scan_concurrency=config.data.scan_concurrency,
        )
        self.records = TieredRecordStorage(
            self.cache,
            self.persistent,
            default_ttl=config.cache.data_ttl,
            serialize_writes=config.storage.serialize_writes,
        )
        logger.info("StorageManager initialized.")

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def cleanup_interval(self) -> int:
        return self._config.cache.cleanup_interval_seconds

    async def initialize(self) -> int:
        """
        Create the data directory and load persisted records into memory.

        Returns:
            Number of persisted records loaded.

        Raises:
            StorageError: If the data directory can't be created.
            ReconciliationError: If loading persisted records fails.
        """
        await self.persistent.initialize()
        self._loaded_count = await load_persistent_records(self.persistent, self.cache)
        self._initialized = True
        return self._loaded_count

    async def health(self) -> Dict[str, Any]:
        """Storage status for the /health endpoint."""
        persisted: Optional[int]
        try:
            persisted = await self.persistent.count()
        except StorageError as e:
            logger.warning(f"Can't count persisted records: {e}")
            persisted = None
        return {
            "initialized": self._initialized,
            "loaded_at_startup": self._loaded_count,
            "cached_records": len(self.cache),
            "persisted_records": persisted,
            "cache": self.cache.stats(),
        }
