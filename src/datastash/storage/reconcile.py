# src/datastash/storage/reconcile.py
"""
Startup reconciliation.

Replays every record of the durable tier into the memory tier with a
Forever TTL, so reads never have to touch disk. Must finish before the
Data API accepts requests.

The two failure policies differ on purpose: an unreadable file is skipped
by the scan, but a record that can't be cached aborts startup.
"""

import logging

from ..exceptions import ReconciliationError, StorageError
from ..logging_config import log_display
from ..models import TTL_FOREVER, Record
from .base import RecordStorage
from .file_store import FileRecordStorage

logger = logging.getLogger(__name__)


async def load_persistent_records(persistent: FileRecordStorage, cache: RecordStorage) -> int:
    """
    Publish every persisted record into ``cache`` as non-expiring.

    Args:
        persistent: The durable store to scan.
        cache: The memory tier to populate.

    Returns:
        The number of records loaded.

    Raises:
        ReconciliationError: If a cache write fails, or the store can't be scanned.
    """

    async def publish(record: Record) -> None:
        try:
            await cache.put(record.uid, record.payload, TTL_FOREVER)
        except StorageError as e:
            raise ReconciliationError(
                record.uid, f"Something wrong with loading persistent data into the memory cache: {e}"
            ) from e

    try:
        loaded = await persistent.scan(publish)
    except ReconciliationError:
        raise
    except StorageError as e:
        raise ReconciliationError(message=f"Can't initialize the data persistent storage: {e}") from e

    log_display(logger, logging.INFO, "%d persistent data records have been loaded into the memory cache", loaded)
    return loaded
