# src/datastash/storage/file_store.py
"""
JSON file-based persistent record store.

Each record is stored as a separate file directly under the store root,
named after its canonical UID and containing the JSON payload exactly as
serialized (compact, UTF-8). The file's modification time is the record's
creation time. Files are never expired or deleted by this module.

UIDs come from request parameters, so every path goes through
:meth:`FileRecordStorage.resolve_path`, which refuses anything that could
name a file outside the root. File operations use aiofiles.
"""

import asyncio
import inspect
import json
import logging
import os
import stat
from pathlib import Path, PureWindowsPath
from typing import Any, Awaitable, Callable, Optional, Union

import aiofiles
import aiofiles.os as aios

from ..exceptions import (
    CorruptRecordError,
    InvalidIdentifierError,
    RecordNotFoundError,
    StorageError,
)
from ..models import TTL_FOREVER, Record, TTLSeconds, utc_from_timestamp
from ..uid import UIDValidator
from .base import RecordStorage

logger = logging.getLogger(__name__)

RecordVisitor = Callable[[Record], Union[None, Awaitable[None]]]

_SEPARATORS = {"/", "\\", os.sep} | ({os.altsep} if os.altsep else set())


class FileRecordStorage(RecordStorage):
    """
    Persists records as one JSON file per UID.

    Concurrent access to different UIDs is independent. Two writers racing
    on the same UID are not serialized here; the last one to truncate and
    write wins.

    Args:
        path: Root directory of the store.
        uid_validator: Validator that yields the canonical form of a UID.
        scan_concurrency: Maximum number of files read in parallel by scan().
    """

    def __init__(self, path: Union[str, Path], uid_validator: UIDValidator, scan_concurrency: int = 8):
        self._root = Path(os.path.expanduser(str(path))).resolve()
        self._uid_validator = uid_validator
        self._scan_concurrency = max(1, scan_concurrency)

    @property
    def root(self) -> Path:
        return self._root

    async def initialize(self) -> None:
        """Create the store root if it does not exist."""
        try:
            await aios.makedirs(self._root, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create data directory {self._root}: {e}")
            raise StorageError(f"Could not create the data directory: {e.strerror}") from e
        logger.info(f"File record storage initialized at: {self._root}")

    def resolve_path(self, uid: str) -> Path:
        """
        Map a UID to the absolute path of its file.

        The UID must validate, its canonical form must equal the input, it
        must be a single plain path component, and the resolved path
        (symlinks included) must sit directly inside the root.

        Raises:
            InvalidIdentifierError: If any of the checks fails.
        """
        try:
            canonical = self._uid_validator.validate(uid)
        except (InvalidIdentifierError, TypeError, ValueError) as e:
            raise InvalidIdentifierError(uid, "Wrong uid.") from e

        if canonical != uid:
            raise InvalidIdentifierError(uid, "Wrong uid: canonical form differs.")

        if (
            not canonical
            or canonical in (".", "..")
            or "\x00" in canonical
            or any(sep in canonical for sep in _SEPARATORS)
            or Path(canonical).is_absolute()
            or PureWindowsPath(canonical).drive
        ):
            raise InvalidIdentifierError(uid, "Wrong uid: not a plain file name.")

        try:
            path = (self._root / canonical).resolve()
        except (OSError, RuntimeError) as e:
            raise InvalidIdentifierError(uid, "Wrong path.") from e

        if path.parent != self._root or path.name != canonical:
            raise InvalidIdentifierError(uid, "Wrong path: escapes the data directory.")
        return path

    async def get(self, uid: str) -> Record:
        """
        Read a persisted record.

        Returns:
            The Record, with the file mtime as created_at and a Forever TTL.

        Raises:
            InvalidIdentifierError: If the UID is rejected by resolve_path().
            RecordNotFoundError: If no regular file exists for the UID.
            CorruptRecordError: If the file can't be read or isn't valid JSON.
        """
        file_path = self.resolve_path(uid)

        try:
            info = await aios.stat(file_path)
        except OSError as e:
            raise RecordNotFoundError(uid) from e
        if not stat.S_ISREG(info.st_mode):
            raise RecordNotFoundError(uid, "Record not found (not a regular file).")

        try:
            async with aiofiles.open(file_path, mode="r", encoding="utf-8") as f:
                content = await f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading record file {file_path}: {e}")
            raise CorruptRecordError(uid, "Can't read the file.") from e

        try:
            payload = json.loads(content)
        except (ValueError, RecursionError) as e:
            # RecursionError: nesting deeper than the decoder can follow
            raise CorruptRecordError(uid, f"Can't parse json from file: {e}") from e

        return Record(
            uid=uid,
            payload=payload,
            created_at=utc_from_timestamp(info.st_mtime),
            ttl=TTL_FOREVER,
        )

    async def put(self, uid: str, payload: Any, ttl: TTLSeconds = None) -> None:
        """
        Write ``payload`` to the UID's file, creating or truncating it.

        ``ttl`` is ignored: everything in this store is durable.

        Raises:
            InvalidIdentifierError: If the UID is rejected by resolve_path().
            StorageError: If the payload isn't JSON-serializable or the write fails.
        """
        file_path = self.resolve_path(uid)

        try:
            data = json.dumps(payload, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
        except (TypeError, ValueError, RecursionError) as e:
            raise StorageError(f"Wrong json data for '{uid}': {e}") from e

        try:
            async with aiofiles.open(file_path, mode="w", encoding="utf-8") as f:
                await f.write(data)
        except OSError as e:
            logger.error(f"Error writing record '{uid}' to file {file_path}: {e}")
            raise StorageError(f"Can't write the data to file for '{uid}': {e.strerror}") from e

        logger.debug(f"Record '{uid}' persisted to {file_path}")

    async def scan(self, visit: RecordVisitor) -> int:
        """
        Read every record under the root and pass it to ``visit``.

        Entries that are not readable records (directories, foreign names,
        corrupt JSON) are logged and skipped. Exceptions raised by ``visit``
        propagate unchanged and stop the scan.

        Args:
            visit: Called with each Record; may be a coroutine function.

        Returns:
            The number of records visited.

        Raises:
            StorageError: If the root directory itself can't be listed.
        """
        try:
            names = await aios.listdir(self._root)
        except OSError as e:
            logger.error(f"Can't list data directory {self._root}: {e}")
            raise StorageError(f"Can't read the data directory: {e.strerror}") from e

        semaphore = asyncio.Semaphore(self._scan_concurrency)

        async def load(name: str) -> Optional[Record]:
            async with semaphore:
                try:
                    return await self.get(name)
                except StorageError as e:
                    logger.warning(f"Skipping persisted entry {name!r}: {e}")
                    return None

        records = await asyncio.gather(*(load(name) for name in sorted(names)))

        visited = 0
        for record in records:
            if record is None:
                continue
            result = visit(record)
            if inspect.isawaitable(result):
                await result
            visited += 1
        return visited

    async def count(self) -> int:
        """Number of directory entries under the root that are valid record names."""
        try:
            names = await aios.listdir(self._root)
        except OSError as e:
            raise StorageError(f"Can't read the data directory: {e.strerror}") from e
        total = 0
        for name in names:
            try:
                self.resolve_path(name)
            except InvalidIdentifierError:
                continue
            total += 1
        return total
