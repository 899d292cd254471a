# tests/storage/test_file_store.py
"""
Tests for FileRecordStorage.

Covers read/write round trips, the on-disk format, traversal-safe path
resolution (including a property test over adversarial UIDs) and the
full-store scan used at startup.
"""

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from datastash.exceptions import (
    CorruptRecordError,
    InvalidIdentifierError,
    RecordNotFoundError,
    StorageError,
)
from datastash.storage.file_store import FileRecordStorage


class TrustingValidator:
    """Accepts any string unchanged, so only the store's own checks apply."""

    def validate(self, candidate: str) -> str:
        return candidate


ADVERSARIAL_AFFIXES = [
    "../",
    "..\\",
    "/",
    "\\",
    "/etc/",
    "C:\\",
    "C:",
    "./",
    "%2e%2e%2f",
    "..%2f",
    "\x00",
    " ",
    "\n",
    "..",
    ".",
    "~/",
]


# Nesting far beyond the JSON decoder's recursion limit
DEEPLY_NESTED = "[" * 200000 + "]" * 200000


# =============================================================================
# READ / WRITE
# =============================================================================


class TestReadWrite:

    @pytest.mark.asyncio
    async def test_put_then_get(self, file_store, uid_generator):
        uid = uid_generator.new()
        await file_store.put(uid, {"S": "test"})

        record = await file_store.get(uid)

        assert record.uid == uid
        assert record.payload == {"S": "test"}
        assert record.ttl == 0
        assert record.is_forever
        assert datetime.now(timezone.utc) - record.created_at < timedelta(minutes=1)

    @pytest.mark.asyncio
    async def test_file_contains_compact_json(self, file_store, uid_generator, data_dir):
        uid = uid_generator.new()
        await file_store.put(uid, {"Title": "t"})

        assert (data_dir / uid).read_text(encoding="utf-8") == '{"Title":"t"}'

    @pytest.mark.asyncio
    async def test_non_ascii_payload_round_trips(self, file_store, uid_generator):
        uid = uid_generator.new()
        payload = {"Title": "Заголовок", "list": [1, 2.5, None, True], "nested": {"a": {"b": []}}}
        await file_store.put(uid, payload)

        assert (await file_store.get(uid)).payload == payload

    @pytest.mark.asyncio
    async def test_ttl_is_ignored(self, file_store, uid_generator, data_dir):
        uid = uid_generator.new()
        await file_store.put(uid, 1, ttl=30)

        assert (data_dir / uid).exists()
        assert (await file_store.get(uid)).ttl == 0

    @pytest.mark.asyncio
    async def test_put_overwrites_existing_file(self, file_store, uid_generator, data_dir):
        uid = uid_generator.new()
        await file_store.put(uid, {"version": 1, "padding": "x" * 100})
        await file_store.put(uid, {"version": 2})

        assert (data_dir / uid).read_text(encoding="utf-8") == '{"version":2}'

    @pytest.mark.asyncio
    async def test_created_at_is_file_mtime(self, file_store, uid_generator, data_dir):
        uid = uid_generator.new()
        await file_store.put(uid, 1)
        mtime = datetime(2021, 3, 4, 5, 6, 7, tzinfo=timezone.utc).timestamp()
        os.utime(data_dir / uid, (mtime, mtime))

        record = await file_store.get(uid)

        assert record.created_at == datetime(2021, 3, 4, 5, 6, 7, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_get_missing_raises_not_found(self, file_store, uid_generator):
        with pytest.raises(RecordNotFoundError):
            await file_store.get(uid_generator.new())

    @pytest.mark.asyncio
    async def test_get_directory_raises_not_found(self, file_store, uid_generator, data_dir):
        uid = uid_generator.new()
        (data_dir / uid).mkdir()

        with pytest.raises(RecordNotFoundError):
            await file_store.get(uid)

    @pytest.mark.asyncio
    async def test_get_corrupt_file(self, file_store, uid_generator, data_dir):
        uid = uid_generator.new()
        (data_dir / uid).write_text("{not json", encoding="utf-8")

        with pytest.raises(CorruptRecordError) as exc_info:
            await file_store.get(uid)
        assert exc_info.value.uid == uid

    @pytest.mark.asyncio
    async def test_get_deeply_nested_file_is_corrupt(self, file_store, uid_generator, data_dir):
        uid = uid_generator.new()
        (data_dir / uid).write_text(DEEPLY_NESTED, encoding="utf-8")

        with pytest.raises(CorruptRecordError):
            await file_store.get(uid)

    @pytest.mark.asyncio
    async def test_put_unserializable_payload(self, file_store, uid_generator, data_dir):
        uid = uid_generator.new()

        with pytest.raises(StorageError):
            await file_store.put(uid, {"obj": object()})
        with pytest.raises(StorageError):
            await file_store.put(uid, float("nan"))
        assert not (data_dir / uid).exists()

    @pytest.mark.asyncio
    async def test_put_into_missing_directory_fails(self, tmp_path, uid_generator):
        store = FileRecordStorage(tmp_path / "absent", uid_generator)

        with pytest.raises(StorageError):
            await store.put(uid_generator.new(), 1)

    @pytest.mark.asyncio
    async def test_initialize_creates_directory(self, tmp_path, uid_generator):
        root = tmp_path / "nested" / "data"
        store = FileRecordStorage(root, uid_generator)

        await store.initialize()

        assert root.is_dir()
        assert store.root == root.resolve()


# =============================================================================
# PATH RESOLUTION
# =============================================================================


class TestResolvePath:

    def test_valid_uid_resolves_inside_root(self, file_store, uid_generator, data_dir):
        uid = uid_generator.new()

        path = file_store.resolve_path(uid)

        assert path == data_dir.resolve() / uid
        assert path.is_absolute()

    def test_rejects_uid_failing_validation(self, file_store):
        with pytest.raises(InvalidIdentifierError):
            file_store.resolve_path("short")

    @pytest.mark.parametrize("affix", ADVERSARIAL_AFFIXES)
    def test_rejects_valid_uid_wrapped_in_traversal(self, file_store, uid_generator, affix):
        uid = uid_generator.new()

        # The loose validator finds the UID inside these, but the canonical
        # form differs from the input
        with pytest.raises(InvalidIdentifierError):
            file_store.resolve_path(affix + uid)
        with pytest.raises(InvalidIdentifierError):
            file_store.resolve_path(uid + affix)

    @pytest.mark.parametrize(
        "name",
        ["", ".", "..", "../x", "..\\x", "/etc/passwd", "a/b", "a\\b", "C:x", "a\x00b"],
    )
    def test_store_rejects_unsafe_names_even_if_validator_accepts(self, data_dir, name):
        store = FileRecordStorage(data_dir, TrustingValidator())

        with pytest.raises(InvalidIdentifierError):
            store.resolve_path(name)

    def test_rejects_symlink_escaping_root(self, tmp_path, data_dir, uid_generator):
        outside = tmp_path / "outside.json"
        outside.write_text("{}", encoding="utf-8")
        uid = uid_generator.new()
        try:
            os.symlink(outside, data_dir / uid)
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported here")
        store = FileRecordStorage(data_dir, uid_generator)

        with pytest.raises(InvalidIdentifierError):
            store.resolve_path(uid)

    @settings(max_examples=300, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(
        prefix=st.one_of(st.sampled_from(ADVERSARIAL_AFFIXES), st.text(max_size=8)),
        suffix=st.one_of(st.sampled_from(ADVERSARIAL_AFFIXES), st.text(max_size=8)),
        core=st.one_of(st.just("Xmnw48xJKpolFYwLn7a0wetEdsTKym1M"), st.text(max_size=40)),
    )
    def test_never_resolves_outside_root(self, file_store, prefix, suffix, core):
        candidate = prefix + core + suffix
        root = file_store.root

        try:
            path = file_store.resolve_path(candidate)
        except InvalidIdentifierError:
            return

        assert path.parent == root
        assert path.name == candidate
        assert Path(os.path.commonpath([root, path])) == root

    @settings(max_examples=200, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(candidate=st.text(max_size=40))
    def test_trusting_validator_never_escapes_root(self, data_dir, candidate):
        store = FileRecordStorage(data_dir, TrustingValidator())

        try:
            path = store.resolve_path(candidate)
        except InvalidIdentifierError:
            return

        assert path.parent == store.root


# =============================================================================
# SCAN
# =============================================================================


class TestScan:

    @pytest.mark.asyncio
    async def test_scan_visits_valid_records_and_skips_corrupt(self, file_store, uid_generator, data_dir):
        valid = {}
        for i in range(5):
            uid = uid_generator.new()
            valid[uid] = {"n": i}
            await file_store.put(uid, valid[uid])

        (data_dir / uid_generator.new()).write_text("{broken", encoding="utf-8")
        (data_dir / uid_generator.new()).write_bytes(b"\xff\xfe\x00garbage")
        (data_dir / uid_generator.new()).mkdir()
        (data_dir / "README.txt").write_text('{"not": "a record"}', encoding="utf-8")

        seen = {}

        def visit(record):
            seen[record.uid] = record.payload

        visited = await file_store.scan(visit)

        assert visited == 5
        assert seen == valid

    @pytest.mark.asyncio
    async def test_scan_awaits_async_visitor(self, file_store, uid_generator):
        uids = [uid_generator.new() for _ in range(3)]
        for uid in uids:
            await file_store.put(uid, uid)

        seen = []

        async def visit(record):
            seen.append(record.uid)

        assert await file_store.scan(visit) == 3
        assert sorted(seen) == sorted(uids)

    @pytest.mark.asyncio
    async def test_scan_empty_store(self, file_store):
        assert await file_store.scan(lambda record: None) == 0

    @pytest.mark.asyncio
    async def test_scan_propagates_visitor_errors(self, file_store, uid_generator):
        await file_store.put(uid_generator.new(), 1)

        def visit(record):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await file_store.scan(visit)

    @pytest.mark.asyncio
    async def test_scan_missing_root_is_an_error(self, tmp_path, uid_generator):
        store = FileRecordStorage(tmp_path / "absent", uid_generator)

        with pytest.raises(StorageError):
            await store.scan(lambda record: None)

    @pytest.mark.asyncio
    async def test_scan_with_limited_concurrency(self, data_dir, uid_generator):
        store = FileRecordStorage(data_dir, uid_generator, scan_concurrency=1)
        for i in range(10):
            await store.put(uid_generator.new(), i)

        payloads = []
        assert await store.scan(lambda record: payloads.append(record.payload)) == 10
        assert sorted(payloads) == list(range(10))

    @pytest.mark.asyncio
    async def test_count(self, file_store, uid_generator, data_dir):
        await file_store.put(uid_generator.new(), 1)
        await file_store.put(uid_generator.new(), 2)
        (data_dir / "notes.txt").write_text("x", encoding="utf-8")

        assert await file_store.count() == 2

    @pytest.mark.asyncio
    async def test_scan_skips_deeply_nested_file(self, file_store, uid_generator, data_dir):
        valid = uid_generator.new()
        await file_store.put(valid, {"Title": "t"})
        (data_dir / uid_generator.new()).write_text(DEEPLY_NESTED, encoding="utf-8")

        seen = []
        visited = await file_store.scan(lambda record: seen.append(record.uid))

        assert visited == 1
        assert seen == [valid]
