# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Archive Tests - Local backup archive with retention.
"""

from pathlib import Path

import aiosqlite
import pytest

from docbackup.archive import (
    compress_payload,
    decompress_payload,
    delete_backup,
    encode_payload,
    enforce_retention,
    format_backup_name,
    get_archive_stats,
    get_backup,
    get_backup_meta,
    init_archive_db,
    list_backups,
    save_backup,
)
from docbackup.exceptions import ArchiveError


def stamp(day: int) -> str:
    return f"2024-05-{day:02d}T12:00:00.000Z"


# ============================================================================
# Saving and loading
# ============================================================================

@pytest.mark.asyncio
async def test_save_backup_returns_metadata(archive_db_path: Path, make_backup):
    backup = make_backup({"users": [{"id": "u1", "data": {"name": "Ana"}}]}, created_at=stamp(1))

    async with aiosqlite.connect(archive_db_path) as db:
        meta = await save_backup(db, backup)

    assert meta["id"].startswith("backup_")
    assert meta["name"] == "01/05/2024 12:00"
    assert meta["createdAt"] == stamp(1)
    assert meta["sizeBytes"] == len(encode_payload(backup))
    assert meta["documents"] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("compress", [True, False])
async def test_get_backup_returns_payload(archive_db_path: Path, make_backup, compress):
    backup = make_backup({"obras": [{"id": "o1", "data": {"nome": "Edifício Sol"}}]})

    async with aiosqlite.connect(archive_db_path) as db:
        meta = await save_backup(db, backup, compress=compress)
        loaded = await get_backup(db, meta["id"])

    assert loaded == backup


@pytest.mark.asyncio
async def test_unknown_backup_id(archive_db_path: Path):
    async with aiosqlite.connect(archive_db_path) as db:
        assert await get_backup(db, "backup_missing") is None
        assert await get_backup_meta(db, "backup_missing") is None
        # Deleting an unknown id is a no-op
        await delete_backup(db, "backup_missing")


@pytest.mark.asyncio
async def test_delete_backup(archive_db_path: Path, make_backup):
    async with aiosqlite.connect(archive_db_path) as db:
        keep = await save_backup(db, make_backup({}, created_at=stamp(1)))
        drop = await save_backup(db, make_backup({}, created_at=stamp(2)))

        await delete_backup(db, drop["id"])

        assert [meta["id"] for meta in await list_backups(db)] == [keep["id"]]


@pytest.mark.asyncio
async def test_list_backups_newest_first(archive_db_path: Path, make_backup):
    async with aiosqlite.connect(archive_db_path) as db:
        for day in (3, 1, 2):
            await save_backup(db, make_backup({}, created_at=stamp(day)))

        listed = await list_backups(db)

    assert [meta["createdAt"] for meta in listed] == [stamp(3), stamp(2), stamp(1)]
    assert set(listed[0]) == {"id", "name", "createdAt", "sizeBytes", "documents"}


@pytest.mark.asyncio
async def test_missing_created_at_falls_back_to_now(archive_db_path: Path, make_backup):
    backup = make_backup({})
    del backup["createdAt"]

    async with aiosqlite.connect(archive_db_path) as db:
        meta = await save_backup(db, backup)

    assert meta["createdAt"].endswith("Z")
    assert meta["name"] != f"Backup {meta['createdAt']}"


@pytest.mark.asyncio
@pytest.mark.parametrize("documents", ["many", -1, [3]])
async def test_malformed_document_count_is_rejected(
    archive_db_path: Path, make_backup, documents
):
    backup = make_backup({})
    backup["stats"]["documents"] = documents

    async with aiosqlite.connect(archive_db_path) as db:
        with pytest.raises(ArchiveError):
            await save_backup(db, backup)
        assert await list_backups(db) == []


@pytest.mark.asyncio
async def test_non_object_payload_is_rejected(archive_db_path: Path):
    async with aiosqlite.connect(archive_db_path) as db:
        with pytest.raises(ArchiveError):
            await save_backup(db, ["not", "a", "backup"])


# ============================================================================
# Retention
# ============================================================================

@pytest.mark.asyncio
async def test_eleventh_backup_evicts_the_oldest(archive_db_path: Path, make_backup):
    async with aiosqlite.connect(archive_db_path) as db:
        saved = [
            await save_backup(db, make_backup({}, created_at=stamp(day)))
            for day in range(1, 12)
        ]

        listed = await list_backups(db)
        oldest = await get_backup(db, saved[0]["id"])

    assert len(listed) == 10
    assert saved[0]["id"] not in {meta["id"] for meta in listed}
    assert listed[0]["id"] == saved[-1]["id"]
    assert oldest is None


@pytest.mark.asyncio
async def test_retention_orders_by_created_at(archive_db_path: Path, make_backup):
    """An old payload saved last is the one evicted."""
    async with aiosqlite.connect(archive_db_path) as db:
        newer = await save_backup(db, make_backup({}, created_at=stamp(10)), max_stored=2)
        newest = await save_backup(db, make_backup({}, created_at=stamp(20)), max_stored=2)
        old = await save_backup(db, make_backup({}, created_at=stamp(1)), max_stored=2)

        ids = {meta["id"] for meta in await list_backups(db)}

    assert ids == {newer["id"], newest["id"]}
    assert old["id"] not in ids


@pytest.mark.asyncio
async def test_enforce_retention_returns_evicted_ids(archive_db_path: Path, make_backup):
    async with aiosqlite.connect(archive_db_path) as db:
        first = await save_backup(db, make_backup({}, created_at=stamp(1)))
        second = await save_backup(db, make_backup({}, created_at=stamp(2)))
        await save_backup(db, make_backup({}, created_at=stamp(3)))

        evicted = await enforce_retention(db, 1)

    assert set(evicted) == {first["id"], second["id"]}


# ============================================================================
# Helpers
# ============================================================================

def test_format_backup_name():
    assert format_backup_name("2024-12-31T23:59:00.000Z") == "31/12/2024 23:59"
    assert format_backup_name("sem data") == "Backup sem data"


@pytest.mark.asyncio
async def test_init_archive_db_is_idempotent(temp_dir: Path):
    db_path = temp_dir / "nested" / "archive.db"

    await init_archive_db(db_path)
    await init_archive_db(db_path)

    assert db_path.exists()


@pytest.mark.asyncio
async def test_archive_stats(archive_db_path: Path, make_backup):
    async with aiosqlite.connect(archive_db_path) as db:
        empty = await get_archive_stats(db)
        await save_backup(db, make_backup({}, created_at=stamp(1)))
        await save_backup(db, make_backup({}, created_at=stamp(2)))
        stats = await get_archive_stats(db)

    assert empty["backup_count"] == 0
    assert stats["backup_count"] == 2
    assert stats["oldest_backup"] == stamp(1)
    assert stats["newest_backup"] == stamp(2)
    assert stats["total_size_bytes"] > 0


@pytest.mark.asyncio
async def test_compression_round_trip():
    raw = encode_payload({"collections": {"obras": [{"id": "o1", "data": {"x": "y" * 500}}]}})

    compressed = await compress_payload(raw)

    assert len(compressed) < len(raw)
    assert await decompress_payload(compressed) == raw
