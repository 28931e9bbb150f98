# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
docbackup SQLite Archive - Local store of backup payloads.

Each record keeps lightweight metadata (name, createdAt, size, document
count) next to the payload, so listing never decodes payloads. Saving a
backup enforces a retention cap: records beyond the newest N by createdAt
are evicted.
"""

from datetime import datetime, UTC
from pathlib import Path
from typing import List, TypedDict

import aiosqlite
import structlog
from ulid import ULID

from docbackup.archive.compressor import (
    compress_payload,
    decode_payload,
    decompress_payload,
    encode_payload,
)
from docbackup.backup.payload import DatabaseBackup
from docbackup.config import MAX_STORED_BACKUPS
from docbackup.exceptions import ArchiveError
from docbackup.timestamps import format_iso, parse_iso

logger = structlog.get_logger()


class StoredBackupMeta(TypedDict):
    """Metadata of an archived backup."""

    id: str
    name: str
    createdAt: str  # ISO 8601
    sizeBytes: int  # Size of the payload's JSON text
    documents: int


async def init_archive_db(db_path: Path) -> None:
    """
    Initialize the archive database schema.

    Creates tables if they don't exist. This is idempotent.

    Args:
        db_path: Path to the SQLite database file
    """
    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)

        async with aiosqlite.connect(db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS backups (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    size_bytes INTEGER NOT NULL,
                    documents INTEGER NOT NULL,
                    compressed INTEGER NOT NULL DEFAULT 1,
                    payload BLOB NOT NULL
                )
            """)

            await db.execute("""
                CREATE INDEX IF NOT EXISTS idx_backups_created_at
                ON backups(created_at)
            """)

            await db.commit()

        logger.info("archive_db_initialized", db_path=str(db_path))

    except Exception as e:
        raise ArchiveError(
            f"Failed to initialize archive database: {e}",
            details={"db_path": str(db_path)},
        )


def format_backup_name(created_at: str) -> str:
    """
    Human-readable name of a backup, e.g. "01/05/2024 12:00".
    """
    parsed = parse_iso(created_at)
    if parsed is None:
        return f"Backup {created_at}"
    return parsed.strftime("%d/%m/%Y %H:%M")


def _new_backup_id() -> str:
    return f"backup_{ULID()}"


def _document_count(backup: DatabaseBackup) -> int:
    stats = backup.get("stats") or {}
    documents = stats.get("documents") if isinstance(stats, dict) else None
    if documents is None:
        return 0
    if isinstance(documents, bool) or not isinstance(documents, (int, float)) or documents < 0:
        raise ArchiveError(
            f"Cannot archive backup: stats.documents is not a count ({documents!r})",
            details={"documents": documents},
        )
    return int(documents)


def _meta_from_row(row) -> StoredBackupMeta:
    return StoredBackupMeta(
        id=row[0],
        name=row[1],
        createdAt=row[2],
        sizeBytes=row[3],
        documents=row[4],
    )


async def save_backup(
    db: aiosqlite.Connection,
    backup: DatabaseBackup,
    max_stored: int = MAX_STORED_BACKUPS,
    compress: bool = True,
) -> StoredBackupMeta:
    """
    Archive a backup payload and enforce retention.

    Args:
        db: SQLite database connection
        backup: Payload to store
        max_stored: Number of records kept, newest by createdAt
        compress: Store the payload zstd-compressed

    Returns:
        Metadata of the stored record
    """
    if not isinstance(backup, dict):
        raise ArchiveError("Cannot archive backup: payload is not an object")

    created_at = backup.get("createdAt") or format_iso(datetime.now(UTC))
    documents = _document_count(backup)
    raw = encode_payload(backup)
    stored = await compress_payload(raw) if compress else raw

    meta = StoredBackupMeta(
        id=_new_backup_id(),
        name=format_backup_name(created_at),
        createdAt=created_at,
        sizeBytes=len(raw),
        documents=documents,
    )

    try:
        await db.execute(
            """
            INSERT INTO backups (id, name, created_at, size_bytes, documents, compressed, payload)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                meta["id"],
                meta["name"],
                meta["createdAt"],
                meta["sizeBytes"],
                meta["documents"],
                1 if compress else 0,
                stored,
            ),
        )
        await db.commit()
    except aiosqlite.Error as e:
        raise ArchiveError(
            f"Failed to save backup: {e}",
            details={"created_at": created_at},
        )

    logger.info(
        "archive_backup_saved",
        backup_id=meta["id"],
        size_bytes=meta["sizeBytes"],
        stored_bytes=len(stored),
        documents=meta["documents"],
    )

    await enforce_retention(db, max_stored)

    return meta


async def enforce_retention(db: aiosqlite.Connection, max_stored: int) -> List[str]:
    """
    Delete every record beyond the newest ``max_stored`` by createdAt.

    Returns:
        Ids of the evicted records
    """
    async with db.execute(
        """
        SELECT id FROM backups
        ORDER BY created_at DESC, rowid DESC
        LIMIT -1 OFFSET ?
        """,
        (max_stored,),
    ) as cursor:
        overflow = [row[0] async for row in cursor]

    if not overflow:
        return []

    await db.executemany("DELETE FROM backups WHERE id = ?", [(i,) for i in overflow])
    await db.commit()

    logger.info("archive_retention_evicted", evicted=overflow, max_stored=max_stored)

    return overflow


async def list_backups(db: aiosqlite.Connection) -> List[StoredBackupMeta]:
    """
    List archived backups, newest first, without loading payloads.
    """
    async with db.execute(
        """
        SELECT id, name, created_at, size_bytes, documents
        FROM backups
        ORDER BY created_at DESC, rowid DESC
        """
    ) as cursor:
        return [_meta_from_row(row) async for row in cursor]


async def get_backup_meta(db: aiosqlite.Connection, backup_id: str) -> StoredBackupMeta | None:
    async with db.execute(
        "SELECT id, name, created_at, size_bytes, documents FROM backups WHERE id = ?",
        (backup_id,),
    ) as cursor:
        row = await cursor.fetchone()
        return _meta_from_row(row) if row else None


async def get_backup(db: aiosqlite.Connection, backup_id: str) -> DatabaseBackup | None:
    """
    Load an archived payload.

    Returns:
        The payload or None if no record has this id
    """
    async with db.execute(
        "SELECT compressed, payload FROM backups WHERE id = ?",
        (backup_id,),
    ) as cursor:
        row = await cursor.fetchone()

    if not row:
        return None

    data = bytes(row[1])
    if row[0]:
        data = await decompress_payload(data)

    try:
        return decode_payload(data)
    except ValueError as e:
        raise ArchiveError(
            f"Archived backup is corrupt: {e}",
            details={"backup_id": backup_id},
        )


async def delete_backup(db: aiosqlite.Connection, backup_id: str) -> None:
    """
    Delete an archived backup. Deleting an unknown id is a no-op.
    """
    await db.execute("DELETE FROM backups WHERE id = ?", (backup_id,))
    await db.commit()

    logger.info("archive_backup_deleted", backup_id=backup_id)


async def get_archive_stats(db: aiosqlite.Connection) -> dict:
    """
    Get archive statistics.
    """
    async with db.execute(
        "SELECT COUNT(*), SUM(size_bytes), SUM(LENGTH(payload)), MIN(created_at), MAX(created_at) "
        "FROM backups"
    ) as cursor:
        row = await cursor.fetchone()

    return {
        "backup_count": row[0] if row else 0,
        "total_size_bytes": (row[1] or 0) if row else 0,
        "stored_bytes": (row[2] or 0) if row else 0,
        "oldest_backup": row[3] if row else None,
        "newest_backup": row[4] if row else None,
    }
