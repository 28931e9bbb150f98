# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
docbackup Backup Manager - Snapshot a document store into a portable payload.

This module reads every configured collection, serializes its documents
with the codec, and assembles a versioned payload with statistics. It also
writes payloads to and reads them from backup files.
"""

from datetime import datetime, UTC
from pathlib import Path
from typing import Dict, List

import aiofiles
import structlog

from docbackup.archive.compressor import (
    compress_payload,
    decode_payload,
    decompress_payload,
    encode_payload,
    is_zstd_frame,
)
from docbackup.backup.payload import (
    DatabaseBackup,
    DocumentEntry,
    backup_file_name,
    validate_backup,
)
from docbackup.codec import serialize_value
from docbackup.config import DEFAULT_CONFIG, BackupConfig
from docbackup.errors import explain_partial_backup
from docbackup.exceptions import BackupError, PartialBackupError, ValidationError
from docbackup.progress import ProgressCallback, ProgressPhase, report_progress
from docbackup.store.base import DocumentStore
from docbackup.timestamps import format_iso

logger = structlog.get_logger()


async def create_database_backup(
    store: DocumentStore,
    config: BackupConfig | None = None,
    *,
    allow_partial: bool = False,
    on_progress: ProgressCallback | None = None,
) -> DatabaseBackup:
    """
    Read every configured collection into a backup payload.

    A collection whose read fails is recorded with no documents and listed
    in stats.skippedCollections; the remaining collections are still read.

    Args:
        store: Document store to snapshot
        config: Backup configuration (collections, version, source)
        allow_partial: Return a payload even if some collections were skipped
        on_progress: Called once per document read

    Returns:
        The backup payload

    Raises:
        PartialBackupError: If collections were skipped and allow_partial is False
    """
    config = config or DEFAULT_CONFIG

    logger.info(
        "backup_started",
        collections=len(config.collections),
        allow_partial=allow_partial,
    )

    collections: Dict[str, List[DocumentEntry]] = {}
    document_counts: Dict[str, int] = {}
    skipped: List[str] = []
    total_documents = 0

    for collection in config.collections:
        try:
            snapshots = await store.list_documents(collection)
        except Exception as e:
            logger.warning(
                "backup_collection_skipped",
                collection=collection,
                error=str(e),
            )
            skipped.append(collection)
            collections[collection] = []
            document_counts[collection] = 0
            continue

        total = len(snapshots)
        entries: List[DocumentEntry] = []
        for index, snapshot in enumerate(snapshots, start=1):
            report_progress(on_progress, ProgressPhase.READING, collection, index, total)
            entries.append(DocumentEntry(id=snapshot.id, data=serialize_value(snapshot.data)))

        collections[collection] = entries
        document_counts[collection] = len(entries)
        total_documents += len(entries)

        logger.debug("backup_collection_read", collection=collection, documents=total)

    if skipped and not allow_partial:
        raise PartialBackupError(
            explain_partial_backup(skipped),
            details={"skipped_collections": skipped},
        )

    backup = DatabaseBackup(
        version=config.backup_version,
        createdAt=format_iso(datetime.now(UTC)),
        source=config.source,
        collections=collections,
        stats={
            "collections": len(config.collections),
            "documents": total_documents,
            "skippedCollections": skipped,
            "collectionDocumentCounts": document_counts,
        },
    )

    logger.info(
        "backup_completed",
        documents=total_documents,
        skipped_collections=skipped,
    )

    return backup


async def write_backup_file(
    directory: Path,
    backup: DatabaseBackup,
    *,
    compress: bool = False,
) -> Path:
    """
    Write a backup payload to a file named after its createdAt.

    The file is written atomically (write to temp, then rename) to
    prevent partial files.

    Args:
        directory: Target directory
        backup: Payload to write
        compress: zstd-compress the JSON (adds a .zst suffix)

    Returns:
        Path to the written file
    """
    try:
        directory.mkdir(parents=True, exist_ok=True)

        data = encode_payload(backup)
        name = backup_file_name(backup["createdAt"])
        if compress:
            data = await compress_payload(data)
            name += ".zst"

        backup_path = directory / name
        temp_path = backup_path.with_name(backup_path.name + ".tmp")

        async with aiofiles.open(temp_path, "wb") as f:
            await f.write(data)

        # Rename to final path (atomic on most filesystems)
        temp_path.rename(backup_path)

        logger.info(
            "backup_file_written",
            backup_path=str(backup_path),
            size=len(data),
        )

        return backup_path

    except BackupError:
        raise
    except Exception as e:
        raise BackupError(
            f"Failed to write backup file: {e}",
            details={"directory": str(directory)},
        )


async def read_backup_file(backup_path: Path) -> DatabaseBackup:
    """
    Read and validate a backup payload file (plain or zstd-compressed JSON).

    Raises:
        BackupError: If the file cannot be read or decoded
        ValidationError: If the content is not a backup payload
    """
    try:
        async with aiofiles.open(backup_path, "rb") as f:
            data = await f.read()
    except FileNotFoundError:
        raise BackupError(
            f"Backup file not found: {backup_path}",
            details={"backup_path": str(backup_path)},
        )
    except Exception as e:
        raise BackupError(
            f"Failed to read backup file: {e}",
            details={"backup_path": str(backup_path)},
        )

    if is_zstd_frame(data):
        data = await decompress_payload(data)

    try:
        payload = decode_payload(data)
    except ValueError as e:
        raise ValidationError(
            f"Backup file is not valid JSON: {e}",
            details={"backup_path": str(backup_path)},
        )

    return validate_backup(payload)
