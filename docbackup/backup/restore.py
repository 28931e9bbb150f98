# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
docbackup Restore Engine - Replay a backup payload into a document store.

For each collection, in restore order, the engine:
1. Upserts the incoming documents in batches of at most config.batch_size
2. Optionally deletes live documents that are not in the payload
3. Optionally re-reads the collection and diffs it against the payload

Collections are processed one at a time and batches are awaited one after
another. A failure aborts the restore; collections not yet processed are
left untouched.
"""

from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, Dict, Iterator, List, Sequence

import structlog

from docbackup.backup.payload import (
    DatabaseBackup,
    DocumentEntry,
    expected_document_counts,
    skipped_collections,
    validate_backup,
)
from docbackup.codec import deserialize_value, normalize_tree, serialize_value, stable_stringify
from docbackup.config import DEFAULT_CONFIG, BackupConfig
from docbackup.errors import (
    explain_missing_collections,
    explain_partial_source,
    explain_permission_denied,
    format_id_list,
)
from docbackup.events import CacheInvalidated, EventBus, cache_events
from docbackup.exceptions import (
    DocBackupError,
    ProviderError,
    StrictRestoreError,
    VerificationError,
)
from docbackup.progress import ProgressCallback, ProgressPhase, report_progress
from docbackup.store.base import DocumentStore, is_permission_denied

logger = structlog.get_logger()


@dataclass
class RestoreWarning:
    """A condition recorded instead of raised (non-strict restores)."""

    collection: str  # "*" for payload-wide warnings
    message: str


@dataclass
class RestoreResult:
    """Result of a restore operation."""

    collections_processed: int
    documents_written: int
    documents_deleted: int
    collections_skipped: List[str] = field(default_factory=list)
    warnings: List[RestoreWarning] = field(default_factory=list)
    duration_seconds: float = 0.0


@dataclass
class VerificationReport:
    """Differences between a restored collection and the payload."""

    collection: str
    missing: List[str] = field(default_factory=list)
    mismatched: List[str] = field(default_factory=list)
    extra: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not (self.missing or self.mismatched or self.extra)

    def describe(self, max_details: int = 5) -> str:
        details = [
            f"{label} ({len(ids)}): {format_id_list(ids, max_details)}"
            for label, ids in (
                ("missing", self.missing),
                ("mismatched", self.mismatched),
                ("extra", self.extra),
            )
            if ids
        ]
        return f'Verification failed for "{self.collection}": {" | ".join(details)}'


@dataclass
class _CollectionOutcome:
    written: int = 0
    deleted: int = 0
    skipped: bool = False
    warning: str | None = None


def _chunks(items: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


async def commit_sets(
    store: DocumentStore,
    collection: str,
    entries: Sequence[DocumentEntry],
    batch_size: int,
    on_progress: ProgressCallback | None = None,
) -> int:
    """
    Upsert payload entries in batches of at most ``batch_size``.

    Returns:
        Number of documents written
    """
    written = 0
    total = len(entries)

    for chunk in _chunks(entries, batch_size):
        documents = [
            (entry["id"], deserialize_value(entry["data"], store.timestamp_from_datetime))
            for entry in chunk
        ]
        await store.set_batch(collection, documents)
        written += len(chunk)
        report_progress(on_progress, ProgressPhase.WRITING, collection, written, total)

    return written


async def commit_deletes(
    store: DocumentStore,
    collection: str,
    doc_ids: Sequence[str],
    batch_size: int,
    on_progress: ProgressCallback | None = None,
) -> int:
    """
    Delete documents by id in batches of at most ``batch_size``.

    Returns:
        Number of documents deleted
    """
    deleted = 0
    total = len(doc_ids)

    for chunk in _chunks(doc_ids, batch_size):
        await store.delete_batch(collection, list(chunk))
        deleted += len(chunk)
        report_progress(on_progress, ProgressPhase.DELETING, collection, deleted, total)

    return deleted


async def verify_restored_collection(
    store: DocumentStore,
    collection: str,
    expected: Sequence[DocumentEntry],
    replace_existing: bool,
) -> VerificationReport:
    """
    Re-read a collection and diff it against the payload entries.

    Live documents are serialized with the backup codec; expected entries
    go through the same decode/encode cycle a write applies, so both sides
    compare by stable_stringify.
    """
    live = await store.list_documents(collection)

    live_by_id: Dict[str, str] = {
        snapshot.id: stable_stringify(serialize_value(snapshot.data)) for snapshot in live
    }
    expected_by_id: Dict[str, str] = {
        entry["id"]: stable_stringify(normalize_tree(entry["data"], store.timestamp_from_datetime))
        for entry in expected
    }

    report = VerificationReport(collection=collection)
    for doc_id, encoded in expected_by_id.items():
        if doc_id not in live_by_id:
            report.missing.append(doc_id)
        elif live_by_id[doc_id] != encoded:
            report.mismatched.append(doc_id)

    if replace_existing:
        report.extra = [doc_id for doc_id in live_by_id if doc_id not in expected_by_id]

    return report


def _skip_or_raise(collection: str, message: str, strict: bool, **details: Any) -> _CollectionOutcome:
    if strict:
        raise StrictRestoreError(message, details={"collection": collection, **details})
    return _CollectionOutcome(skipped=True, warning=message)


async def _restore_collection(
    store: DocumentStore,
    backup: DatabaseBackup,
    collection: str,
    config: BackupConfig,
    *,
    replace_existing: bool,
    strict: bool,
    verify_after_restore: bool,
    skipped_at_backup: set,
    expected_counts: Dict[str, int] | None,
    on_progress: ProgressCallback | None,
) -> _CollectionOutcome:
    if collection not in backup["collections"]:
        return _skip_or_raise(
            collection,
            f"Required collection missing from the backup file: {collection}.",
            strict,
        )

    if collection in skipped_at_backup:
        return _skip_or_raise(
            collection,
            f'Collection "{collection}" was skipped when the backup was made '
            "and cannot be restored safely.",
            strict,
        )

    incoming = backup["collections"][collection]

    # An empty list where the stats recorded documents means a broken export
    expected_count = (expected_counts or {}).get(collection, 0)
    if not incoming and expected_count > 0:
        return _skip_or_raise(
            collection,
            f'Collection "{collection}" expected {expected_count} document(s) '
            "but the backup has none.",
            strict,
            expected_documents=expected_count,
        )

    outcome = _CollectionOutcome()
    outcome.written = await commit_sets(
        store, collection, incoming, config.batch_size, on_progress
    )

    if replace_existing:
        try:
            live = await store.list_documents(collection)
            incoming_ids = {entry["id"] for entry in incoming}
            stale_ids = [snapshot.id for snapshot in live if snapshot.id not in incoming_ids]
            outcome.deleted = await commit_deletes(
                store, collection, stale_ids, config.batch_size, on_progress
            )
        except Exception as e:
            if not is_permission_denied(e):
                raise
            skipped = _skip_or_raise(
                collection,
                explain_permission_denied(collection, "validate or remove"),
                strict,
            )
            skipped.written = outcome.written
            return skipped

    if verify_after_restore:
        try:
            report = await verify_restored_collection(
                store, collection, incoming, replace_existing
            )
        except Exception as e:
            if not is_permission_denied(e):
                raise
            skipped = _skip_or_raise(
                collection,
                explain_permission_denied(collection, "verify"),
                strict,
            )
            skipped.written = outcome.written
            skipped.deleted = outcome.deleted
            return skipped

        if not report.ok:
            logger.error(
                "restore_verification_failed",
                collection=collection,
                missing=len(report.missing),
                mismatched=len(report.mismatched),
                extra=len(report.extra),
            )
            raise VerificationError(
                report.describe(config.max_mismatch_details),
                details={
                    "collection": collection,
                    "missing": len(report.missing),
                    "mismatched": len(report.mismatched),
                    "extra": len(report.extra),
                },
            )

    return outcome


def _with_collection(collection: str, error: Exception) -> Exception:
    """Re-wrap an error so its message names the collection it came from."""
    if isinstance(error, (StrictRestoreError, VerificationError)):
        return error

    base_message = error.message if isinstance(error, DocBackupError) else str(error)
    message = f'Failed to restore collection "{collection}": {base_message}'
    details = getattr(error, "details", None)
    details = {**(details if isinstance(details, dict) else {}), "collection": collection}

    if isinstance(error, ProviderError):
        return ProviderError(message, details, code=error.code)
    if isinstance(error, DocBackupError):
        return type(error)(message, details)
    return ProviderError(message, details, code=getattr(error, "code", "unknown"))


async def restore_database_backup(
    store: DocumentStore,
    backup: Any,
    config: BackupConfig | None = None,
    *,
    replace_existing: bool = True,
    strict: bool = True,
    verify_after_restore: bool = True,
    on_progress: ProgressCallback | None = None,
    events: EventBus | None = None,
) -> RestoreResult:
    """
    Restore a backup payload into the document store.

    Args:
        store: Document store to write into
        backup: Backup payload (validated before anything is written)
        config: Backup configuration (collections, restore order, batch size)
        replace_existing: Delete live documents absent from the payload
        strict: Abort on any irregularity instead of skipping the collection
        verify_after_restore: Re-read and diff every restored collection
        on_progress: Called after every batched commit
        events: Bus that receives CacheInvalidated on success
            (default: the process-wide cache_events)

    Returns:
        RestoreResult with counts, skipped collections and warnings

    Raises:
        ValidationError: If the payload is malformed
        StrictRestoreError: On irregularities while strict
        VerificationError: If a restored collection does not match the payload
        ProviderError: On store failures, naming the collection
    """
    config = config or DEFAULT_CONFIG
    backup = validate_backup(backup)
    start_time = datetime.now(UTC)

    skipped_at_backup = set(skipped_collections(backup))
    missing = [name for name in config.collections if name not in backup["collections"]]
    warnings: List[RestoreWarning] = []

    logger.info(
        "restore_started",
        backup_created_at=backup["createdAt"],
        replace_existing=replace_existing,
        strict=strict,
        verify_after_restore=verify_after_restore,
    )

    if strict and skipped_at_backup:
        raise StrictRestoreError(
            explain_partial_source(sorted(skipped_at_backup)),
            details={"skipped_collections": sorted(skipped_at_backup)},
        )

    if missing:
        message = explain_missing_collections(missing)
        if strict:
            raise StrictRestoreError(message, details={"missing_collections": missing})
        warnings.append(RestoreWarning(collection="*", message=message))

    expected_counts = expected_document_counts(backup)
    documents_written = 0
    documents_deleted = 0
    collections_skipped: List[str] = []

    for collection in config.restore_order:
        try:
            outcome = await _restore_collection(
                store,
                backup,
                collection,
                config,
                replace_existing=replace_existing,
                strict=strict,
                verify_after_restore=verify_after_restore,
                skipped_at_backup=skipped_at_backup,
                expected_counts=expected_counts,
                on_progress=on_progress,
            )
        except Exception as e:
            logger.error("restore_collection_failed", collection=collection, error=str(e))
            wrapped = _with_collection(collection, e)
            if wrapped is e:
                raise
            raise wrapped from e

        documents_written += outcome.written
        documents_deleted += outcome.deleted

        if outcome.skipped:
            collections_skipped.append(collection)
            if outcome.warning:
                warnings.append(RestoreWarning(collection=collection, message=outcome.warning))
            logger.warning(
                "restore_collection_skipped",
                collection=collection,
                reason=outcome.warning,
            )
        else:
            logger.debug(
                "restore_collection_completed",
                collection=collection,
                written=outcome.written,
                deleted=outcome.deleted,
            )

    bus = cache_events if events is None else events
    bus.publish(CacheInvalidated(reason="restore", collections=config.restore_order))

    duration = (datetime.now(UTC) - start_time).total_seconds()

    logger.info(
        "restore_completed",
        documents_written=documents_written,
        documents_deleted=documents_deleted,
        collections_skipped=collections_skipped,
        duration=duration,
    )

    return RestoreResult(
        collections_processed=len(config.collections),
        documents_written=documents_written,
        documents_deleted=documents_deleted,
        collections_skipped=collections_skipped,
        warnings=warnings,
        duration_seconds=duration,
    )
