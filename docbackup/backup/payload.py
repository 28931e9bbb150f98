# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
docbackup Payload - Shape of a backup payload and its validation.

Payload keys are camelCase so files stay interchangeable with the
browser application that produces and consumes them.
"""

import re
from collections.abc import Mapping
from typing import Any, Dict, List, TypedDict

from docbackup.exceptions import ValidationError
from docbackup.timestamps import parse_iso


class DocumentEntry(TypedDict):
    """One backed-up document."""

    id: str
    data: Any  # Portable value tree


class _BackupStatsBase(TypedDict):
    collections: int
    documents: int
    skippedCollections: List[str]


class BackupStats(_BackupStatsBase, total=False):
    """Statistics of a backup run."""

    collectionDocumentCounts: Dict[str, int]


class DatabaseBackup(TypedDict):
    """A complete backup payload."""

    version: int
    createdAt: str  # ISO 8601
    source: str
    collections: Dict[str, List[DocumentEntry]]
    stats: BackupStats


def _entry_problem(entry: Any) -> str | None:
    if not isinstance(entry, Mapping):
        return "entry is not an object"
    if not isinstance(entry.get("id"), str):
        return "entry id is not a string"
    if "data" not in entry:
        return "entry has no data"
    return None


def find_payload_problem(payload: Any) -> str | None:
    """
    Describe the first shape problem of a payload, or None when it is valid.
    """
    if not isinstance(payload, Mapping):
        return "payload is not an object"

    version = payload.get("version")
    if isinstance(version, bool) or not isinstance(version, (int, float)):
        return "version is not a number"

    if not isinstance(payload.get("createdAt"), str):
        return "createdAt is not a string"

    collections = payload.get("collections")
    if not isinstance(collections, Mapping):
        return "collections is not an object"

    for name, entries in collections.items():
        if not isinstance(entries, list):
            return f"collection {name!r} is not a list"
        for index, entry in enumerate(entries):
            problem = _entry_problem(entry)
            if problem:
                return f"collection {name!r}[{index}]: {problem}"

    return None


def is_database_backup(payload: Any) -> bool:
    """True when the payload has the expected backup shape."""
    return find_payload_problem(payload) is None


def validate_backup(payload: Any) -> DatabaseBackup:
    """
    Return the payload if it has the expected shape.

    Raises:
        ValidationError: If the payload is malformed
    """
    problem = find_payload_problem(payload)
    if problem:
        raise ValidationError(
            f"Invalid backup payload: {problem}",
            details={"problem": problem},
        )
    return payload


def skipped_collections(backup: Any) -> List[str]:
    """Collections the backup could not read, as recorded in its stats."""
    stats = backup.get("stats") if isinstance(backup, Mapping) else None
    skipped = stats.get("skippedCollections") if isinstance(stats, Mapping) else None
    if not isinstance(skipped, list):
        return []
    return [name for name in skipped if isinstance(name, str)]


def expected_document_counts(backup: Any) -> Dict[str, int] | None:
    """Per-collection counts recorded at backup time, if the payload has them."""
    stats = backup.get("stats") if isinstance(backup, Mapping) else None
    counts = stats.get("collectionDocumentCounts") if isinstance(stats, Mapping) else None
    if not isinstance(counts, Mapping):
        return None
    return {
        name: count
        for name, count in counts.items()
        if isinstance(count, int) and not isinstance(count, bool)
    }


def backup_file_name(created_at: str) -> str:
    """
    Derive a filesystem-safe file name from a backup's createdAt.

    Example: backup-sass-construtora-2024-05-01T12-00-00.json
    """
    parsed = parse_iso(created_at)
    if parsed is None:
        stamp = re.sub(r"[:.]", "-", created_at)
        stamp = re.sub(r"[\\/*?\"<>|\s]", "_", stamp)
    else:
        stamp = parsed.strftime("%Y-%m-%dT%H-%M-%S")
    return f"backup-sass-construtora-{stamp}.json"
