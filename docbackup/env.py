# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Environment-based configuration helpers.

A small, convenient wrapper around create_config() that reads a handful
of well-known environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

from docbackup.builder import create_config
from docbackup.config import BackupConfig, MAX_BATCH_OPS, MAX_STORED_BACKUPS
from docbackup.errors import explain_empty_collections_env, explain_invalid_int_env
from docbackup.exceptions import ConfigurationError


def _parse_int(name: str, value: str | None, default: int, minimum: int = 1) -> int:
    if not value:
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_int_env(name, value, minimum)) from exc
    if parsed < minimum:
        raise ConfigurationError(explain_invalid_int_env(name, value, minimum))
    return parsed


def _parse_collections(value: str | None) -> List[str] | None:
    if value is None:
        return None
    names = [c.strip() for c in value.split(",") if c.strip()]
    if not names:
        raise ConfigurationError(explain_empty_collections_env(value))
    return names


def create_config_from_env() -> BackupConfig:
    """
    Create a BackupConfig from environment variables.

    Optional environment variables:
        - DOCBACKUP_ARCHIVE_PATH: Archive directory (default: ./docbackup_archive)
        - DOCBACKUP_BATCH_SIZE: Operations per batched commit (default: 400)
        - DOCBACKUP_MAX_STORED_BACKUPS: Archive retention cap (default: 10)
        - DOCBACKUP_COLLECTIONS: Comma-separated collection names
        - DOCBACKUP_IDENTITY_COLLECTION: Collection restored last (default: users)
        - DOCBACKUP_SOURCE: Source tag written into new backups
    """

    archive_env = os.getenv("DOCBACKUP_ARCHIVE_PATH")
    archive_path = Path(archive_env) if archive_env else Path("./docbackup_archive")

    batch_size = _parse_int(
        "DOCBACKUP_BATCH_SIZE", os.getenv("DOCBACKUP_BATCH_SIZE"), MAX_BATCH_OPS
    )
    max_stored = _parse_int(
        "DOCBACKUP_MAX_STORED_BACKUPS",
        os.getenv("DOCBACKUP_MAX_STORED_BACKUPS"),
        MAX_STORED_BACKUPS,
    )
    collections = _parse_collections(os.getenv("DOCBACKUP_COLLECTIONS"))
    identity_collection = (os.getenv("DOCBACKUP_IDENTITY_COLLECTION") or "").strip() or None

    try:
        return create_config(
            collections=collections,
            identity_collection=identity_collection,
            batch_size=batch_size,
            archive_path=archive_path,
            max_stored_backups=max_stored,
            source=os.getenv("DOCBACKUP_SOURCE"),
        )
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
