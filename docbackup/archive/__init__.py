# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backup Archive - Local, retention-bounded storage of backup payloads.
"""

from docbackup.archive.sqlite_archive import (
    init_archive_db,
    save_backup,
    list_backups,
    get_backup,
    get_backup_meta,
    delete_backup,
    enforce_retention,
    get_archive_stats,
    format_backup_name,
    StoredBackupMeta,
)

from docbackup.archive.compressor import (
    compress_payload,
    decompress_payload,
    encode_payload,
)

__all__ = [
    # Archive functions
    "init_archive_db",
    "save_backup",
    "list_backups",
    "get_backup",
    "get_backup_meta",
    "delete_backup",
    "enforce_retention",
    "get_archive_stats",
    "format_backup_name",
    # Types
    "StoredBackupMeta",
    # Compressor
    "compress_payload",
    "decompress_payload",
    "encode_payload",
]
