# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backup Engine - Backup creation, payload files and restore operations.
"""

from docbackup.backup.payload import (
    DatabaseBackup,
    DocumentEntry,
    BackupStats,
    backup_file_name,
    is_database_backup,
    validate_backup,
)

from docbackup.backup.manager import (
    create_database_backup,
    write_backup_file,
    read_backup_file,
)

from docbackup.backup.restore import (
    restore_database_backup,
    verify_restored_collection,
    RestoreResult,
    RestoreWarning,
    VerificationReport,
)

__all__ = [
    # Payload
    "DatabaseBackup",
    "DocumentEntry",
    "BackupStats",
    "backup_file_name",
    "is_database_backup",
    "validate_backup",
    # Manager
    "create_database_backup",
    "write_backup_file",
    "read_backup_file",
    # Restore
    "restore_database_backup",
    "verify_restored_collection",
    "RestoreResult",
    "RestoreWarning",
    "VerificationReport",
]
