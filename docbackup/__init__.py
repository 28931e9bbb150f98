# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
docbackup - Backup and restore engine for a document database.

Snapshots every configured collection into a portable, versioned JSON
payload, restores payloads with batched writes, optional replacement and
post-restore verification, and keeps a retention-bounded local archive.
"""

__version__ = "0.1.0"

# Configuration creation (user-facing API)
from docbackup.builder import create_config
from docbackup.config import BackupConfig

# Core functions
from docbackup.backup import (
    create_database_backup,
    restore_database_backup,
    read_backup_file,
    write_backup_file,
    RestoreResult,
)

# Environment-based configuration
from docbackup.env import create_config_from_env

# Stores and events
from docbackup.store import InMemoryDocumentStore, SQLiteDocumentStore
from docbackup.events import CacheInvalidated, cache_events

__all__ = [
    # Version
    "__version__",
    # Configuration
    "create_config",
    "create_config_from_env",
    "BackupConfig",
    # Backup and restore
    "create_database_backup",
    "restore_database_backup",
    "read_backup_file",
    "write_backup_file",
    "RestoreResult",
    # Stores
    "InMemoryDocumentStore",
    "SQLiteDocumentStore",
    # Events
    "CacheInvalidated",
    "cache_events",
]
