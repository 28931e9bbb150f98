# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Document Store Layer - The database that is backed up and restored.
"""

from docbackup.store.base import (
    PERMISSION_DENIED,
    DocumentSnapshot,
    DocumentStore,
    is_permission_denied,
    permission_denied,
)
from docbackup.store.memory import InMemoryDocumentStore
from docbackup.store.sqlite import SQLiteDocumentStore

__all__ = [
    "PERMISSION_DENIED",
    "DocumentSnapshot",
    "DocumentStore",
    "InMemoryDocumentStore",
    "SQLiteDocumentStore",
    "is_permission_denied",
    "permission_denied",
]
