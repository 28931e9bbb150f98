# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Test fixtures for docbackup tests.

Provides document stores, archive databases, and test configuration helpers.
"""

import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, List

import pytest
import pytest_asyncio

# Set test environment variables
os.environ["DOCBACKUP_ADMIN_API_KEY"] = "test-api-key-12345"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def small_config(temp_dir: Path):
    """Two-collection configuration: users and obras."""
    from docbackup.config import BackupConfig

    return BackupConfig(
        collections=("users", "obras"),
        archive_path=temp_dir / "archive",
    )


@pytest.fixture
def memory_store():
    """In-memory store with a few users and one construction site."""
    from docbackup.store import InMemoryDocumentStore

    return InMemoryDocumentStore(
        {
            "users": {
                "u1": {"name": "Ana", "role": "admin"},
                "u3": {"name": "Caio", "role": "viewer"},
            },
            "obras": {
                "o1": {"nome": "Residencial Aurora", "orcamento": 125000.5},
            },
        }
    )


@pytest_asyncio.fixture
async def archive_db_path(temp_dir: Path) -> Path:
    """Create a temporary archive database."""
    from docbackup.archive import init_archive_db

    db_path = temp_dir / "archive" / "archive.db"
    await init_archive_db(db_path)
    return db_path


def _make_backup(
    collections: Dict[str, List[Dict[str, Any]]],
    created_at: str = "2024-05-01T12:00:00.000Z",
    skipped: List[str] | None = None,
    counts: Dict[str, int] | None = None,
) -> Dict[str, Any]:
    """Build a backup payload by hand."""
    stats: Dict[str, Any] = {
        "collections": len(collections),
        "documents": sum(len(entries) for entries in collections.values()),
        "skippedCollections": skipped or [],
    }
    if counts is not None:
        stats["collectionDocumentCounts"] = counts

    return {
        "version": 2,
        "createdAt": created_at,
        "source": "sass-construtora-erp",
        "collections": collections,
        "stats": stats,
    }


@pytest.fixture
def make_backup():
    """Factory for hand-built backup payloads."""
    return _make_backup
