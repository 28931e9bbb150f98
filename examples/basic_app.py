# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Example FastAPI Application with docbackup admin endpoints.

The document store is a local SQLite file; the archive keeps the newest
backups next to it.

Run with:
    uvicorn examples.basic_app:app --reload

Environment variables:
    DOCBACKUP_STORE_PATH: SQLite file of the document store
    DOCBACKUP_ARCHIVE_PATH: Archive directory
    DOCBACKUP_ADMIN_API_KEY: API key for admin endpoints
"""

import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from docbackup.builder import (
    build_config,
    create_empty_config,
    retain_backups,
    with_archive,
    with_batch_size,
)
from docbackup.cache import ReadCache, make_cache_key
from docbackup.events import cache_events
from docbackup.integrations.fastapi import docbackup_lifespan
from docbackup.store import SQLiteDocumentStore


def create_backup_config():
    """
    Create docbackup configuration using the functional builder pattern.
    """
    archive_path = Path(os.getenv("DOCBACKUP_ARCHIVE_PATH", "./docbackup_archive"))

    config = create_empty_config()
    config = with_archive(config, archive_path)
    config = with_batch_size(config, 400)
    config = retain_backups(config, 10)

    return build_config(config)


backup_config = create_backup_config()
store = SQLiteDocumentStore(Path(os.getenv("DOCBACKUP_STORE_PATH", "./documents.db")))

# Cached reads are dropped after every restore
read_cache = ReadCache()
read_cache.attach(cache_events)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await store.initialize()
    async with docbackup_lifespan(app, backup_config, store):
        yield


app = FastAPI(
    title="Construction admin with docbackup",
    version="1.0.0",
    lifespan=lifespan,
)


@app.get("/obras")
async def list_obras():
    """List construction sites (cached for 60 seconds)."""

    async def load():
        return [
            {"id": snapshot.id, **snapshot.data}
            for snapshot in await store.list_documents("obras")
        ]

    return await read_cache.get_or_load(make_cache_key("obras"), load)


# ============================================================================
# docbackup Admin Endpoints (registered by docbackup_lifespan)
# ============================================================================
#
# POST   /admin/docbackup/backups              - Create and archive a backup
# GET    /admin/docbackup/backups              - List archived backups
# GET    /admin/docbackup/backups/{id}         - Download a backup file
# DELETE /admin/docbackup/backups/{id}         - Delete an archived backup
# POST   /admin/docbackup/backups/{id}/restore - Restore an archived backup
# POST   /admin/docbackup/restore              - Restore an uploaded payload
#
# All admin endpoints require: Authorization: Bearer <DOCBACKUP_ADMIN_API_KEY>


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
