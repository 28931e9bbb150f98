# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
docbackup FastAPI Integration - Admin endpoints for backup and restore.

Endpoints (all under ``prefix``, default /admin/docbackup):
- POST   /backups                create a backup and archive it
- GET    /backups                list archived backups
- GET    /backups/{id}           download an archived payload
- DELETE /backups/{id}           delete an archived backup
- POST   /backups/{id}/restore   restore an archived backup
- POST   /restore                restore an uploaded payload
"""

import asyncio
import os
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any, Dict

import aiosqlite
import structlog
from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from docbackup.archive import (
    delete_backup,
    get_backup,
    get_backup_meta,
    init_archive_db,
    list_backups,
    save_backup,
)
from docbackup.backup import (
    backup_file_name,
    create_database_backup,
    restore_database_backup,
)
from docbackup.config import BackupConfig
from docbackup.events import EventBus
from docbackup.exceptions import (
    ArchiveError,
    DocBackupError,
    PartialBackupError,
    StrictRestoreError,
    ValidationError,
    VerificationError,
)
from docbackup.store.base import DocumentStore

logger = structlog.get_logger()

# Security
security = HTTPBearer(auto_error=False)


class UploadRestoreRequest(BaseModel):
    """Body of POST /restore."""

    backup: Dict[str, Any]
    replace_existing: bool = True
    strict: bool = True
    verify_after_restore: bool = True


async def verify_api_key(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> bool:
    """
    Verify API key from Authorization header.

    The API key is read from the DOCBACKUP_ADMIN_API_KEY environment variable.
    Requests must include: Authorization: Bearer <api_key>

    Raises:
        HTTPException: If API key is missing or invalid
    """
    api_key = os.getenv("DOCBACKUP_ADMIN_API_KEY")

    if not api_key:
        raise HTTPException(
            status_code=500,
            detail="DOCBACKUP_ADMIN_API_KEY environment variable not set",
        )

    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Authorization header required",
        )

    if credentials.credentials != api_key:
        raise HTTPException(
            status_code=403,
            detail="Invalid API key",
        )

    return True


def _http_error(error: DocBackupError) -> HTTPException:
    if isinstance(error, ValidationError):
        status = 400
    elif isinstance(error, (StrictRestoreError, PartialBackupError)):
        status = 409
    elif isinstance(error, VerificationError):
        status = 422
    else:
        status = 500
    return HTTPException(
        status_code=status,
        detail={"error": type(error).__name__, "message": error.message},
    )


def register_backup_routes(
    app: FastAPI,
    config: BackupConfig,
    store: DocumentStore,
    prefix: str = "/admin/docbackup",
    events: EventBus | None = None,
) -> None:
    """
    Register backup admin endpoints on a FastAPI app.

    All endpoints require Bearer token authentication. Backup and restore
    calls are serialized: only one runs at a time per app.

    Args:
        app: FastAPI application
        config: Backup configuration
        store: Document store to back up and restore
        prefix: URL prefix for endpoints (default: /admin/docbackup)
        events: Bus receiving CacheInvalidated after restores
    """
    db_path = config.archive_db_path
    operation_lock = asyncio.Lock()

    async def _restore(payload: Any, replace_existing: bool, strict: bool, verify: bool) -> dict:
        async with operation_lock:
            try:
                result = await restore_database_backup(
                    store,
                    payload,
                    config,
                    replace_existing=replace_existing,
                    strict=strict,
                    verify_after_restore=verify,
                    events=events,
                )
            except DocBackupError as e:
                logger.error("admin_restore_failed", error=str(e))
                raise _http_error(e)
        return asdict(result)

    @app.post(f"{prefix}/backups", dependencies=[Depends(verify_api_key)])
    async def create_backup() -> dict:
        """
        Create a backup (partial backups allowed) and archive it.

        If archiving fails the payload is returned inline instead.
        """
        async with operation_lock:
            try:
                backup = await create_database_backup(store, config, allow_partial=True)
            except DocBackupError as e:
                raise _http_error(e)

        skipped = backup["stats"]["skippedCollections"]

        try:
            async with aiosqlite.connect(db_path) as db:
                meta = await save_backup(
                    db,
                    backup,
                    max_stored=config.max_stored_backups,
                    compress=config.compress_archive,
                )
        except (ArchiveError, aiosqlite.Error) as e:
            logger.error("admin_archive_failed", error=str(e))
            return {
                "archived": False,
                "file_name": backup_file_name(backup["createdAt"]),
                "skipped_collections": skipped,
                "payload": backup,
            }

        return {"archived": True, "backup": meta, "skipped_collections": skipped}

    @app.get(f"{prefix}/backups", dependencies=[Depends(verify_api_key)])
    async def list_archived_backups() -> list:
        """List archived backups, newest first."""
        async with aiosqlite.connect(db_path) as db:
            return await list_backups(db)

    @app.get(f"{prefix}/backups/{{backup_id}}", dependencies=[Depends(verify_api_key)])
    async def download_backup(backup_id: str) -> JSONResponse:
        """Download an archived payload as a backup file."""
        async with aiosqlite.connect(db_path) as db:
            payload = await get_backup(db, backup_id)

        if payload is None:
            raise HTTPException(status_code=404, detail="Backup not found")

        file_name = backup_file_name(str(payload.get("createdAt", backup_id)))
        return JSONResponse(
            content=payload,
            headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
        )

    @app.delete(f"{prefix}/backups/{{backup_id}}", dependencies=[Depends(verify_api_key)])
    async def remove_backup(backup_id: str) -> dict:
        """Delete an archived backup."""
        async with aiosqlite.connect(db_path) as db:
            if await get_backup_meta(db, backup_id) is None:
                raise HTTPException(status_code=404, detail="Backup not found")
            await delete_backup(db, backup_id)
        return {"deleted": backup_id}

    @app.post(f"{prefix}/backups/{{backup_id}}/restore", dependencies=[Depends(verify_api_key)])
    async def restore_archived_backup(
        backup_id: str,
        replace_existing: bool = True,
        strict: bool = True,
        verify_after_restore: bool = True,
    ) -> dict:
        """Restore an archived backup into the document store."""
        async with aiosqlite.connect(db_path) as db:
            payload = await get_backup(db, backup_id)

        if payload is None:
            raise HTTPException(status_code=404, detail="Backup not found")

        return await _restore(payload, replace_existing, strict, verify_after_restore)

    @app.post(f"{prefix}/restore", dependencies=[Depends(verify_api_key)])
    async def restore_uploaded_backup(request: UploadRestoreRequest) -> dict:
        """Restore an uploaded backup payload."""
        return await _restore(
            request.backup,
            request.replace_existing,
            request.strict,
            request.verify_after_restore,
        )


@asynccontextmanager
async def docbackup_lifespan(
    app: FastAPI,
    config: BackupConfig,
    store: DocumentStore,
    prefix: str = "/admin/docbackup",
):
    """
    Lifespan context manager for FastAPI:

        app = FastAPI(lifespan=lambda app: docbackup_lifespan(app, config, store))

    Args:
        app: FastAPI application
        config: Backup configuration
        store: Document store to back up and restore
        prefix: URL prefix for admin endpoints
    """
    logger.info("docbackup_lifespan_starting", archive=str(config.archive_db_path))

    await init_archive_db(config.archive_db_path)
    app.state.docbackup_config = config
    app.state.docbackup_store = store
    register_backup_routes(app, config, store, prefix)

    logger.info("docbackup_lifespan_started")

    try:
        yield
    finally:
        logger.info("docbackup_lifespan_stopped")
