# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
docbackup SQLite Store - A file-backed document store.

Documents live in a single table keyed by (collection, id) with their
value tree stored as JSON. Timestamps (and datetimes, which the store
normalizes to timestamps) are encoded as {"__timestamp__": [s, ns]}.
Each batched commit is one SQLite transaction.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

import aiosqlite
import structlog

from docbackup.exceptions import ProviderError
from docbackup.store.base import DocumentSnapshot
from docbackup.timestamps import Timestamp, TimestampLike

logger = structlog.get_logger()

_TIMESTAMP_TAG = "__timestamp__"


def _encode_default(value: Any) -> Any:
    if isinstance(value, datetime):
        value = Timestamp.from_datetime(value)
    if isinstance(value, TimestampLike):
        return {_TIMESTAMP_TAG: [value.seconds, value.nanoseconds]}
    if isinstance(value, tuple):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not storable")


def _decode_hook(obj: Dict[str, Any]) -> Any:
    if len(obj) == 1 and _TIMESTAMP_TAG in obj:
        seconds, nanoseconds = obj[_TIMESTAMP_TAG]
        return Timestamp(seconds=seconds, nanoseconds=nanoseconds)
    return obj


def encode_document(data: Dict[str, Any]) -> str:
    return json.dumps(data, default=_encode_default, ensure_ascii=False)


def decode_document(text: str) -> Dict[str, Any]:
    return json.loads(text, object_hook=_decode_hook)


async def init_store_db(db_path: Path) -> None:
    """
    Initialize the document table. This is idempotent.

    Args:
        db_path: Path to the SQLite database file
    """
    try:
        async with aiosqlite.connect(db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    data TEXT NOT NULL,
                    PRIMARY KEY (collection, id)
                )
            """)
            await db.commit()

        logger.info("store_db_initialized", db_path=str(db_path))

    except Exception as e:
        raise ProviderError(
            f"Failed to initialize document store: {e}",
            details={"db_path": str(db_path)},
            code="unavailable",
        )


class SQLiteDocumentStore:
    """aiosqlite-backed DocumentStore."""

    def __init__(self, db_path: Path, max_batch_ops: int = 500) -> None:
        self.db_path = db_path
        self.max_batch_ops = max_batch_ops

    async def initialize(self) -> "SQLiteDocumentStore":
        await init_store_db(self.db_path)
        return self

    async def list_documents(self, collection: str) -> List[DocumentSnapshot]:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                async with db.execute(
                    "SELECT id, data FROM documents WHERE collection = ? ORDER BY id",
                    (collection,),
                ) as cursor:
                    return [
                        DocumentSnapshot(id=row[0], data=decode_document(row[1]))
                        async for row in cursor
                    ]
        except aiosqlite.Error as e:
            raise ProviderError(
                f"Failed to list documents: {e}",
                details={"collection": collection},
                code="unavailable",
            )

    def _check_batch(self, collection: str, size: int) -> None:
        if size > self.max_batch_ops:
            raise ProviderError(
                f"Batch of {size} operations exceeds the limit of {self.max_batch_ops}",
                details={"collection": collection, "size": size},
                code="invalid-argument",
            )

    async def set_batch(
        self,
        collection: str,
        documents: Sequence[Tuple[str, Dict[str, Any]]],
    ) -> None:
        self._check_batch(collection, len(documents))
        rows = [(collection, doc_id, encode_document(data)) for doc_id, data in documents]

        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.executemany(
                    """
                    INSERT INTO documents (collection, id, data) VALUES (?, ?, ?)
                    ON CONFLICT (collection, id) DO UPDATE SET data = excluded.data
                    """,
                    rows,
                )
                await db.commit()
        except aiosqlite.Error as e:
            raise ProviderError(
                f"Failed to commit batch: {e}",
                details={"collection": collection, "size": len(rows)},
                code="aborted",
            )

    async def delete_batch(self, collection: str, ids: Sequence[str]) -> None:
        self._check_batch(collection, len(ids))

        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.executemany(
                    "DELETE FROM documents WHERE collection = ? AND id = ?",
                    [(collection, doc_id) for doc_id in ids],
                )
                await db.commit()
        except aiosqlite.Error as e:
            raise ProviderError(
                f"Failed to commit batch delete: {e}",
                details={"collection": collection, "size": len(ids)},
                code="aborted",
            )

    def timestamp_from_datetime(self, value: datetime) -> Timestamp:
        return Timestamp.from_datetime(value)
