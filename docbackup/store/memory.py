# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
In-memory document store.

Useful for tests and dry runs. It enforces the batch operation cap,
counts commits, and can deny access per collection and per action to
reproduce permission failures.
"""

import copy
from datetime import datetime
from typing import Any, Dict, Iterable, List, Sequence, Set, Tuple

from docbackup.exceptions import ProviderError
from docbackup.store.base import DocumentSnapshot, permission_denied
from docbackup.timestamps import Timestamp

READ = "read"
WRITE = "write"
DELETE = "delete"


class InMemoryDocumentStore:
    """Dict-backed DocumentStore."""

    def __init__(
        self,
        collections: Dict[str, Dict[str, Dict[str, Any]]] | None = None,
        max_batch_ops: int = 500,
    ) -> None:
        self.max_batch_ops = max_batch_ops
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = copy.deepcopy(collections or {})
        self._denied: Set[Tuple[str, str]] = set()
        self._read_counts: Dict[str, int] = {}
        self.set_commits: List[Tuple[str, int]] = []
        self.delete_commits: List[Tuple[str, int]] = []

    # Test helpers

    def deny(self, collection: str, actions: Iterable[str] = (READ, WRITE, DELETE)) -> None:
        """Make the given actions on ``collection`` fail with permission-denied."""
        for action in actions:
            self._denied.add((collection, action))

    def deny_after_reads(self, collection: str, reads: int) -> None:
        """Allow ``reads`` list calls on ``collection``, then deny reading."""
        self._read_counts[collection] = -reads

    def allow(self, collection: str) -> None:
        self._denied = {entry for entry in self._denied if entry[0] != collection}
        self._read_counts.pop(collection, None)

    def put(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self._data.setdefault(collection, {})[doc_id] = copy.deepcopy(data)

    def get(self, collection: str, doc_id: str) -> Dict[str, Any] | None:
        doc = self._data.get(collection, {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def ids(self, collection: str) -> Set[str]:
        return set(self._data.get(collection, {}))

    def _check(self, collection: str, action: str) -> None:
        if (collection, action) in self._denied:
            raise permission_denied(collection, action)

    def _check_batch(self, collection: str, size: int) -> None:
        if size > self.max_batch_ops:
            raise ProviderError(
                f"Batch of {size} operations exceeds the limit of {self.max_batch_ops}",
                details={"collection": collection, "size": size},
                code="invalid-argument",
            )

    # DocumentStore

    async def list_documents(self, collection: str) -> List[DocumentSnapshot]:
        self._check(collection, READ)
        if collection in self._read_counts:
            self._read_counts[collection] += 1
            if self._read_counts[collection] > 0:
                raise permission_denied(collection, READ)

        return [
            DocumentSnapshot(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self._data.get(collection, {}).items()
        ]

    async def set_batch(
        self,
        collection: str,
        documents: Sequence[Tuple[str, Dict[str, Any]]],
    ) -> None:
        self._check(collection, WRITE)
        self._check_batch(collection, len(documents))

        target = self._data.setdefault(collection, {})
        for doc_id, data in documents:
            target[doc_id] = copy.deepcopy(data)
        self.set_commits.append((collection, len(documents)))

    async def delete_batch(self, collection: str, ids: Sequence[str]) -> None:
        self._check(collection, DELETE)
        self._check_batch(collection, len(ids))

        target = self._data.get(collection, {})
        for doc_id in ids:
            target.pop(doc_id, None)
        self.delete_commits.append((collection, len(ids)))

    def timestamp_from_datetime(self, value: datetime) -> Timestamp:
        return Timestamp.from_datetime(value)
