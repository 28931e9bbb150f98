# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
docbackup Store Base - Contract for the database that is backed up and restored.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Protocol, Sequence, Tuple

from docbackup.exceptions import ProviderError
from docbackup.timestamps import TimestampLike

PERMISSION_DENIED = "permission-denied"


@dataclass(frozen=True)
class DocumentSnapshot:
    """A document as read from the store: its id and native value tree."""

    id: str
    data: Dict[str, Any]


class DocumentStore(Protocol):
    """Protocol for the document database collaborator."""

    # Maximum operations the store accepts in one batched commit
    max_batch_ops: int

    async def list_documents(self, collection: str) -> List[DocumentSnapshot]:
        """
        Read every document of a collection.

        Raises:
            ProviderError: On access or transport failures
        """
        ...

    async def set_batch(
        self,
        collection: str,
        documents: Sequence[Tuple[str, Dict[str, Any]]],
    ) -> None:
        """Create or replace documents by id in one atomic commit."""
        ...

    async def delete_batch(self, collection: str, ids: Sequence[str]) -> None:
        """Delete documents by id in one atomic commit."""
        ...

    def timestamp_from_datetime(self, value: datetime) -> TimestampLike:
        """Convert a datetime into the store's native timestamp value."""
        ...


def is_permission_denied(error: BaseException) -> bool:
    """True when a store failure is an access-control denial."""
    return getattr(error, "code", None) == PERMISSION_DENIED


def permission_denied(collection: str, action: str) -> ProviderError:
    """Build the ProviderError a store raises when access is denied."""
    return ProviderError(
        f"Missing or insufficient permissions to {action} {collection!r}",
        details={"collection": collection, "action": action},
        code=PERMISSION_DENIED,
    )


