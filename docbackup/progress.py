# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Progress reporting shared by backup and restore.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable


class ProgressPhase(str, Enum):
    """Phase of a long-running scan."""

    READING = "reading"  # Backup reads documents
    WRITING = "writing"  # Restore upserts documents
    DELETING = "deleting"  # Restore removes stale documents


@dataclass(frozen=True)
class BackupProgress:
    """One progress event. Never persisted."""

    phase: ProgressPhase
    collection: str
    current: int
    total: int


ProgressCallback = Callable[[BackupProgress], None]


def report_progress(
    callback: ProgressCallback | None,
    phase: ProgressPhase,
    collection: str,
    current: int,
    total: int,
) -> None:
    """Invoke the callback synchronously, if there is one."""
    if callback is None:
        return
    callback(BackupProgress(phase=phase, collection=collection, current=current, total=total))
