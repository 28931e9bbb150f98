# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Human-friendly error message helpers for docbackup.

These helpers centralize wording for configuration, backup and restore
errors so that all modules present consistent, actionable messages.
"""

from typing import Iterable, List


def format_id_list(ids: List[str], limit: int = 5) -> str:
    """
    Join document ids for an error message, showing at most ``limit`` of them.
    """

    if len(ids) <= limit:
        return ", ".join(ids)
    shown = ", ".join(ids[:limit])
    return f"{shown} ...(+{len(ids) - limit} more)"


def explain_partial_backup(skipped: Iterable[str]) -> str:
    """
    Explain that a backup could not read every configured collection.
    """

    names = list(skipped)
    return (
        f"Incomplete backup: could not read {len(names)} collection(s): "
        f"{', '.join(names)}. Pass allow_partial=True to keep a partial backup."
    )


def explain_partial_source(skipped: Iterable[str]) -> str:
    """
    Explain that strict restore refuses a backup produced with skipped collections.
    """

    return (
        "The backup was produced partially and cannot guarantee a full recovery. "
        f"Collections skipped at backup time: {', '.join(skipped)}."
    )


def explain_missing_collections(missing: Iterable[str]) -> str:
    """
    Explain that the payload does not contain every configured collection.
    """

    return (
        "The backup file does not contain every configured collection. "
        f"Missing: {', '.join(missing)}."
    )


def explain_permission_denied(collection: str, action: str) -> str:
    """
    Explain a permission failure while restoring a collection.
    """

    return f'No permission to {action} documents in "{collection}".'


def explain_invalid_int_env(name: str, value: str | None, minimum: int) -> str:
    """
    Explain that an integer environment variable is invalid.
    """

    return (
        f"Invalid {name} value: {value!r}. "
        f"It must be an integer greater than or equal to {minimum}."
    )


def explain_empty_collections_env(value: str | None) -> str:
    """
    Explain that DOCBACKUP_COLLECTIONS did not name any collection.
    """

    return (
        f"Invalid DOCBACKUP_COLLECTIONS value: {value!r}. "
        "Expected a comma-separated list such as 'users,obras,contasPagar'."
    )
