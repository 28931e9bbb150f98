# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
docbackup Builder - Functional builder pattern for configuration.

This module provides pure functions for building BackupConfig objects.
Each function takes a config dict and returns a new dict with the
modification applied (immutable updates).
"""

from pathlib import Path
from typing import Any, Callable, Dict, Iterable

from docbackup.config import (
    BACKUP_COLLECTIONS,
    BACKUP_SOURCE,
    BACKUP_VERSION,
    IDENTITY_COLLECTION,
    MAX_BATCH_OPS,
    MAX_MISMATCH_DETAILS,
    MAX_STORED_BACKUPS,
    PROVIDER_BATCH_LIMIT,
    BackupConfig,
)


# Type alias for builder functions
ConfigDict = Dict[str, Any]
BuilderFunc = Callable[[ConfigDict], ConfigDict]


def create_empty_config() -> ConfigDict:
    """
    Create an initial configuration dictionary.

    Returns:
        Dict with default values for all configuration fields
    """
    return {
        "collections": BACKUP_COLLECTIONS,
        "identity_collection": IDENTITY_COLLECTION,
        "batch_size": MAX_BATCH_OPS,
        "backup_version": BACKUP_VERSION,
        "source": BACKUP_SOURCE,
        "archive_path": Path("./docbackup_archive"),
        "max_stored_backups": MAX_STORED_BACKUPS,
        "max_mismatch_details": MAX_MISMATCH_DETAILS,
        "compress_archive": True,
    }


def with_collections(config: ConfigDict, collections: Iterable[str]) -> ConfigDict:
    """
    Replace the list of collections captured by a backup.

    Args:
        config: Current configuration dictionary
        collections: Collection names, in backup order

    Returns:
        New configuration dictionary with collections set
    """
    return {**config, "collections": tuple(collections)}


def add_collection(config: ConfigDict, collection: str) -> ConfigDict:
    """
    Append a single collection to the backup set.
    """
    if collection in config["collections"]:
        return config
    return {**config, "collections": tuple(config["collections"]) + (collection,)}


def with_identity_collection(config: ConfigDict, collection: str) -> ConfigDict:
    """
    Set the collection restored last (account records).

    Args:
        config: Current configuration dictionary
        collection: Name of the identity collection

    Returns:
        New configuration dictionary with identity collection set
    """
    return {**config, "identity_collection": collection}


def with_batch_size(config: ConfigDict, batch_size: int) -> ConfigDict:
    """
    Set the maximum number of operations per batched commit.

    Args:
        config: Current configuration dictionary
        batch_size: Documents per commit

    Returns:
        New configuration dictionary with batch size set
    """
    if batch_size < 1 or batch_size > PROVIDER_BATCH_LIMIT:
        raise ValueError(f"batch_size must be 1-{PROVIDER_BATCH_LIMIT}, got {batch_size}")
    return {**config, "batch_size": batch_size}


def with_archive(config: ConfigDict, archive_path: Path | str) -> ConfigDict:
    """
    Configure the local archive directory.

    Args:
        config: Current configuration dictionary
        archive_path: Path to the archive directory

    Returns:
        New configuration dictionary with archive path set
    """
    path = Path(archive_path) if isinstance(archive_path, str) else archive_path
    return {**config, "archive_path": path}


def retain_backups(config: ConfigDict, count: int) -> ConfigDict:
    """
    Set how many backups the local archive keeps.

    Older backups beyond this count are evicted on every save.
    """
    if count < 1:
        raise ValueError(f"max_stored_backups must be >= 1, got {count}")
    return {**config, "max_stored_backups": count}


def disable_archive_compression(config: ConfigDict) -> ConfigDict:
    """
    Store archived payloads as plain JSON.
    """
    return {**config, "compress_archive": False}


def build_config(config_dict: ConfigDict) -> BackupConfig:
    """
    Validate and build an immutable BackupConfig from a configuration dictionary.

    Args:
        config_dict: Configuration dictionary built using builder functions

    Returns:
        Validated, immutable BackupConfig instance

    Raises:
        ConfigurationError: If validation fails
    """
    return BackupConfig(**config_dict)


def pipe(*funcs: BuilderFunc) -> BuilderFunc:
    """
    Compose multiple builder functions into a single function.

        config = pipe(
            lambda c: with_batch_size(c, 200),
            lambda c: retain_backups(c, 5),
        )(create_empty_config())

    Args:
        *funcs: Builder functions to compose

    Returns:
        A single function that applies all functions in sequence
    """

    def composed(config: ConfigDict) -> ConfigDict:
        result = config
        for func in funcs:
            result = func(result)
        return result

    return composed


def create_config(
    *,
    collections: Iterable[str] | None = None,
    identity_collection: str | None = None,
    batch_size: int | None = None,
    archive_path: str | Path | None = None,
    max_stored_backups: int | None = None,
    source: str | None = None,
    **kwargs: Any,
) -> BackupConfig:
    """
    Create a BackupConfig from simple parameters.

    This is the recommended user-facing API for creating configurations.

    Example:
        config = create_config(
            archive_path="/var/lib/docbackup",
            max_stored_backups=20,
        )
    """
    config_dict = create_empty_config()

    if collections is not None:
        config_dict = with_collections(config_dict, collections)

    if identity_collection:
        config_dict = with_identity_collection(config_dict, identity_collection)

    if batch_size is not None:
        config_dict = with_batch_size(config_dict, batch_size)

    if archive_path:
        config_dict = with_archive(config_dict, archive_path)

    if max_stored_backups is not None:
        config_dict = retain_backups(config_dict, max_stored_backups)

    if source:
        config_dict["source"] = source

    # Apply any additional kwargs
    for key, value in kwargs.items():
        if key in config_dict:
            config_dict[key] = value

    return build_config(config_dict)
