# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
docbackup Configuration - Immutable configuration data structures.

All configuration is frozen (immutable) after creation to prevent
accidental modification while a backup or restore is running.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple


# Every collection captured by a backup, in backup order.
BACKUP_COLLECTIONS: Tuple[str, ...] = (
    "users",
    "obras",
    "obras_categorias",
    "contasPagar",
    "contasReceber",
    "folhaPagamento",
    "folha_pagamento_categorias",
    "folhaFuncionarios",
    "requisicoes",
    "cotacoes",
    "pedidosCompra",
    "medicoes",
    "recebimentos",
    "fornecedores",
    "empreiteiros",
    "planoContas",
    "precos_regionais",
    "contas_pessoais_categorias",
    "contas_pessoais_lancamentos",
    "dados_bancarios",
    "documentos",
    "documentos_pastas",
    "caixinha",
)

# Restored after every other collection: access rules for the other
# collections are evaluated against the account records.
IDENTITY_COLLECTION = "users"

BACKUP_VERSION = 2
BACKUP_SOURCE = "sass-construtora-erp"

# Maximum operations per batched commit
MAX_BATCH_OPS = 400

# Hard ceiling of the underlying provider
PROVIDER_BATCH_LIMIT = 500

MAX_STORED_BACKUPS = 10
MAX_MISMATCH_DETAILS = 5


def restore_order(collections: Tuple[str, ...], identity_collection: str) -> Tuple[str, ...]:
    """
    Order collections for restore: configured order, identity collection last.
    """
    ordered = tuple(name for name in collections if name != identity_collection)
    if identity_collection in collections:
        ordered += (identity_collection,)
    return ordered


@dataclass(frozen=True)
class BackupConfig:
    """
    Immutable configuration for backup and restore runs.
    """

    # Collections captured by a backup, in order
    collections: Tuple[str, ...] = BACKUP_COLLECTIONS

    # Collection restored last (account records)
    identity_collection: str = IDENTITY_COLLECTION

    # Maximum documents per batched set/delete commit
    batch_size: int = MAX_BATCH_OPS

    # Payload format version written into new backups
    backup_version: int = BACKUP_VERSION

    # Source tag written into new backups
    source: str = BACKUP_SOURCE

    # Directory holding the local backup archive
    archive_path: Path = field(default_factory=lambda: Path("./docbackup_archive"))

    # Archive retention cap, oldest evicted first
    max_stored_backups: int = MAX_STORED_BACKUPS

    # Example ids listed per defect class in verification errors
    max_mismatch_details: int = MAX_MISMATCH_DETAILS

    # Store archived payloads zstd-compressed
    compress_archive: bool = True

    def __post_init__(self) -> None:
        """Validate configuration after creation."""
        errors: List[str] = []

        # Accept any sequence, keep a tuple
        if not isinstance(self.collections, tuple):
            object.__setattr__(self, "collections", tuple(self.collections))

        if not self.collections:
            errors.append("collections must not be empty")
        elif any(not isinstance(name, str) or not name for name in self.collections):
            errors.append("collection names must be non-empty strings")
        elif len(set(self.collections)) != len(self.collections):
            errors.append("collection names must be unique")

        if self.identity_collection not in self.collections:
            errors.append(
                f"identity_collection {self.identity_collection!r} is not a configured collection"
            )

        if not 1 <= self.batch_size <= PROVIDER_BATCH_LIMIT:
            errors.append(
                f"batch_size must be 1-{PROVIDER_BATCH_LIMIT}, got {self.batch_size}"
            )

        if self.max_stored_backups < 1:
            errors.append(f"max_stored_backups must be >= 1, got {self.max_stored_backups}")

        if self.max_mismatch_details < 1:
            errors.append(
                f"max_mismatch_details must be >= 1, got {self.max_mismatch_details}"
            )

        if not self.source:
            errors.append("source must not be empty")

        # Raise all errors at once
        if errors:
            from docbackup.exceptions import ConfigurationError

            raise ConfigurationError(
                "Configuration validation failed",
                details={"errors": errors},
            )

    @property
    def restore_order(self) -> Tuple[str, ...]:
        """Collections in the order a restore processes them."""
        return restore_order(self.collections, self.identity_collection)

    @property
    def archive_db_path(self) -> Path:
        """SQLite file of the local archive."""
        return self.archive_path / "archive.db"

    def with_updates(self, **kwargs) -> "BackupConfig":
        """
        Create a new config with updated values.

        Since the config is frozen, this creates a new instance.
        """
        from dataclasses import asdict

        current = asdict(self)
        current.update(kwargs)
        return BackupConfig(**current)


DEFAULT_CONFIG = BackupConfig()
