# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
docbackup Exceptions - Custom exceptions for the docbackup package.
"""


class DocBackupError(Exception):
    """Base exception for all docbackup errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(DocBackupError):
    """Raised when configuration is invalid."""

    pass


class ValidationError(DocBackupError):
    """Raised when a backup payload does not have the expected shape."""

    pass


class BackupError(DocBackupError):
    """Raised when backup operations fail."""

    pass


class PartialBackupError(BackupError):
    """Raised when collections could not be read and partial backups are not allowed."""

    pass


class RestoreError(DocBackupError):
    """Raised when restore operations fail."""

    pass


class StrictRestoreError(RestoreError):
    """Raised when strict mode refuses an incomplete or unsafe restore."""

    pass


class VerificationError(RestoreError):
    """Raised when the post-restore diff finds missing, mismatched or extra documents."""

    pass


class ProviderError(DocBackupError):
    """
    Raised when the document store fails.

    ``code`` carries the provider's error class, e.g. ``permission-denied``.
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        code: str = "unknown",
    ):
        super().__init__(message, details)
        self.code = code


class ArchiveError(DocBackupError):
    """Raised when archive operations fail."""

    pass
