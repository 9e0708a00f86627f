from __future__ import annotations


class FilepondError(Exception):
    """Base exception for attachment field errors."""


class UploadFailedError(FilepondError):
    """Raised when a temporary upload could not be written to its disk."""


class UnknownDiskError(FilepondError):
    """Raised when a field points at a disk that is not configured."""


class InvalidTemporaryReferenceError(FilepondError):
    """Raised when a path is expected to be a temporary upload but is not."""
