"""Errors raised by the storage services.

Every error carries a stable ``code`` and an HTTP ``status_code`` so that
``FileOps`` can turn it into an ``Outcome`` without inspecting its type.
"""
from app.utils.formatting import format_size


class FileManagerError(Exception):
    code = "FileManagerError"
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidName(FileManagerError):
    code = "InvalidName"
    status_code = 400


class PathEscape(FileManagerError):
    """Raised when a resolved path does not stay inside the storage root."""
    code = "PathEscape"
    status_code = 400


class AlreadyExists(FileManagerError):
    code = "AlreadyExists"
    status_code = 409


class NotFound(FileManagerError):
    code = "NotFound"
    status_code = 404


class QuotaExceeded(FileManagerError):
    """Raised when a write would push total usage over the storage limit."""
    code = "QuotaExceeded"
    status_code = 400

    def __init__(self, limit: int, used: int, attempted: int):
        self.limit = limit
        self.used = used
        self.attempted = attempted
        super().__init__(
            f"Insufficient storage! Limit: {format_size(limit)}, "
            f"currently used: {format_size(used)}, "
            f"requested: {format_size(attempted)}"
        )


class WriteFailed(FileManagerError):
    code = "WriteFailed"
    status_code = 500


class DeleteFailed(FileManagerError):
    code = "DeleteFailed"
    status_code = 409


class ArchiveUnavailable(FileManagerError):
    code = "ArchiveUnavailable"
    status_code = 501


class ArchiveWriteFailed(FileManagerError):
    code = "ArchiveWriteFailed"
    status_code = 500


class DirectoryNotFound(FileManagerError):
    code = "DirectoryNotFound"
    status_code = 404


class EmptyUpload(FileManagerError):
    code = "EmptyUpload"
    status_code = 400
