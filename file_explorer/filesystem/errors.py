"""Error kinds and exceptions for file system operations."""

from enum import Enum
from pathlib import Path
from typing import Optional


class ErrorKind(str, Enum):
    """Failure categories reported by tree operations and utilities."""

    NOT_FOUND = "not_found"
    SOURCE_NOT_FOUND = "source_not_found"
    DESTINATION_EXISTS = "destination_exists"
    DESTINATION_IS_FILE = "destination_is_file"
    DESTINATION_INSIDE_SOURCE = "destination_inside_source"
    CONFIRMATION_REQUIRED = "confirmation_required"
    DIRECTORY_UNREADABLE = "directory_unreadable"
    PERMISSION_DENIED = "permission_denied"
    INVALID_MODE = "invalid_mode"
    UNKNOWN_PRINCIPAL = "unknown_principal"
    INVALID_NAME = "invalid_name"
    COPY_FAILED = "copy_failed"
    PARTIAL_DELETE_FAILURE = "partial_delete_failure"
    COPIED_BUT_SOURCE_RETAINED = "copied_but_source_retained"


class FileExplorerError(Exception):
    """Base class for rejected file system requests."""

    kind: ErrorKind = ErrorKind.NOT_FOUND

    def __init__(self, message: str, path: Optional[str | Path] = None):
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None


class NotFoundError(FileExplorerError):
    kind = ErrorKind.NOT_FOUND


class DirectoryUnreadableError(FileExplorerError):
    kind = ErrorKind.DIRECTORY_UNREADABLE


class PermissionDeniedError(FileExplorerError):
    kind = ErrorKind.PERMISSION_DENIED


class InvalidModeError(FileExplorerError):
    kind = ErrorKind.INVALID_MODE


class UnknownPrincipalError(FileExplorerError):
    kind = ErrorKind.UNKNOWN_PRINCIPAL


class DestinationExistsError(FileExplorerError):
    kind = ErrorKind.DESTINATION_EXISTS
