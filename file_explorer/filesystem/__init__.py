"""File system operations module."""

from .errors import (
    ErrorKind,
    FileExplorerError,
    NotFoundError,
    DirectoryUnreadableError,
    PermissionDeniedError,
    InvalidModeError,
    UnknownPrincipalError,
    DestinationExistsError,
)

from .types import (
    EntryKind,
    DisplayClass,
    SortKey,
    EntryMetadata,
    ListingEntry,
    Failure,
    TreeOperationOutcome,
    SearchMatch,
)

from .metadata import (
    stat_entry,
    permission_string,
    octal_mode,
)

from .navigator import (
    WorkingDirectory,
    list_children,
    list_directory,
    entry_kind,
)

from .operations import (
    create_directory,
    create_file,
    copy_tree,
    remove_tree,
    move_tree,
    rename_entry,
    parse_mode,
    set_permissions,
    set_ownership,
)

from .batch import (
    batch_remove,
    batch_copy,
    batch_move,
)

from .search import search_tree

__all__ = [
    # Errors
    "ErrorKind",
    "FileExplorerError",
    "NotFoundError",
    "DirectoryUnreadableError",
    "PermissionDeniedError",
    "InvalidModeError",
    "UnknownPrincipalError",
    "DestinationExistsError",
    # Types
    "EntryKind",
    "DisplayClass",
    "SortKey",
    "EntryMetadata",
    "ListingEntry",
    "Failure",
    "TreeOperationOutcome",
    "SearchMatch",
    # Metadata
    "stat_entry",
    "permission_string",
    "octal_mode",
    # Navigation
    "WorkingDirectory",
    "list_children",
    "list_directory",
    "entry_kind",
    # Operations
    "create_directory",
    "create_file",
    "copy_tree",
    "remove_tree",
    "move_tree",
    "rename_entry",
    "parse_mode",
    "set_permissions",
    "set_ownership",
    # Batch
    "batch_remove",
    "batch_copy",
    "batch_move",
    # Search
    "search_tree",
]
