"""Result and metadata types for file system operations."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .errors import ErrorKind


class EntryKind(str, Enum):
    """Entry type as reported by lstat."""

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"


class DisplayClass(str, Enum):
    """Classification used when rendering a listing."""

    DIRECTORY = "directory"
    EXECUTABLE = "executable"
    REGULAR = "regular"


class SortKey(str, Enum):
    """Sort orders supported by directory listings."""

    NAME = "name"
    SIZE = "size"
    MTIME = "mtime"


@dataclass(frozen=True)
class EntryMetadata:
    """Attributes of a single file system entry."""

    path: Path
    kind: EntryKind
    size: int
    mode: int
    owner_name: str
    group_name: str
    uid: int
    gid: int
    modified_at: datetime

    @property
    def permission_bits(self) -> int:
        return self.mode & 0o7777

    @property
    def is_dir(self) -> bool:
        return self.kind == EntryKind.DIRECTORY


@dataclass(frozen=True)
class ListingEntry:
    """One row of a directory listing."""

    name: str
    metadata: EntryMetadata
    display_class: DisplayClass


@dataclass(frozen=True)
class Failure:
    """A path that could not be processed and why."""

    path: Path
    reason: str


@dataclass
class TreeOperationOutcome:
    """
    Aggregated result of a copy, delete, move or rename.

    ``items_affected`` counts entries, a directory and each of its
    descendants counting once: entries created for a copy, entries removed
    for a delete, entries now at the destination for a move (the same
    figure whether the tree was renamed in one step or copied and deleted),
    and 1 for a rename.
    """

    operation: str
    succeeded: bool = True
    items_affected: int = 0
    failures: List[Failure] = field(default_factory=list)
    error: Optional[ErrorKind] = None
    destination: Optional[Path] = None

    @classmethod
    def rejected(
        cls,
        operation: str,
        error: ErrorKind,
        destination: Optional[Path] = None,
    ) -> "TreeOperationOutcome":
        """Outcome for a request refused before anything was touched."""
        return cls(
            operation=operation,
            succeeded=False,
            error=error,
            destination=destination,
        )

    def record_failure(self, path: str | Path, reason: str) -> None:
        self.failures.append(Failure(path=Path(path), reason=reason))


@dataclass(frozen=True)
class SearchMatch:
    """An entry whose name matched a search term."""

    path: Path
    kind: EntryKind
