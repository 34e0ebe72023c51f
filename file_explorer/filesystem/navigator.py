"""File system navigation and directory listing functions."""

import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from .errors import DirectoryUnreadableError, FileExplorerError, NotFoundError
from .metadata import kind_from_mode, stat_entry
from .types import DisplayClass, EntryKind, EntryMetadata, ListingEntry, SortKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkingDirectory:
    """Current directory of a session; raw user paths resolve against it."""

    path: Path

    @classmethod
    def from_cwd(cls) -> "WorkingDirectory":
        return cls(Path.cwd())

    def resolve(self, raw: str | Path) -> Path:
        """
        Turn user input into an absolute path.

        ``~`` is expanded, relative input is joined onto the working
        directory and ``.``/``..`` are collapsed lexically (symlinks are
        not resolved).
        """
        path_obj = Path(raw).expanduser()
        if not path_obj.is_absolute():
            path_obj = self.path / path_obj
        return Path(os.path.normpath(path_obj))

    def change(self, raw: str | Path) -> "WorkingDirectory":
        """Return a new working directory after checking the target."""
        new_path = self.resolve(raw)

        if not new_path.exists():
            raise NotFoundError(f"Pfad existiert nicht: {new_path}", new_path)

        if not new_path.is_dir():
            raise DirectoryUnreadableError(f"Pfad ist kein Verzeichnis: {new_path}", new_path)

        if not os.access(new_path, os.X_OK):
            raise DirectoryUnreadableError(f"Keine Berechtigung für Verzeichnis: {new_path}", new_path)

        logger.info(f"Current directory changed to: {new_path}")
        return WorkingDirectory(new_path)

    def parent(self) -> "WorkingDirectory":
        return WorkingDirectory(self.path.parent)


def list_children(path: str | Path) -> List[Tuple[str, Path]]:
    """
    Enumerate every entry of a directory, hidden ones included.

    This is the primitive the recursive operations walk with; it does not
    filter or sort.

    Args:
        path: Directory to enumerate

    Returns:
        List of (name, full path) tuples in store order

    Raises:
        DirectoryUnreadableError: If the directory cannot be opened
    """
    path_obj = Path(path)
    try:
        with os.scandir(path_obj) as entries:
            return [(entry.name, path_obj / entry.name) for entry in entries]
    except FileNotFoundError:
        raise DirectoryUnreadableError(f"Verzeichnis existiert nicht: {path_obj}", path_obj)
    except NotADirectoryError:
        raise DirectoryUnreadableError(f"Pfad ist kein Verzeichnis: {path_obj}", path_obj)
    except OSError as e:
        logger.warning(f"Keine Berechtigung für {path_obj}: {e}")
        raise DirectoryUnreadableError(f"Verzeichnis nicht lesbar: {path_obj} ({e.strerror})", path_obj)


def is_hidden(name: str) -> bool:
    return name.startswith(".")


def classify(metadata: EntryMetadata) -> DisplayClass:
    """Directory, executable (owner x-bit) or regular entry."""
    if stat.S_ISDIR(metadata.mode):
        return DisplayClass.DIRECTORY
    if metadata.mode & stat.S_IXUSR:
        return DisplayClass.EXECUTABLE
    return DisplayClass.REGULAR


def _sort_key(sort_by: SortKey, directories_first: bool):
    def key(entry: ListingEntry):
        group = 0
        if directories_first and entry.display_class != DisplayClass.DIRECTORY:
            group = 1
        if sort_by == SortKey.SIZE:
            return (group, entry.metadata.size, entry.name)
        if sort_by == SortKey.MTIME:
            return (group, entry.metadata.modified_at, entry.name)
        return (group, entry.name)

    return key


def list_directory(
    path: str | Path,
    show_hidden: bool = False,
    sort_by: SortKey = SortKey.NAME,
    directories_first: bool = True,
) -> List[ListingEntry]:
    """
    List directory contents for display.

    Args:
        path: Directory path
        show_hidden: Whether to show entries starting with '.'
        sort_by: Sort order within each group
        directories_first: Put directories before everything else

    Returns:
        Sorted list of ListingEntry rows

    Raises:
        DirectoryUnreadableError: If the path is missing, not a directory or unreadable
    """
    entries = []

    for name, child in list_children(path):
        if not show_hidden and is_hidden(name):
            continue
        try:
            metadata = stat_entry(child)
        except FileExplorerError as e:
            logger.debug(f"Überspringe {child}: {e}")
            continue
        entries.append(ListingEntry(name=name, metadata=metadata, display_class=classify(metadata)))

    return sorted(entries, key=_sort_key(SortKey(sort_by), directories_first))


def entry_kind(path: Path) -> Optional[EntryKind]:
    """Kind of the entry at ``path`` without following links, None if absent."""
    try:
        return kind_from_mode(os.lstat(path).st_mode)
    except (FileNotFoundError, NotADirectoryError):
        return None
