"""File system operations (create, copy, delete, move, rename, chmod, chown)."""

import grp
import logging
import os
import pwd
import shutil
import stat
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from .errors import (
    DestinationExistsError,
    DirectoryUnreadableError,
    ErrorKind,
    InvalidModeError,
    NotFoundError,
    PermissionDeniedError,
    UnknownPrincipalError,
)
from .metadata import stat_entry
from .navigator import entry_kind, list_children
from .types import EntryKind, EntryMetadata, TreeOperationOutcome

logger = logging.getLogger(__name__)


def _reason(exc: OSError) -> str:
    return exc.strerror or str(exc)


def _is_within(candidate: Path, root: Path) -> bool:
    """True if ``candidate`` is ``root`` or lies below it (after resolving links)."""
    candidate = Path(os.path.realpath(candidate))
    root = Path(os.path.realpath(root))
    return candidate == root or root in candidate.parents


def create_directory(path: str | Path, mode: int = 0o755) -> Path:
    """
    Create a directory.

    Args:
        path: Directory path to create
        mode: Permission bits for the new directory

    Returns:
        Created Path object
    """
    path_obj = Path(path)

    if path_obj.exists():
        if path_obj.is_dir():
            logger.warning(f"Verzeichnis existiert bereits: {path_obj}")
            return path_obj
        raise DestinationExistsError(f"Pfad existiert bereits als Datei: {path_obj}", path_obj)

    try:
        path_obj.mkdir(mode=mode, parents=True)
    except PermissionError as e:
        raise PermissionDeniedError(f"Verzeichnis kann nicht erstellt werden: {path_obj} ({_reason(e)})", path_obj)
    logger.info(f"Verzeichnis erstellt: {path_obj}")
    return path_obj


def create_file(path: str | Path, overwrite: bool = False) -> Path:
    """
    Create an empty file.

    Args:
        path: File path to create
        overwrite: Whether to truncate an existing file

    Returns:
        Created Path object
    """
    path_obj = Path(path)

    if path_obj.exists() and not overwrite:
        raise DestinationExistsError(f"Datei existiert bereits: {path_obj}", path_obj)

    try:
        # Create parent directories if needed
        path_obj.parent.mkdir(parents=True, exist_ok=True)
        path_obj.write_bytes(b"")
    except PermissionError as e:
        raise PermissionDeniedError(f"Datei kann nicht erstellt werden: {path_obj} ({_reason(e)})", path_obj)
    logger.info(f"Datei erstellt: {path_obj}")
    return path_obj


# ============================================================================
# Copy
# ============================================================================

def _copy_leaf(src: Path, dst: Path, kind: EntryKind, outcome: TreeOperationOutcome) -> None:
    """Copy a non-directory entry, recording any failure on the outcome."""
    try:
        if kind == EntryKind.SYMLINK:
            if os.path.lexists(dst) and not dst.is_dir():
                os.unlink(dst)
            os.symlink(os.readlink(src), dst)
        elif kind == EntryKind.FILE:
            shutil.copyfile(src, dst)
            os.chmod(dst, stat.S_IMODE(os.stat(src).st_mode))
        else:
            outcome.record_failure(src, "Spezialdatei wird nicht kopiert")
            return
    except (OSError, shutil.Error) as e:
        logger.warning(f"Kopieren fehlgeschlagen: {src} -> {dst}: {e}")
        outcome.record_failure(src, _reason(e) if isinstance(e, OSError) else str(e))
        return
    outcome.items_affected += 1


def _open_directory_copy(
    src_dir: Path,
    dst_dir: Path,
    outcome: TreeOperationOutcome,
    pending_modes: List[Tuple[Path, int]],
) -> Optional[Iterator[Tuple[str, Path]]]:
    """Create ``dst_dir`` for ``src_dir`` and return the children still to copy."""
    try:
        mode = stat.S_IMODE(os.stat(src_dir).st_mode)
        # Owner needs rwx until the children are in place
        os.mkdir(dst_dir, mode | stat.S_IRWXU)
    except OSError as e:
        logger.warning(f"Verzeichnis kann nicht angelegt werden: {dst_dir}: {e}")
        outcome.record_failure(dst_dir, _reason(e))
        return None

    outcome.items_affected += 1
    pending_modes.append((dst_dir, mode))

    try:
        return iter(list_children(src_dir))
    except DirectoryUnreadableError as e:
        outcome.record_failure(src_dir, e.message)
        return None


def _copy_directory(src: Path, dst: Path, outcome: TreeOperationOutcome) -> None:
    pending_modes: List[Tuple[Path, int]] = []
    stack: List[Tuple[Path, Iterator[Tuple[str, Path]]]] = []

    root_children = _open_directory_copy(src, dst, outcome, pending_modes)
    if root_children is not None:
        stack.append((dst, root_children))

    while stack:
        dst_dir, children = stack[-1]
        item = next(children, None)
        if item is None:
            stack.pop()
            continue

        name, child = item
        target = dst_dir / name
        try:
            kind = entry_kind(child)
        except OSError as e:
            outcome.record_failure(child, _reason(e))
            continue

        if kind is None:
            outcome.record_failure(child, "Eintrag während des Kopierens verschwunden")
        elif kind == EntryKind.DIRECTORY:
            grandchildren = _open_directory_copy(child, target, outcome, pending_modes)
            if grandchildren is not None:
                stack.append((target, grandchildren))
        else:
            _copy_leaf(child, target, kind, outcome)

    # Deepest directories first so parents stay writable until the end
    for directory, mode in reversed(pending_modes):
        try:
            os.chmod(directory, mode)
        except OSError as e:
            outcome.record_failure(directory, _reason(e))


def copy_tree(source: str | Path, destination: str | Path) -> TreeOperationOutcome:
    """
    Copy a file or directory tree.

    Files overwrite an existing destination file. Directories are replicated
    recursively; a failing child is recorded and its siblings are still
    copied. Permission bits are carried over for every entry.

    Args:
        source: Source path
        destination: Destination path

    Returns:
        TreeOperationOutcome with created entry count and failures
    """
    source_path = Path(source)
    dest_path = Path(destination)
    outcome = TreeOperationOutcome(operation="copy", destination=dest_path)

    try:
        kind = entry_kind(source_path)
    except PermissionError:
        return TreeOperationOutcome.rejected("copy", ErrorKind.PERMISSION_DENIED, dest_path)
    if kind is None:
        logger.warning(f"Quelle existiert nicht: {source_path}")
        return TreeOperationOutcome.rejected("copy", ErrorKind.SOURCE_NOT_FOUND, dest_path)

    if kind == EntryKind.DIRECTORY:
        if _is_within(dest_path, source_path):
            return TreeOperationOutcome.rejected("copy", ErrorKind.DESTINATION_INSIDE_SOURCE, dest_path)
        try:
            dest_kind = entry_kind(dest_path)
        except PermissionError:
            return TreeOperationOutcome.rejected("copy", ErrorKind.PERMISSION_DENIED, dest_path)
        if dest_kind is not None:
            return TreeOperationOutcome.rejected("copy", ErrorKind.DESTINATION_EXISTS, dest_path)

    try:
        # Create parent directory if needed
        dest_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        outcome.record_failure(dest_path.parent, _reason(e))
    else:
        if kind == EntryKind.DIRECTORY:
            _copy_directory(source_path, dest_path, outcome)
        else:
            _copy_leaf(source_path, dest_path, kind, outcome)

    if outcome.failures:
        outcome.succeeded = False
        outcome.error = ErrorKind.COPY_FAILED
        logger.warning(
            f"Kopieren unvollständig: {source_path} -> {dest_path} "
            f"({len(outcome.failures)} Fehler)"
        )
    else:
        logger.info(f"Kopiert: {source_path} -> {dest_path} ({outcome.items_affected} Einträge)")
    return outcome


# ============================================================================
# Delete
# ============================================================================

def remove_tree(
    path: str | Path,
    allow_recursive: bool = False,
    confirmed: bool = False,
) -> TreeOperationOutcome:
    """
    Delete a file or directory.

    A non-empty directory is only deleted when ``allow_recursive`` and
    ``confirmed`` are both set. Children go before their directory; the
    first failure stops the walk and leaves the directory in place.

    Args:
        path: Path to delete
        allow_recursive: Permit deleting a non-empty directory
        confirmed: The user confirmed the recursive deletion

    Returns:
        TreeOperationOutcome with removed entry count and failures
    """
    target = Path(path)
    outcome = TreeOperationOutcome(operation="delete")

    try:
        kind = entry_kind(target)
    except PermissionError:
        return TreeOperationOutcome.rejected("delete", ErrorKind.PERMISSION_DENIED)
    if kind is None:
        return TreeOperationOutcome.rejected("delete", ErrorKind.NOT_FOUND)

    if kind != EntryKind.DIRECTORY:
        try:
            os.unlink(target)
        except OSError as e:
            outcome.record_failure(target, _reason(e))
            outcome.succeeded = False
            outcome.error = (
                ErrorKind.PERMISSION_DENIED if isinstance(e, PermissionError)
                else ErrorKind.PARTIAL_DELETE_FAILURE
            )
            return outcome
        outcome.items_affected = 1
        logger.info(f"Datei gelöscht: {target}")
        return outcome

    try:
        children = list_children(target)
    except DirectoryUnreadableError:
        return TreeOperationOutcome.rejected("delete", ErrorKind.DIRECTORY_UNREADABLE)

    if children and not (allow_recursive and confirmed):
        logger.info(f"Verzeichnis nicht leer, Bestätigung erforderlich: {target}")
        return TreeOperationOutcome.rejected("delete", ErrorKind.CONFIRMATION_REQUIRED)

    stack: List[Tuple[Path, Iterator[Tuple[str, Path]]]] = [(target, iter(children))]
    while stack:
        directory, pending = stack[-1]
        item = next(pending, None)
        if item is None:
            try:
                os.rmdir(directory)
            except OSError as e:
                outcome.record_failure(directory, _reason(e))
                break
            outcome.items_affected += 1
            stack.pop()
            continue

        _name, child = item
        try:
            child_kind = entry_kind(child)
            if child_kind == EntryKind.DIRECTORY:
                stack.append((child, iter(list_children(child))))
            elif child_kind is not None:
                os.unlink(child)
                outcome.items_affected += 1
        except DirectoryUnreadableError as e:
            outcome.record_failure(child, e.message)
            break
        except OSError as e:
            outcome.record_failure(child, _reason(e))
            break

    if outcome.failures:
        outcome.succeeded = False
        outcome.error = ErrorKind.PARTIAL_DELETE_FAILURE
        logger.error(
            f"Löschen abgebrochen: {target} ({outcome.items_affected} Einträge gelöscht, "
            f"Fehler bei {outcome.failures[0].path})"
        )
    else:
        logger.info(f"Verzeichnis gelöscht: {target} ({outcome.items_affected} Einträge)")
    return outcome


# ============================================================================
# Move / rename
# ============================================================================

def _count_entries(root: Path) -> int:
    """Number of entries in the tree at ``root``, the root included."""
    try:
        if entry_kind(root) != EntryKind.DIRECTORY:
            return 1
    except OSError:
        return 1
    count = 0
    stack = [root]
    while stack:
        directory = stack.pop()
        count += 1
        try:
            children = list_children(directory)
        except DirectoryUnreadableError as e:
            logger.debug(f"Überspringe beim Zählen: {directory}: {e}")
            continue
        for _name, child in children:
            try:
                child_kind = entry_kind(child)
            except OSError:
                child_kind = None
            if child_kind == EntryKind.DIRECTORY:
                stack.append(child)
            else:
                count += 1
    return count


def move_tree(source: str | Path, destination: str | Path) -> TreeOperationOutcome:
    """
    Move a file or directory.

    If the destination is an existing directory the source is moved inside
    it. A plain rename is tried first; when that fails (e.g. across
    devices) the tree is copied and the source deleted afterwards.

    Args:
        source: Source path
        destination: Destination path or directory

    Returns:
        TreeOperationOutcome whose ``destination`` is the final location
    """
    source_path = Path(source)
    dest_path = Path(destination)

    try:
        kind = entry_kind(source_path)
    except PermissionError:
        return TreeOperationOutcome.rejected("move", ErrorKind.PERMISSION_DENIED, dest_path)
    if kind is None:
        logger.warning(f"Quelle existiert nicht: {source_path}")
        return TreeOperationOutcome.rejected("move", ErrorKind.SOURCE_NOT_FOUND, dest_path)

    try:
        dest_kind = entry_kind(dest_path)
        if dest_kind is not None and dest_path.is_dir():
            dest_path = dest_path / source_path.name
            if entry_kind(dest_path) is not None:
                return TreeOperationOutcome.rejected("move", ErrorKind.DESTINATION_EXISTS, dest_path)
        elif dest_kind is not None:
            return TreeOperationOutcome.rejected("move", ErrorKind.DESTINATION_IS_FILE, dest_path)
    except PermissionError:
        return TreeOperationOutcome.rejected("move", ErrorKind.PERMISSION_DENIED, dest_path)

    if kind == EntryKind.DIRECTORY and _is_within(dest_path, source_path):
        return TreeOperationOutcome.rejected("move", ErrorKind.DESTINATION_INSIDE_SOURCE, dest_path)

    outcome = TreeOperationOutcome(operation="move", destination=dest_path)

    try:
        # Create parent directory if needed
        dest_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        outcome.record_failure(dest_path.parent, _reason(e))
        outcome.succeeded = False
        outcome.error = ErrorKind.PERMISSION_DENIED if isinstance(e, PermissionError) else ErrorKind.COPY_FAILED
        return outcome

    try:
        os.rename(source_path, dest_path)
    except OSError as e:
        logger.info(f"Umbenennen nicht möglich ({_reason(e)}), kopiere und lösche: {source_path} -> {dest_path}")
    else:
        outcome.items_affected = _count_entries(dest_path)
        logger.info(f"Verschoben: {source_path} -> {dest_path} ({outcome.items_affected} Einträge)")
        return outcome

    copied = copy_tree(source_path, dest_path)
    outcome.items_affected = copied.items_affected
    if not copied.succeeded:
        outcome.succeeded = False
        outcome.error = ErrorKind.COPY_FAILED
        outcome.failures.extend(copied.failures)
        return outcome

    removed = remove_tree(source_path, allow_recursive=True, confirmed=True)
    if not removed.succeeded:
        outcome.succeeded = False
        outcome.error = ErrorKind.COPIED_BUT_SOURCE_RETAINED
        outcome.failures.extend(removed.failures)
        if not removed.failures:
            outcome.record_failure(source_path, removed.error.value)
        logger.error(f"Kopiert, aber Quelle konnte nicht gelöscht werden: {source_path}")
        return outcome

    logger.info(f"Verschoben (kopiert + gelöscht): {source_path} -> {dest_path}")
    return outcome


def rename_entry(path: str | Path, new_name: str) -> TreeOperationOutcome:
    """
    Rename a file or directory in place.

    Args:
        path: Entry to rename
        new_name: New base name (no path separators)

    Returns:
        TreeOperationOutcome whose ``destination`` is the renamed path
    """
    source_path = Path(path)

    if not new_name or new_name in (".", "..") or os.sep in new_name or (os.altsep and os.altsep in new_name):
        return TreeOperationOutcome.rejected("rename", ErrorKind.INVALID_NAME)

    new_path = source_path.parent / new_name

    try:
        if entry_kind(source_path) is None:
            return TreeOperationOutcome.rejected("rename", ErrorKind.NOT_FOUND, new_path)
        if entry_kind(new_path) is not None:
            return TreeOperationOutcome.rejected("rename", ErrorKind.DESTINATION_EXISTS, new_path)
    except PermissionError:
        return TreeOperationOutcome.rejected("rename", ErrorKind.PERMISSION_DENIED, new_path)

    outcome = TreeOperationOutcome(operation="rename", destination=new_path)
    try:
        os.rename(source_path, new_path)
    except OSError as e:
        outcome.record_failure(source_path, _reason(e))
        outcome.succeeded = False
        outcome.error = ErrorKind.PERMISSION_DENIED
        return outcome

    outcome.items_affected = 1
    logger.info(f"Umbenannt: {source_path} -> {new_path}")
    return outcome


# ============================================================================
# Permissions / ownership
# ============================================================================

def parse_mode(mode: int | str) -> int:
    """Accept ``0o755``, ``755`` or ``"0755"`` and return the integer mode."""
    if isinstance(mode, bool):
        raise InvalidModeError(f"Ungültige Berechtigung: {mode!r}")

    if isinstance(mode, int):
        value = mode
    else:
        text = str(mode).strip().lower()
        if text.startswith("0o"):
            text = text[2:]
        if not text or any(c not in "01234567" for c in text):
            raise InvalidModeError(
                f"Ungültiges Format: {mode!r} (Oktal-Notation verwenden, z.B. 755)"
            )
        value = int(text, 8)

    if not 0 <= value <= 0o7777:
        raise InvalidModeError(f"Berechtigung außerhalb des gültigen Bereichs: {oct(value)}")
    return value


def set_permissions(path: str | Path, mode: int | str) -> EntryMetadata:
    """
    Change permission bits (chmod).

    Args:
        path: Target path
        mode: Octal mode as int or string

    Returns:
        Metadata after the change
    """
    path_obj = Path(path)
    value = parse_mode(mode)

    try:
        os.chmod(path_obj, value)
    except (FileNotFoundError, NotADirectoryError):
        raise NotFoundError(f"Pfad existiert nicht: {path_obj}", path_obj)
    except PermissionError as e:
        raise PermissionDeniedError(f"Berechtigungen können nicht geändert werden: {path_obj} ({_reason(e)})", path_obj)

    logger.info(f"Berechtigungen geändert: {path_obj} -> {oct(value)}")
    return stat_entry(path_obj)


def _lookup_uid(owner: str) -> int:
    try:
        return pwd.getpwnam(owner).pw_uid
    except KeyError:
        if owner.isdigit():
            return int(owner)
        raise UnknownPrincipalError(f"Unbekannter Benutzer: {owner}")


def _lookup_gid(group: str) -> int:
    try:
        return grp.getgrnam(group).gr_gid
    except KeyError:
        if group.isdigit():
            return int(group)
        raise UnknownPrincipalError(f"Unbekannte Gruppe: {group}")


def set_ownership(
    path: str | Path,
    owner: Optional[str] = None,
    group: Optional[str] = None,
) -> EntryMetadata:
    """
    Change owner and/or group (chown).

    Args:
        path: Target path
        owner: User name or numeric id (None keeps the current owner)
        group: Group name or numeric id (None keeps the current group)

    Returns:
        Metadata after the change
    """
    path_obj = Path(path)

    if not owner and not group:
        raise ValueError("Benutzer oder Gruppe muss angegeben werden")

    uid = _lookup_uid(owner) if owner else -1
    gid = _lookup_gid(group) if group else -1

    try:
        os.chown(path_obj, uid, gid)
    except (FileNotFoundError, NotADirectoryError):
        raise NotFoundError(f"Pfad existiert nicht: {path_obj}", path_obj)
    except PermissionError as e:
        raise PermissionDeniedError(
            f"Besitzer kann nicht geändert werden: {path_obj} ({_reason(e)}, evtl. Root-Rechte nötig)",
            path_obj,
        )

    logger.info(f"Besitzer geändert: {path_obj} -> {owner or '-'}:{group or '-'}")
    return stat_entry(path_obj)
