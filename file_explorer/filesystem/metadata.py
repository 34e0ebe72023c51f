"""Per-entry metadata lookup (type, size, permissions, owner, mtime)."""

import grp
import logging
import os
import pwd
import stat
from datetime import datetime
from pathlib import Path

from .errors import NotFoundError, PermissionDeniedError
from .types import EntryKind, EntryMetadata

logger = logging.getLogger(__name__)


def kind_from_mode(mode: int) -> EntryKind:
    if stat.S_ISLNK(mode):
        return EntryKind.SYMLINK
    if stat.S_ISDIR(mode):
        return EntryKind.DIRECTORY
    if stat.S_ISREG(mode):
        return EntryKind.FILE
    return EntryKind.OTHER


def owner_name(uid: int) -> str:
    """Resolve a user id to its name, falling back to the numeric id."""
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def group_name(gid: int) -> str:
    """Resolve a group id to its name, falling back to the numeric id."""
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return str(gid)


def stat_entry(path: str | Path) -> EntryMetadata:
    """
    Read metadata for one path.

    The entry kind comes from ``lstat`` so symlinks are reported as such.
    Size, permissions, ownership and mtime come from ``stat`` (the link is
    followed); dangling links fall back to their own ``lstat`` values.

    Args:
        path: Path to inspect

    Returns:
        EntryMetadata for the path

    Raises:
        NotFoundError: If nothing exists at the path
        PermissionDeniedError: If the path cannot be inspected
    """
    path_obj = Path(path)

    try:
        link_stat = os.lstat(path_obj)
    except (FileNotFoundError, NotADirectoryError):
        raise NotFoundError(f"Pfad existiert nicht: {path_obj}", path_obj)
    except PermissionError as e:
        raise PermissionDeniedError(f"Keine Berechtigung für {path_obj}: {e}", path_obj)

    kind = kind_from_mode(link_stat.st_mode)
    target_stat = link_stat
    if kind == EntryKind.SYMLINK:
        try:
            target_stat = os.stat(path_obj)
        except OSError:
            logger.debug(f"Dangling symlink, using lstat values: {path_obj}")

    size = 0 if stat.S_ISDIR(target_stat.st_mode) else int(target_stat.st_size)

    return EntryMetadata(
        path=path_obj,
        kind=kind,
        size=size,
        mode=target_stat.st_mode,
        owner_name=owner_name(target_stat.st_uid),
        group_name=group_name(target_stat.st_gid),
        uid=target_stat.st_uid,
        gid=target_stat.st_gid,
        modified_at=datetime.fromtimestamp(target_stat.st_mtime),
    )


def permission_string(mode: int) -> str:
    """Format a mode as ``drwxr-xr-x``."""
    if stat.S_ISDIR(mode):
        prefix = "d"
    elif stat.S_ISLNK(mode):
        prefix = "l"
    else:
        prefix = "-"

    bits = ""
    for flag, char in (
        (stat.S_IRUSR, "r"), (stat.S_IWUSR, "w"), (stat.S_IXUSR, "x"),
        (stat.S_IRGRP, "r"), (stat.S_IWGRP, "w"), (stat.S_IXGRP, "x"),
        (stat.S_IROTH, "r"), (stat.S_IWOTH, "w"), (stat.S_IXOTH, "x"),
    ):
        bits += char if mode & flag else "-"
    return prefix + bits


def octal_mode(mode: int) -> str:
    """Return the permission bits as an octal string, e.g. ``755``."""
    return format(mode & 0o7777, "o")
