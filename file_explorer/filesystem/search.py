"""Recursive name search below a directory."""

import logging
from pathlib import Path
from typing import Iterator, List, Tuple

from .errors import DirectoryUnreadableError, NotFoundError, PermissionDeniedError
from .navigator import entry_kind, list_children
from .types import EntryKind, SearchMatch

logger = logging.getLogger(__name__)


def search_tree(root: str | Path, term: str) -> List[SearchMatch]:
    """
    Find entries whose name contains ``term`` (case-insensitive).

    Every directory is descended into, hidden ones included; symlinks are
    matched but not followed. Unreadable subdirectories are skipped.
    Results come in pre-order: a directory before its children, siblings
    in enumeration order.

    Args:
        root: Directory to search below
        term: Substring to look for in entry names

    Returns:
        List of SearchMatch objects

    Raises:
        NotFoundError: If the root does not exist
        PermissionDeniedError: If the root cannot be inspected
        DirectoryUnreadableError: If the root is not a readable directory
    """
    root_path = Path(root)
    try:
        root_kind = entry_kind(root_path)
    except PermissionError as e:
        raise PermissionDeniedError(f"Keine Berechtigung für {root_path}: {e.strerror}", root_path)
    if root_kind is None:
        raise NotFoundError(f"Verzeichnis existiert nicht: {root_path}", root_path)

    needle = term.casefold()
    matches: List[SearchMatch] = []
    stack: List[Iterator[Tuple[str, Path]]] = [iter(list_children(root_path))]

    while stack:
        item = next(stack[-1], None)
        if item is None:
            stack.pop()
            continue

        name, child = item
        try:
            kind = entry_kind(child)
        except OSError as e:
            logger.debug(f"Überspringe {child}: {e}")
            continue
        if kind is None:
            continue

        if needle in name.casefold():
            matches.append(SearchMatch(path=child, kind=kind))

        if kind == EntryKind.DIRECTORY:
            try:
                stack.append(iter(list_children(child)))
            except DirectoryUnreadableError as e:
                logger.debug(f"Überspringe nicht lesbares Verzeichnis: {e.message}")

    logger.info(f"Suche nach '{term}' in {root_path}: {len(matches)} Treffer")
    return matches
