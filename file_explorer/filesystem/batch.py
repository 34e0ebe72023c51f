"""Apply tree operations to several items at once."""

import logging
from pathlib import Path
from typing import Callable, Iterable, List, Tuple

from .operations import copy_tree, move_tree, remove_tree
from .types import TreeOperationOutcome

logger = logging.getLogger(__name__)


def merge_outcomes(operation: str, items: List[Tuple[Path, TreeOperationOutcome]]) -> TreeOperationOutcome:
    """Combine per-item outcomes; item rejections become failures."""
    merged = TreeOperationOutcome(operation=operation)
    for path, outcome in items:
        merged.items_affected += outcome.items_affected
        if outcome.succeeded:
            continue
        merged.succeeded = False
        if merged.error is None:
            merged.error = outcome.error
        if outcome.failures:
            merged.failures.extend(outcome.failures)
        else:
            merged.record_failure(path, outcome.error.value if outcome.error else "failed")
    return merged


def _run(
    operation: str,
    paths: Iterable[str | Path],
    action: Callable[[Path], TreeOperationOutcome],
) -> TreeOperationOutcome:
    results = []
    for raw in paths:
        path = Path(raw)
        results.append((path, action(path)))
    merged = merge_outcomes(operation, results)
    logger.info(
        f"Batch {operation}: {len(results)} Elemente, "
        f"{merged.items_affected} Einträge, {len(merged.failures)} Fehler"
    )
    return merged


def batch_remove(
    paths: Iterable[str | Path],
    allow_recursive: bool = False,
    confirmed: bool = False,
) -> TreeOperationOutcome:
    return _run(
        "batch_delete",
        paths,
        lambda path: remove_tree(path, allow_recursive=allow_recursive, confirmed=confirmed),
    )


def batch_copy(sources: Iterable[str | Path], destination_dir: str | Path) -> TreeOperationOutcome:
    """Copy each source to ``destination_dir/<name>``."""
    target = Path(destination_dir)
    return _run("batch_copy", sources, lambda path: copy_tree(path, target / path.name))


def batch_move(sources: Iterable[str | Path], destination_dir: str | Path) -> TreeOperationOutcome:
    """Move each source to ``destination_dir/<name>``."""
    target = Path(destination_dir)
    return _run("batch_move", sources, lambda path: move_tree(path, target / path.name))
