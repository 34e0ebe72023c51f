"""Interactive session state: working directory, recent files, display prefs."""

import logging
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .filesystem import SortKey, WorkingDirectory
from .settings import THEMES, settings

logger = logging.getLogger(__name__)


class RecentFiles:
    """Most-recent-first list of paths without duplicates."""

    def __init__(self, max_items: int = 10):
        self.max_items = max_items
        self._items: deque = deque()

    def add(self, path: str | Path) -> None:
        path_obj = Path(path)
        if path_obj in self._items:
            self._items.remove(path_obj)
        self._items.appendleft(path_obj)
        while len(self._items) > self.max_items:
            self._items.pop()

    def items(self) -> List[Path]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)


@dataclass
class ExplorerSession:
    """State carried between shell commands."""

    cwd: WorkingDirectory
    recent: RecentFiles
    theme: str = "default"
    show_hidden: bool = False
    sort_by: SortKey = SortKey.NAME
    directories_first: bool = True

    @classmethod
    def create(cls, start: Optional[str | Path] = None) -> "ExplorerSession":
        """Create a session from settings, starting in ``start`` or the process cwd."""
        cwd = WorkingDirectory.from_cwd()
        if start is not None:
            cwd = cwd.change(start)
        display = settings.display
        return cls(
            cwd=cwd,
            recent=RecentFiles(display.max_recent),
            theme=display.theme,
            show_hidden=display.show_hidden,
            sort_by=SortKey(display.sort_by),
            directories_first=display.directories_first,
        )

    @property
    def current_path(self) -> Path:
        return self.cwd.path

    def resolve(self, raw: str | Path) -> Path:
        return self.cwd.resolve(raw)

    def change_directory(self, raw: str | Path) -> Path:
        self.cwd = self.cwd.change(raw)
        return self.cwd.path

    def go_up(self) -> Path:
        self.cwd = self.cwd.parent()
        return self.cwd.path

    def set_theme(self, theme: str) -> None:
        theme = theme.strip().lower()
        if theme not in THEMES:
            raise ValueError(f"Unbekanntes Theme: {theme} (verfügbar: {', '.join(THEMES)})")
        self.theme = theme
        logger.info(f"Theme geändert: {theme}")

    def set_sort(self, sort_by: str) -> None:
        try:
            self.sort_by = SortKey(sort_by.strip().lower())
        except ValueError:
            raise ValueError(f"Unbekannte Sortierung: {sort_by} (name, size, mtime)")

    def toggle_hidden(self) -> bool:
        self.show_hidden = not self.show_hidden
        return self.show_hidden

    def toggle_directories_first(self) -> bool:
        self.directories_first = not self.directories_first
        return self.directories_first
