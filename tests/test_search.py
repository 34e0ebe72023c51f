"""Tests für die rekursive Namenssuche."""

from pathlib import Path

import pytest

from conftest import write
from file_explorer.filesystem import (
    DirectoryUnreadableError,
    EntryKind,
    NotFoundError,
    PermissionDeniedError,
    search_tree,
)
from file_explorer.filesystem import search as search_module


class TestSearchTree:

    def test_case_insensitive_substring(self, search_tree_root):
        matches = search_tree(search_tree_root, "report")

        found = {m.path.relative_to(search_tree_root): m.kind for m in matches}
        assert found == {
            Path("a/Report.txt"): EntryKind.FILE,
            Path("b/monthly_report"): EntryKind.DIRECTORY,
        }

    def test_pre_order(self, tmp_path):
        (tmp_path / "match" / "match-inner").mkdir(parents=True)
        write(tmp_path / "match" / "match-inner" / "match.txt")

        matches = search_tree(tmp_path, "match")

        assert [m.path for m in matches] == [
            tmp_path / "match",
            tmp_path / "match" / "match-inner",
            tmp_path / "match" / "match-inner" / "match.txt",
        ]

    def test_root_itself_is_not_a_match(self, tmp_path):
        root = tmp_path / "report"
        root.mkdir()
        assert search_tree(root, "report") == []

    def test_hidden_directories_are_searched(self, tmp_path):
        write(tmp_path / ".config" / "report.ini")
        assert [m.path.name for m in search_tree(tmp_path, "REPORT")] == ["report.ini"]

    def test_empty_term_matches_everything(self, search_tree_root):
        assert len(search_tree(search_tree_root, "")) == 6

    def test_symlinked_directory_is_matched_not_followed(self, tmp_path):
        outside = tmp_path / "outside"
        write(outside / "report.txt")
        root = tmp_path / "root"
        root.mkdir()
        (root / "report-link").symlink_to(outside)

        matches = search_tree(root, "report")

        assert [(m.path.name, m.kind) for m in matches] == [("report-link", EntryKind.SYMLINK)]

    def test_unreadable_subdirectory_is_skipped(self, search_tree_root, monkeypatch):
        real_list_children = search_module.list_children

        def flaky(path):
            if Path(path).name == "a":
                raise DirectoryUnreadableError(f"Verzeichnis nicht lesbar: {path}", path)
            return real_list_children(path)

        monkeypatch.setattr(search_module, "list_children", flaky)

        matches = search_tree(search_tree_root, "report")

        assert [m.path.name for m in matches] == ["monthly_report"]

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(NotFoundError):
            search_tree(tmp_path / "missing", "x")

    def test_uninspectable_root_raises(self, tmp_path, locked_lstat):
        with pytest.raises(PermissionDeniedError):
            search_tree(tmp_path / "locked", "x")

    def test_file_root_raises(self, tmp_path):
        path = write(tmp_path / "file.txt")
        with pytest.raises(DirectoryUnreadableError):
            search_tree(path, "file")
