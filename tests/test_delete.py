"""Tests für Löschen mit Bestätigung."""

import errno
from pathlib import Path

from conftest import write
from file_explorer.filesystem import DirectoryUnreadableError, ErrorKind, remove_tree
from file_explorer.filesystem import operations


class TestRemoveTree:

    def test_remove_file(self, sample_tree):
        outcome = remove_tree(sample_tree / "README.md")

        assert outcome.succeeded
        assert outcome.items_affected == 1
        assert not (sample_tree / "README.md").exists()

    def test_remove_empty_directory_needs_no_confirmation(self, sample_tree):
        outcome = remove_tree(sample_tree / "empty")

        assert outcome.succeeded
        assert not (sample_tree / "empty").exists()

    def test_non_empty_directory_requires_confirmation(self, sample_tree):
        for kwargs in ({}, {"allow_recursive": True}, {"confirmed": True}):
            outcome = remove_tree(sample_tree / "docs", **kwargs)
            assert outcome.error == ErrorKind.CONFIRMATION_REQUIRED
            assert outcome.items_affected == 0

        assert (sample_tree / "docs" / "api" / "index.md").exists()

    def test_confirmed_recursive_delete(self, sample_tree):
        outcome = remove_tree(sample_tree / "docs", allow_recursive=True, confirmed=True)

        assert outcome.succeeded
        # guide.txt, index.md, api/, docs/
        assert outcome.items_affected == 4
        assert not (sample_tree / "docs").exists()
        assert (sample_tree / "README.md").exists()

    def test_symlink_is_removed_not_followed(self, sample_tree, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "keep.txt").write_text("bleibt")
        (sample_tree / "docs" / "outside-link").symlink_to(outside)

        outcome = remove_tree(sample_tree / "docs", allow_recursive=True, confirmed=True)

        assert outcome.succeeded
        assert (outside / "keep.txt").read_text() == "bleibt"

    def test_missing_path(self, tmp_path):
        outcome = remove_tree(tmp_path / "missing")
        assert outcome.error == ErrorKind.NOT_FOUND
        assert outcome.failures == []

    def test_first_failure_aborts_and_keeps_root(self, sample_tree, monkeypatch):
        real_list_children = operations.list_children

        def flaky(path):
            if Path(path).name == "api":
                raise DirectoryUnreadableError(f"Verzeichnis nicht lesbar: {path}", path)
            return real_list_children(path)

        monkeypatch.setattr(operations, "list_children", flaky)

        outcome = remove_tree(sample_tree / "docs", allow_recursive=True, confirmed=True)

        assert not outcome.succeeded
        assert outcome.error == ErrorKind.PARTIAL_DELETE_FAILURE
        assert [f.path for f in outcome.failures] == [sample_tree / "docs" / "api"]
        assert (sample_tree / "docs").is_dir()
        assert (sample_tree / "docs" / "api" / "index.md").exists()

    def test_unreadable_root_is_rejected(self, sample_tree, monkeypatch):
        def denied(path):
            raise DirectoryUnreadableError(f"Verzeichnis nicht lesbar: {path}", path)

        monkeypatch.setattr(operations, "list_children", denied)

        outcome = remove_tree(sample_tree / "docs", allow_recursive=True, confirmed=True)

        assert outcome.error == ErrorKind.DIRECTORY_UNREADABLE
        assert (sample_tree / "docs" / "guide.txt").exists()

    def test_unlink_failure_stops_at_that_file(self, tmp_path, monkeypatch):
        target = tmp_path / "inbox"
        for name in ("f1", "f2", "f3", "f4", "f5"):
            write(target / name, name)

        real_list_children = operations.list_children
        real_unlink = operations.os.unlink

        def in_name_order(path):
            return sorted(real_list_children(path))

        def flaky_unlink(path, *args, **kwargs):
            if Path(path).name == "f3":
                raise PermissionError(errno.EACCES, "Permission denied", str(path))
            return real_unlink(path, *args, **kwargs)

        monkeypatch.setattr(operations, "list_children", in_name_order)
        monkeypatch.setattr(operations.os, "unlink", flaky_unlink)

        outcome = remove_tree(target, allow_recursive=True, confirmed=True)

        assert outcome.error == ErrorKind.PARTIAL_DELETE_FAILURE
        assert [(f.path, f.reason) for f in outcome.failures] == [(target / "f3", "Permission denied")]
        assert outcome.items_affected == 2
        assert sorted(p.name for p in target.iterdir()) == ["f3", "f4", "f5"]
