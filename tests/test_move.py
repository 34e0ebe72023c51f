"""Tests für Verschieben, Cross-Device-Fallback und Umbenennen."""

import errno

from conftest import snapshot, write
from file_explorer.filesystem import ErrorKind, TreeOperationOutcome, move_tree, rename_entry
from file_explorer.filesystem import operations


def _cross_device(src, dst):
    raise OSError(errno.EXDEV, "Invalid cross-device link")


class TestMoveTree:

    def test_move_file_to_new_name(self, tmp_path):
        source = write(tmp_path / "a.txt", "inhalt")
        dest = tmp_path / "b.txt"

        outcome = move_tree(source, dest)

        assert outcome.succeeded
        assert outcome.destination == dest
        assert not source.exists()
        assert dest.read_text() == "inhalt"

    def test_move_into_existing_directory_keeps_basename(self, sample_tree, tmp_path):
        target_dir = tmp_path / "archive"
        target_dir.mkdir()
        expected = snapshot(sample_tree / "docs")

        outcome = move_tree(sample_tree / "docs", target_dir)

        assert outcome.succeeded
        assert outcome.destination == target_dir / "docs"
        assert not (sample_tree / "docs").exists()
        assert snapshot(target_dir / "docs") == expected

    def test_name_clash_inside_destination_directory(self, sample_tree, tmp_path):
        target_dir = tmp_path / "archive"
        (target_dir / "docs").mkdir(parents=True)

        outcome = move_tree(sample_tree / "docs", target_dir)

        assert outcome.error == ErrorKind.DESTINATION_EXISTS
        assert (sample_tree / "docs").exists()

    def test_destination_file_is_rejected(self, tmp_path):
        source = write(tmp_path / "a.txt", "a")
        dest = write(tmp_path / "b.txt", "b")

        outcome = move_tree(source, dest)

        assert outcome.error == ErrorKind.DESTINATION_IS_FILE
        assert dest.read_text() == "b"
        assert source.exists()

    def test_move_into_itself_is_rejected(self, sample_tree):
        outcome = move_tree(sample_tree / "docs", sample_tree / "docs" / "api" / "inner")

        assert outcome.error == ErrorKind.DESTINATION_INSIDE_SOURCE
        assert (sample_tree / "docs" / "guide.txt").exists()

    def test_missing_source(self, tmp_path):
        outcome = move_tree(tmp_path / "missing", tmp_path / "dest")
        assert outcome.error == ErrorKind.SOURCE_NOT_FOUND

    def test_uninspectable_destination_is_denied(self, tmp_path, locked_lstat):
        source = write(tmp_path / "a.txt", "inhalt")

        outcome = move_tree(source, tmp_path / "locked" / "b.txt")

        assert outcome.error == ErrorKind.PERMISSION_DENIED
        assert source.read_text() == "inhalt"

    def test_atomic_move_counts_every_entry(self, sample_tree, tmp_path):
        outcome = move_tree(sample_tree, tmp_path / "moved")

        assert outcome.succeeded
        # same figure as the copy-and-delete fallback: 4 directories, 5 files
        assert outcome.items_affected == 9
        assert (tmp_path / "moved" / "docs" / "api" / "index.md").exists()

    def test_atomic_move_of_file_counts_one(self, tmp_path):
        source = write(tmp_path / "a.txt")
        assert move_tree(source, tmp_path / "b.txt").items_affected == 1


class TestCrossDeviceFallback:

    def test_copy_then_delete_when_rename_fails(self, sample_tree, tmp_path, monkeypatch):
        expected = snapshot(sample_tree)
        monkeypatch.setattr(operations.os, "rename", _cross_device)
        dest = tmp_path / "moved"

        outcome = move_tree(sample_tree, dest)

        assert outcome.succeeded, outcome.failures
        assert outcome.destination == dest
        assert outcome.items_affected == 9
        assert not sample_tree.exists()
        assert snapshot(dest) == expected

    def test_delete_failure_keeps_both_copies(self, sample_tree, tmp_path, monkeypatch):
        monkeypatch.setattr(operations.os, "rename", _cross_device)

        def failing_remove(path, allow_recursive=False, confirmed=False):
            outcome = TreeOperationOutcome(operation="delete", succeeded=False, error=ErrorKind.PARTIAL_DELETE_FAILURE)
            outcome.record_failure(path / "docs", "Permission denied")
            return outcome

        monkeypatch.setattr(operations, "remove_tree", failing_remove)
        dest = tmp_path / "moved"

        outcome = move_tree(sample_tree, dest)

        assert not outcome.succeeded
        assert outcome.error == ErrorKind.COPIED_BUT_SOURCE_RETAINED
        assert outcome.failures[0].path == sample_tree / "docs"
        assert sample_tree.exists()
        assert (dest / "docs" / "guide.txt").exists()

    def test_copy_failure_leaves_source_untouched(self, sample_tree, tmp_path, monkeypatch):
        monkeypatch.setattr(operations.os, "rename", _cross_device)

        def failing_copy(source, destination):
            outcome = TreeOperationOutcome(operation="copy", succeeded=False, error=ErrorKind.COPY_FAILED)
            outcome.record_failure(source, "No space left on device")
            return outcome

        monkeypatch.setattr(operations, "copy_tree", failing_copy)

        outcome = move_tree(sample_tree, tmp_path / "moved")

        assert outcome.error == ErrorKind.COPY_FAILED
        assert outcome.failures[0].reason == "No space left on device"
        assert (sample_tree / "docs" / "guide.txt").exists()


class TestRenameEntry:

    def test_rename(self, sample_tree):
        outcome = rename_entry(sample_tree / "README.md", "LIESMICH.md")

        assert outcome.succeeded
        assert outcome.destination == sample_tree / "LIESMICH.md"
        assert (sample_tree / "LIESMICH.md").exists()
        assert not (sample_tree / "README.md").exists()

    def test_existing_name_is_rejected(self, sample_tree):
        outcome = rename_entry(sample_tree / "README.md", "run.sh")
        assert outcome.error == ErrorKind.DESTINATION_EXISTS
        assert (sample_tree / "README.md").exists()

    def test_names_with_separators_are_rejected(self, sample_tree):
        for name in ("", ".", "..", "sub/name"):
            assert rename_entry(sample_tree / "README.md", name).error == ErrorKind.INVALID_NAME

    def test_missing_entry(self, sample_tree):
        assert rename_entry(sample_tree / "missing", "x").error == ErrorKind.NOT_FOUND

    def test_uninspectable_entry_is_denied(self, tmp_path, locked_lstat):
        outcome = rename_entry(tmp_path / "locked" / "a.txt", "b.txt")

        assert outcome.error == ErrorKind.PERMISSION_DENIED
        assert outcome.destination == tmp_path / "locked" / "b.txt"
