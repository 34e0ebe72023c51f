"""Tests für zip/unzip über die System-Werkzeuge."""

import shutil

import pytest

from conftest import snapshot
from file_explorer.archive import create_archive, extract_archive
from file_explorer.filesystem import NotFoundError
from file_explorer.settings import settings

needs_zip = pytest.mark.skipif(
    shutil.which("zip") is None or shutil.which("unzip") is None,
    reason="zip/unzip nicht installiert",
)


@needs_zip
def test_zip_and_unzip(sample_tree, tmp_path):
    archive = tmp_path / "project.zip"

    created = create_archive(sample_tree, archive)
    assert created.succeeded, created.message
    assert archive.is_file()

    restored = tmp_path / "restored"
    extracted = extract_archive(archive, restored)
    assert extracted.succeeded, extracted.message

    assert (restored / "project" / "docs" / "api" / "index.md").read_text() == "API"
    assert set(snapshot(restored / "project")) == set(snapshot(sample_tree))


@needs_zip
def test_unzip_invalid_archive_reports_failure(tmp_path):
    archive = tmp_path / "broken.zip"
    archive.write_text("kein zip")

    result = extract_archive(archive, tmp_path / "out")

    assert not result.succeeded
    assert result.returncode != 0
    assert result.message


def test_missing_tool(sample_tree, tmp_path, monkeypatch):
    monkeypatch.setattr(settings.archive, "zip_bin", "kein-zip-programm-xyz")

    result = create_archive(sample_tree, tmp_path / "a.zip")

    assert not result.succeeded
    assert "nicht installiert" in result.message


def test_missing_source_raises(tmp_path):
    with pytest.raises(NotFoundError):
        create_archive(tmp_path / "missing", tmp_path / "a.zip")


def test_missing_archive_raises(tmp_path):
    with pytest.raises(NotFoundError):
        extract_archive(tmp_path / "missing.zip", tmp_path / "out")
