"""Shared fixtures: small directory trees under tmp_path."""

import errno
import os
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))


def write(path: Path, content: str = "", mode: int = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    if mode is not None:
        path.chmod(mode)
    return path


@pytest.fixture
def sample_tree(tmp_path):
    """
    project/
        README.md
        run.sh          (0o755)
        .hidden
        docs/
            guide.txt
            api/
                index.md
        empty/
    """
    root = tmp_path / "project"
    write(root / "README.md", "# Projekt\n")
    write(root / "run.sh", "#!/bin/sh\necho hi\n", mode=0o755)
    write(root / ".hidden", "geheim")
    write(root / "docs" / "guide.txt", "Anleitung")
    write(root / "docs" / "api" / "index.md", "API")
    (root / "empty").mkdir()
    return root


@pytest.fixture
def locked_lstat(monkeypatch):
    """os.lstat fails with EACCES for every path below a directory named ``locked``."""
    real_lstat = os.lstat

    def lstat(path, *args, **kwargs):
        if isinstance(path, (str, os.PathLike)) and "locked" in Path(path).parts:
            raise PermissionError(errno.EACCES, "Permission denied", str(path))
        return real_lstat(path, *args, **kwargs)

    monkeypatch.setattr(os, "lstat", lstat)


@pytest.fixture
def search_tree_root(tmp_path):
    """a/Report.txt, b/monthly_report/, c/readme.md"""
    root = tmp_path / "search"
    write(root / "a" / "Report.txt", "q1")
    (root / "b" / "monthly_report").mkdir(parents=True)
    write(root / "c" / "readme.md", "")
    return root


def snapshot(root: Path) -> dict:
    """Relative path -> (kind, content or link target, permission bits)."""
    result = {}
    for path in sorted(root.rglob("*")):
        rel = str(path.relative_to(root))
        if path.is_symlink():
            result[rel] = ("link", str(path.readlink()), None)
        elif path.is_dir():
            result[rel] = ("dir", None, path.stat().st_mode & 0o7777)
        else:
            result[rel] = ("file", path.read_bytes(), path.stat().st_mode & 0o7777)
    return result
