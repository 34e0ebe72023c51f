"""Tests für chmod/chown und Modus-Parsing."""

import os

import pytest

from conftest import write
from file_explorer.filesystem import (
    InvalidModeError,
    NotFoundError,
    UnknownPrincipalError,
    parse_mode,
    set_ownership,
    set_permissions,
)


class TestParseMode:

    @pytest.mark.parametrize("raw,expected", [
        ("755", 0o755),
        ("0644", 0o644),
        ("0o700", 0o700),
        (" 4755 ", 0o4755),
        (0o600, 0o600),
        (0, 0),
    ])
    def test_valid(self, raw, expected):
        assert parse_mode(raw) == expected

    @pytest.mark.parametrize("raw", ["", "rwx", "789", "77777", -1, 0o10000, True])
    def test_invalid(self, raw):
        with pytest.raises(InvalidModeError):
            parse_mode(raw)


class TestSetPermissions:

    def test_chmod(self, tmp_path):
        path = write(tmp_path / "a.txt", mode=0o644)

        meta = set_permissions(path, "600")

        assert meta.permission_bits == 0o600
        assert os.stat(path).st_mode & 0o7777 == 0o600

    def test_missing_path(self, tmp_path):
        with pytest.raises(NotFoundError):
            set_permissions(tmp_path / "missing", "644")

    def test_path_below_a_file(self, tmp_path):
        path = write(tmp_path / "a.txt")
        with pytest.raises(NotFoundError):
            set_permissions(path / "sub", "644")

    def test_invalid_mode_leaves_file_untouched(self, tmp_path):
        path = write(tmp_path / "a.txt", mode=0o644)
        with pytest.raises(InvalidModeError):
            set_permissions(path, "9")
        assert os.stat(path).st_mode & 0o7777 == 0o644


class TestSetOwnership:

    def test_chown_to_own_numeric_ids(self, tmp_path):
        path = write(tmp_path / "a.txt")

        meta = set_ownership(path, str(os.getuid()), str(os.getgid()))

        assert meta.uid == os.getuid()
        assert meta.gid == os.getgid()

    def test_unknown_user(self, tmp_path):
        path = write(tmp_path / "a.txt")
        with pytest.raises(UnknownPrincipalError):
            set_ownership(path, "kein-solcher-benutzer-xyz")

    def test_unknown_group(self, tmp_path):
        path = write(tmp_path / "a.txt")
        with pytest.raises(UnknownPrincipalError):
            set_ownership(path, group="keine-solche-gruppe-xyz")

    def test_requires_owner_or_group(self, tmp_path):
        path = write(tmp_path / "a.txt")
        with pytest.raises(ValueError):
            set_ownership(path)

    def test_missing_path(self, tmp_path):
        with pytest.raises(NotFoundError):
            set_ownership(tmp_path / "missing", str(os.getuid()))

    def test_path_below_a_file(self, tmp_path):
        path = write(tmp_path / "a.txt")
        with pytest.raises(NotFoundError):
            set_ownership(path / "sub", str(os.getuid()))
