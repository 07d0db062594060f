# tests/unit/core/test_unit_paths.py — v1
"""Tests for core/paths.py — configuration and target path rules."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from vanish.core import paths
from vanish.core.paths import expand_path, is_within, resolve_target


class TestExpandPath:
    def test_absolute_unchanged(self, isolated_home: Path):
        assert expand_path("/var/tmp/x") == Path("/var/tmp/x")

    def test_tilde_alone(self, isolated_home: Path):
        assert expand_path("~") == isolated_home

    def test_tilde_prefix(self, isolated_home: Path):
        assert expand_path("~/.cache/vanish") == isolated_home / ".cache" / "vanish"

    def test_bare_relative_is_home_relative(self, isolated_home: Path, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert expand_path(".cache/vanish") == isolated_home / ".cache" / "vanish"

    def test_unknown_home_returns_literal(self, monkeypatch):
        monkeypatch.setattr(paths, "home_directory", lambda: None)
        assert expand_path("~/x") == Path("~/x")
        assert expand_path("rel/dir") == Path("rel/dir")


class TestHomeDirectory:
    def test_runtime_error_yields_none(self, monkeypatch):
        def _boom() -> Path:
            raise RuntimeError("no home")

        monkeypatch.setattr(Path, "home", staticmethod(_boom))
        assert paths.home_directory() is None


class TestResolveTarget:
    def test_relative_is_cwd_relative(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert resolve_target("a.txt") == tmp_path / "a.txt"

    def test_tilde_expanded(self, isolated_home: Path):
        assert resolve_target("~/notes") == isolated_home / "notes"

    def test_symlink_not_resolved(self, tmp_path: Path):
        real = tmp_path / "real"
        real.mkdir()
        link = tmp_path / "link"
        os.symlink(real, link)
        assert resolve_target(link) == link

    def test_normalizes_dots(self, tmp_path: Path):
        assert resolve_target(tmp_path / "a" / ".." / "b") == tmp_path / "b"


class TestIsWithin:
    @pytest.mark.parametrize(
        "path, ancestor, expected",
        [
            ("/etc", "/etc", True),
            ("/etc/ssh/sshd_config", "/etc", True),
            ("/etcetera", "/etc", False),
            ("/home2/user", "/home", False),
            ("/", "/etc", False),
            ("/etc/", "/etc", True),
        ],
    )
    def test_component_wise(self, path: str, ancestor: str, expected: bool):
        assert is_within(Path(path), Path(ancestor)) is expected
