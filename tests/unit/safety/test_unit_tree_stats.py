# tests/unit/safety/test_unit_tree_stats.py — v1
"""Tests for safety/tree_stats.py — single-walk size and count."""

from __future__ import annotations

import os
from pathlib import Path

from vanish.safety.tree_stats import path_stats, walk_tree


def _tree(root: Path) -> Path:
    (root / "sub" / "deeper").mkdir(parents=True)
    (root / "a.txt").write_bytes(b"x" * 10)
    (root / "sub" / "b.txt").write_bytes(b"y" * 20)
    (root / "sub" / "deeper" / "c.txt").write_bytes(b"z" * 5)
    return root


class TestWalkTree:
    def test_counts_all_descendants(self, tmp_path: Path):
        stats = walk_tree(_tree(tmp_path / "t"))
        # a.txt, sub, b.txt, deeper, c.txt
        assert stats.count == 5
        assert stats.size == 35

    def test_empty_directory(self, tmp_path: Path):
        (tmp_path / "empty").mkdir()
        stats = walk_tree(tmp_path / "empty")
        assert stats.count == 0
        assert stats.size == 0

    def test_symlinks_not_followed(self, tmp_path: Path):
        root = tmp_path / "t"
        root.mkdir()
        big = tmp_path / "outside"
        big.mkdir()
        (big / "huge.bin").write_bytes(b"0" * 1000)
        os.symlink(big, root / "link")
        stats = walk_tree(root)
        assert stats.count == 1
        assert stats.size < 1000


class TestPathStats:
    def test_file(self, tmp_path: Path):
        f = tmp_path / "f.bin"
        f.write_bytes(b"1234")
        stats = path_stats(f)
        assert stats.size == 4
        assert stats.count == 0

    def test_directory_walks(self, tmp_path: Path):
        stats = path_stats(_tree(tmp_path / "t"))
        assert stats.size == 35

    def test_symlink_to_directory_is_not_walked(self, tmp_path: Path):
        target = _tree(tmp_path / "t")
        link = tmp_path / "link"
        os.symlink(target, link)
        assert path_stats(link).count == 0
