# tests/unit/test_main.py — v2
"""Tests for main.py — CLI entry point."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from vanish.main import _ask, _build_parser, main


@pytest.fixture
def config_file(tmp_path: Path, cache_dir: Path, log_dir: Path) -> Path:
    path = tmp_path / "vanish.toml"
    path.write_text(
        f'[cache]\ndirectory = "{cache_dir}"\ndays = 10\n'
        f'[logging]\ndirectory = "{log_dir}"\nlevel = "debug"\n'
    )
    return path


@pytest.fixture(autouse=True)
def _reset_vanish_logger():
    yield
    root = logging.getLogger("vanish")
    for handler in list(root.handlers):
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


def _run(config_file: Path, *args: str) -> int:
    return main(["-c", str(config_file), *args])


# ---------------------------------------------------------------------------
# Parser tests
# ---------------------------------------------------------------------------


class TestBuildParser:
    def test_version_flag(self, capsys):
        parser = _build_parser()
        with pytest.raises(SystemExit) as exc_info:
            parser.parse_args(["--version"])
        assert exc_info.value.code == 0
        assert "vanish" in capsys.readouterr().out

    def test_delete_subcommand(self):
        args = _build_parser().parse_args(["delete", "a", "b", "--noconfirm"])
        assert args.command == "delete"
        assert args.paths == ["a", "b"]
        assert args.noconfirm is True

    def test_restore_requires_pattern(self):
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["restore"])

    def test_purge_days_int(self):
        args = _build_parser().parse_args(["purge", "7"])
        assert args.days == 7
        assert args.noconfirm is False

    def test_global_options(self):
        args = _build_parser().parse_args(["-v", "-c", "/x/y.toml", "list"])
        assert args.verbose is True
        assert args.config == Path("/x/y.toml")


# ---------------------------------------------------------------------------
# Command tests
# ---------------------------------------------------------------------------


class TestMain:
    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_default_config_created(self, isolated_home: Path, capsys):
        assert main(["config-path"]) == 0
        expected = isolated_home / ".config" / "vanish" / "vanish.toml"
        assert capsys.readouterr().out.strip() == str(expected)
        assert expected.exists()

    def test_bad_config(self, tmp_path: Path, capsys):
        cfg = tmp_path / "bad.toml"
        cfg.write_text("[cache\n")
        assert main(["-c", str(cfg), "list"]) == 1
        assert "error parsing" in capsys.readouterr().err

    def test_path(self, config_file: Path, cache_dir: Path, capsys):
        assert _run(config_file, "path") == 0
        assert capsys.readouterr().out.strip() == str(cache_dir)

    def test_delete_noconfirm_then_list_and_restore(self, config_file: Path, make_file, capsys):
        f = make_file("a.txt", "0123456789")
        assert _run(config_file, "delete", str(f), "--noconfirm") == 0
        assert not f.exists()
        assert "Deleted 1 item(s)." in capsys.readouterr().out

        assert _run(config_file, "list") == 0
        out = capsys.readouterr().out
        assert "Cached Files (1 items):" in out
        assert str(f) in out

        assert _run(config_file, "restore", "a.txt", "--noconfirm") == 0
        assert f.read_text() == "0123456789"

    def test_delete_partial_failure_exit_code(self, config_file: Path, make_file, work_dir: Path, capsys):
        f = make_file("a.txt")
        code = _run(config_file, "delete", str(f), str(work_dir / "missing.txt"), "--noconfirm")
        assert code == 1
        out = capsys.readouterr().out
        assert "not found" in out
        assert "Deleted 1 item(s), 1 failed." in out

    def test_delete_prompt_declined(self, config_file: Path, make_file, monkeypatch, capsys):
        f = make_file("a.txt")
        monkeypatch.setattr("builtins.input", lambda prompt="": "n")
        assert _run(config_file, "delete", str(f)) == 0
        assert f.exists()
        assert "Operation cancelled." in capsys.readouterr().out

    def test_delete_prompt_accepted(self, config_file: Path, make_file, monkeypatch, capsys):
        f = make_file("a.txt")
        monkeypatch.setattr("builtins.input", lambda prompt="": "y")
        assert _run(config_file, "delete", str(f)) == 0
        assert not f.exists()
        assert str(f) in capsys.readouterr().out

    def test_purge_and_stats(self, config_file: Path, make_file, capsys):
        _run(config_file, "delete", str(make_file("a.txt")), "--noconfirm")
        assert _run(config_file, "stats") == 0
        assert "Total Items: 1" in capsys.readouterr().out
        assert _run(config_file, "purge", "9999", "--noconfirm") == 0
        assert "Purged 0 item(s)." in capsys.readouterr().out

    def test_clear_declined(self, config_file: Path, make_file, monkeypatch, capsys):
        _run(config_file, "delete", str(make_file("a.txt")), "--noconfirm")
        monkeypatch.setattr("builtins.input", lambda prompt="": "")
        assert _run(config_file, "clear") == 0
        assert "Operation cancelled." in capsys.readouterr().out
        assert _run(config_file, "stats") == 0
        assert "Total Items: 1" in capsys.readouterr().out

    def test_info_and_log_stats(self, config_file: Path, make_file, capsys):
        _run(config_file, "delete", str(make_file("notes.md")), "--noconfirm")
        capsys.readouterr()
        assert _run(config_file, "info", "NOTES") == 0
        assert "Original Path:" in capsys.readouterr().out
        assert _run(config_file, "log-stats") == 0
        assert "DELETE: 1" in capsys.readouterr().out

    def test_verbose_writes_debug_log(self, config_file: Path, log_dir: Path):
        assert _run(config_file, "-v", "list") == 0
        logging.getLogger("vanish.main").debug("verbose detail")
        for handler in logging.getLogger("vanish").handlers:
            handler.flush()
        assert "verbose detail" in (log_dir / "vanish-debug.log").read_text()

    def test_log_stats_disabled(self, tmp_path: Path, capsys):
        cfg = tmp_path / "off.toml"
        cfg.write_text("[logging]\nenabled = false\n")
        assert main(["-c", str(cfg), "log-stats"]) == 1
        assert "disabled" in capsys.readouterr().err

    def test_keyboard_interrupt(self, config_file: Path, monkeypatch):
        def interrupted(*args, **kwargs):
            raise KeyboardInterrupt

        monkeypatch.setattr("vanish.engine.cache_engine.CacheEngine.list_entries", interrupted)
        assert _run(config_file, "list") == 130

    def test_corrupt_index(self, config_file: Path, cache_dir: Path, capsys):
        cache_dir.mkdir(parents=True)
        (cache_dir / "index.json").write_text("not json")
        assert _run(config_file, "list") == 1
        assert "unreadable" in capsys.readouterr().err


class TestAsk:
    @pytest.mark.parametrize("answer, expected", [("y", True), ("YES", True), ("n", False), ("", False)])
    def test_answers(self, monkeypatch, answer: str, expected: bool):
        monkeypatch.setattr("builtins.input", lambda prompt="": answer)
        assert _ask("Proceed?") is expected

    def test_eof_declines(self, monkeypatch):
        def eof(prompt=""):
            raise EOFError

        monkeypatch.setattr("builtins.input", eof)
        assert _ask("Proceed?") is False
