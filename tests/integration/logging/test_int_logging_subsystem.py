# tests/integration/logging/test_int_logging_subsystem.py — v2
"""Integration tests for the logging subsystem.

Covers: logging/audit.py driven by the cache engine, logging/logger.py with
session context, logging/handlers.py rotation.
No external services required.
"""
from __future__ import annotations
import json, logging, re
from pathlib import Path
import pytest

from vanish.engine.session import WorkflowSession, delete, restore
from vanish.logging.audit import AuditLog

STAMP = r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}"


def _lines(engine) -> list[str]:
    engine.audit.close()
    return engine.audit.text_log_path.read_text().splitlines()


class TestAuditTrailFromEngine:
    def test_delete_and_restore_lines(self, engine, make_file):
        f = make_file("a.txt", "0123456789")
        delete(engine, [f])
        restore(engine, ["a.txt"])
        lines = _lines(engine)
        assert re.fullmatch(rf"{STAMP} DELETE {re.escape(str(f))} -> \S+-a\.txt \(Size: 10 bytes\)", lines[0])
        assert re.fullmatch(rf"{STAMP} RESTORE {re.escape(str(f))} -> \S+-a\.txt \(Size: 10 bytes\)", lines[1])

    def test_failures_logged(self, engine, make_file, work_dir):
        delete(engine, [make_file("ok.txt"), work_dir / "ghost.txt"])
        lines = _lines(engine)
        assert any("DELETE_FAIL" in l and "ghost.txt" in l and "(Error:" in l for l in lines)

    def test_cleanup_and_purge_logged(self, engine, make_file, clock):
        delete(engine, [make_file("old.txt")])
        clock.advance(days=11)
        delete(engine, [make_file("new.txt")])
        clock.advance(seconds=1)
        WorkflowSession(engine).purge(0)
        ops = [l.split()[2] for l in _lines(engine)]
        assert ops == ["DELETE", "DELETE", "CLEANUP", "PURGE"]

    def test_clear_logged(self, engine, make_file):
        delete(engine, [make_file("a.txt")])
        WorkflowSession(engine).clear()
        assert re.fullmatch(rf"{STAMP} CLEAR_ALL Cache cleared", _lines(engine)[-1])

    def test_json_ledger_and_stats(self, engine, make_file):
        delete(engine, [make_file("a.txt", "12345"), make_file("b.txt", "123")])
        data = json.loads(engine.audit.json_log_path.read_text())
        assert [d["operation"] for d in data] == ["DELETE", "DELETE"]
        stats = engine.audit.stats()
        assert stats["operations_by_type"] == {"DELETE": 2}
        assert stats["total_size_processed"] == 8

    def test_rotation(self, tmp_path: Path, sample_entry):
        log = AuditLog(tmp_path / "logs", rotation="200B", retention=2)
        for _ in range(10):
            log.log_entry("DELETE", sample_entry)
        log.close()
        names = sorted(p.name for p in (tmp_path / "logs").iterdir())
        assert names == ["vanish.log", "vanish.log.1", "vanish.log.2"]


class TestDiagnosticLogging:
    @pytest.fixture(autouse=True)
    def _capture(self):
        from vanish.logging.logger import JsonFormatter
        root = logging.getLogger("vanish")
        records: list[str] = []

        class _ListHandler(logging.Handler):
            def emit(self, record):
                records.append(self.format(record))

        handler = _ListHandler()
        handler.setFormatter(JsonFormatter())
        old_level = root.level
        root.addHandler(handler); root.setLevel(logging.DEBUG)
        yield records
        root.removeHandler(handler); root.setLevel(old_level)

    def test_records_carry_operation_context(self, engine, make_file, _capture):
        f = make_file("a.txt")
        delete(engine, [f])
        parsed = [json.loads(r) for r in _capture]
        cached = [p for p in parsed if p["message"].startswith("Cached")]
        assert cached
        assert cached[0]["context"]["operation"] == "delete"
        assert cached[0]["context"]["item"] == str(f)
        assert "batch_id" in cached[0]["context"]

    def test_context_cleared_after_session(self, engine, make_file):
        from vanish.logging.context import get_context
        delete(engine, [make_file("a.txt")])
        assert get_context().as_dict() == {}
