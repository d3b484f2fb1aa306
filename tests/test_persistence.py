"""
Tests for the audit ledger.
"""

import json
from pathlib import Path

from devsetup.core.persistence.audit import AuditEntry, AuditWriter


class TestAuditWriter:
    def test_write_and_read(self, tmp_path: Path):
        writer = AuditWriter(tmp_path / "audit.ndjson")
        writer.write(AuditEntry(operation_id="op-1", status="ok", actions_total=3))
        writer.write(AuditEntry(operation_id="op-2", status="failed", halted_at="neovim:install"))

        entries = writer.read_all()
        assert [e.operation_id for e in entries] == ["op-1", "op-2"]
        assert entries[1].halted_at == "neovim:install"

    def test_append_only_ndjson(self, tmp_path: Path):
        path = tmp_path / "logs" / "audit.ndjson"
        writer = AuditWriter(path)
        writer.write(AuditEntry(operation_id="op-1"))
        writer.write(AuditEntry(operation_id="op-2"))

        lines = path.read_text().splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["operation_id"] == "op-1"

    def test_read_missing(self, tmp_path: Path):
        assert AuditWriter(tmp_path / "none.ndjson").read_all() == []

    def test_corrupt_lines_skipped(self, tmp_path: Path):
        path = tmp_path / "audit.ndjson"
        writer = AuditWriter(path)
        writer.write(AuditEntry(operation_id="op-1"))
        with path.open("a") as f:
            f.write("not json\n\n")
            f.write(json.dumps({"actions_total": "many"}) + "\n")
        writer.write(AuditEntry(operation_id="op-2"))

        assert [e.operation_id for e in writer.read_all()] == ["op-1", "op-2"]

    def test_read_recent(self, tmp_path: Path):
        writer = AuditWriter(tmp_path / "audit.ndjson")
        for i in range(5):
            writer.write(AuditEntry(operation_id=f"op-{i}"))
        assert [e.operation_id for e in writer.read_recent(2)] == ["op-3", "op-4"]

    def test_unwritable_path_does_not_raise(self, tmp_path: Path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        AuditWriter(blocker / "audit.ndjson").write(AuditEntry(operation_id="op-1"))
