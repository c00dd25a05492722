"""
Tests for persistence — state file, registry and history ledger.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from hudo.core.models.state import InstallRecord, RegistryState
from hudo.core.persistence.audit import HistoryEntry, HistoryWriter
from hudo.core.persistence.registry import StateRegistry
from hudo.core.persistence.state_file import load_registry, save_registry


class TestStateFile:
    """Tests for state file persistence."""

    def test_save_and_load(self, tmp_path: Path):
        """State roundtrips through save/load."""
        path = tmp_path / "state.json"
        state = RegistryState()
        state.tools["go"] = InstallRecord(tool_id="go", version="1.24.0", install_path="/h/lang/go")

        save_registry(state, path)
        loaded = load_registry(path)
        assert loaded.tools["go"].version == "1.24.0"
        assert loaded.tools["go"].configured is False

    def test_load_missing_returns_fresh(self, tmp_path: Path):
        state = load_registry(tmp_path / "nonexistent.json")
        assert state.tools == {}

    def test_load_corrupt_is_quarantined(self, tmp_path: Path):
        """Corrupt JSON is moved aside and a fresh state returned."""
        path = tmp_path / "state.json"
        path.write_text("not json at all {{{")

        state = load_registry(path)

        assert state.tools == {}
        assert not path.exists()
        backups = list(tmp_path.glob("state.json.corrupt-*"))
        assert len(backups) == 1
        assert backups[0].read_text() == "not json at all {{{"

    def test_load_wrong_shape_is_quarantined(self, tmp_path: Path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"tools": {"go": {"version": 5}}}))
        assert load_registry(path).tools == {}
        assert list(tmp_path.glob("state.json.corrupt-*"))

    def test_save_creates_directories(self, tmp_path: Path):
        path = tmp_path / "deep" / "nested" / "state.json"
        save_registry(RegistryState(), path)
        assert path.is_file()

    def test_save_atomic_no_partial(self, tmp_path: Path):
        """No temp files are left behind."""
        path = tmp_path / "state.json"
        save_registry(RegistryState(), path)
        assert list(tmp_path.glob(".state_*.tmp")) == []

    def test_failed_save_keeps_previous_file(self, tmp_path: Path):
        """A crash mid-write leaves the old document intact."""
        path = tmp_path / "state.json"
        old = RegistryState()
        old.tools["uv"] = InstallRecord(tool_id="uv", version="0.6.3", install_path="/h/tools/uv")
        save_registry(old, path)
        before = path.read_text()

        with patch("hudo.core.persistence.state_file.os.fsync", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                save_registry(RegistryState(), path)

        assert path.read_text() == before
        assert list(tmp_path.glob(".state_*.tmp")) == []


class TestStateRegistry:
    """Tests for the registry facade."""

    def test_record_install_is_unconfigured(self, tmp_path: Path):
        reg = StateRegistry(tmp_path / "state.json")
        record = reg.record_install("go", "1.24.0", "/h/lang/go")
        assert record.configured is False
        assert record.managed is True
        assert "go" in reg

    def test_mark_configured_persists(self, tmp_path: Path):
        path = tmp_path / "state.json"
        reg = StateRegistry(path)
        reg.record_install("go", "1.24.0", "/h/lang/go")
        reg.mark_configured("go")

        reopened = StateRegistry(path)
        assert reopened.get("go").configured is True

    def test_mark_configured_unknown_raises(self, tmp_path: Path):
        reg = StateRegistry(tmp_path / "state.json")
        with pytest.raises(KeyError):
            reg.mark_configured("go")

    def test_one_record_per_tool(self, tmp_path: Path):
        reg = StateRegistry(tmp_path / "state.json")
        reg.record_install("go", "1.23.0", "/h/lang/go")
        reg.record_install("go", "1.24.0", "/h/lang/go")
        assert list(reg.records()) == ["go"]
        assert reg.get("go").version == "1.24.0"

    def test_remove(self, tmp_path: Path):
        reg = StateRegistry(tmp_path / "state.json")
        reg.record_install("go", "1.24.0", "/h/lang/go")
        assert reg.remove("go") is True
        assert reg.remove("go") is False
        assert reg.get("go") is None

    def test_get_returns_copy(self, tmp_path: Path):
        reg = StateRegistry(tmp_path / "state.json")
        reg.record_install("go", "1.24.0", "/h/lang/go")
        reg.get("go").version = "tampered"
        assert reg.get("go").version == "1.24.0"

    def test_transaction_rolls_back_on_error(self, tmp_path: Path):
        reg = StateRegistry(tmp_path / "state.json")
        reg.record_install("go", "1.24.0", "/h/lang/go")

        with pytest.raises(RuntimeError):
            with reg.transaction() as state:
                state.tools.pop("go")
                raise RuntimeError("boom")

        assert reg.get("go") is not None

    def test_failed_save_keeps_live_state(self, tmp_path: Path):
        reg = StateRegistry(tmp_path / "state.json")
        with patch(
            "hudo.core.persistence.registry.save_registry",
            side_effect=OSError("read-only"),
        ):
            with pytest.raises(OSError):
                reg.record_install("go", "1.24.0", "/h/lang/go")
        assert reg.get("go") is None


class TestHistory:
    """Tests for the NDJSON operation history."""

    def test_write_and_read(self, tmp_path: Path):
        writer = HistoryWriter(tmp_path / "history.ndjson")
        writer.write(HistoryEntry(operation="install", tool_id="go", status="ok", version="1.24.0"))
        writer.write(HistoryEntry(operation="uninstall", tool_id="go", status="ok"))

        entries = writer.read_all()
        assert [e.operation for e in entries] == ["install", "uninstall"]
        assert entries[0].version == "1.24.0"

    def test_append_only(self, tmp_path: Path):
        path = tmp_path / "history.ndjson"
        writer = HistoryWriter(path)
        writer.write(HistoryEntry(operation="install", tool_id="go", status="ok"))
        first = path.read_text()
        writer.write(HistoryEntry(operation="install", tool_id="uv", status="ok"))
        assert path.read_text().startswith(first)

    def test_read_recent(self, tmp_path: Path):
        writer = HistoryWriter(tmp_path / "history.ndjson")
        for i in range(5):
            writer.write(HistoryEntry(operation="install", tool_id=f"t{i}", status="ok"))
        assert [e.tool_id for e in writer.read_recent(2)] == ["t3", "t4"]

    def test_corrupt_lines_skipped(self, tmp_path: Path):
        path = tmp_path / "history.ndjson"
        writer = HistoryWriter(path)
        writer.write(HistoryEntry(operation="install", tool_id="go", status="ok"))
        with path.open("a") as f:
            f.write("garbage\n")
        writer.write(HistoryEntry(operation="install", tool_id="uv", status="ok"))
        assert [e.tool_id for e in writer.read_all()] == ["go", "uv"]

    def test_missing_file(self, tmp_path: Path):
        assert HistoryWriter(tmp_path / "none.ndjson").read_all() == []
