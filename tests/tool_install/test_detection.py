"""
Tests for L3 detection — fast vs thorough, reconciliation, service probes.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from hudo.core.models.state import InstallRecord
from hudo.core.models.tool import InstalledByHudo, InstalledExternal, NotInstalled
from hudo.core.services.tool_install.detection.detector import Probe, classify, detect_all
from hudo.core.services.tool_install.detection.service_status import (
    ServiceState,
    parse_sc_output,
    parse_systemd_props,
)
from hudo.core.services.tool_install.detection.tool_version import get_tool_version
from hudo.core.services.tool_install.installers import INSTALLERS

pytestmark = pytest.mark.usefixtures("isolated_system")

GO = INSTALLERS["go"]


def _install_go_files(root: Path) -> Path:
    home = root / "lang" / "go"
    (home / "bin").mkdir(parents=True)
    (home / "bin" / "go.exe").write_text("fake")
    return home


class TestClassify:
    """Reconciliation rules, independent of I/O."""

    def test_record_and_files(self):
        record = InstallRecord(tool_id="go", version="1.24.0", install_path="/h/go", configured=False)
        result = classify(record, Probe(owned=True, found=True))
        assert result == InstalledByHudo(version="1.24.0", path="/h/go", configured=False)

    def test_record_without_files_is_stale(self):
        record = InstallRecord(tool_id="go", version="1.24.0", install_path="/h/go")
        assert classify(record, Probe()) == NotInstalled(stale_record=True)

    def test_found_without_record_is_external(self):
        result = classify(None, Probe(found=True, version="1.22.0", path="/usr/local/go"))
        assert isinstance(result, InstalledExternal)

    def test_nothing(self):
        assert classify(None, Probe()) == NotInstalled()


class TestInstallerDetect:
    def test_fast_reads_registry_only(self, install_ctx):
        # no files on disk; fast mode trusts the record
        install_ctx.registry.record_install("go", "1.24.0", "/nowhere/go")
        result = GO.detect("fast", install_ctx.registry, install_ctx.config, platform=install_ctx.platform)
        assert isinstance(result, InstalledByHudo)
        assert result.configured is False

    def test_thorough_stale_record(self, install_ctx):
        install_ctx.registry.record_install("go", "1.24.0", "/nowhere/go")
        result = GO.detect("thorough", install_ctx.registry, install_ctx.config, platform=install_ctx.platform)
        assert result == NotInstalled(stale_record=True)

    def test_thorough_owned(self, install_ctx):
        home = _install_go_files(install_ctx.config.root_path)
        install_ctx.registry.record_install("go", "1.24.0", str(home))
        result = GO.detect("thorough", install_ctx.registry, install_ctx.config, platform=install_ctx.platform)
        assert result == InstalledByHudo(version="1.24.0", path=str(home), configured=False)

    def test_files_in_hudo_dir_without_record_are_external(self, install_ctx):
        _install_go_files(install_ctx.config.root_path)
        with patch(
            "hudo.core.services.tool_install.installers.base.get_tool_version",
            return_value="1.24.0",
        ):
            result = GO.detect("thorough", install_ctx.registry, install_ctx.config, platform=install_ctx.platform)
        assert isinstance(result, InstalledExternal)
        assert result.version == "1.24.0"

    def test_on_path_is_external(self, install_ctx, monkeypatch):
        monkeypatch.setattr("shutil.which", lambda name, *a, **kw: f"/usr/local/go/bin/{name}")
        with patch(
            "hudo.core.services.tool_install.installers.base.get_tool_version",
            return_value="1.22.0",
        ):
            result = GO.detect("thorough", install_ctx.registry, install_ctx.config, platform=install_ctx.platform)
        assert result == InstalledExternal(version="1.22.0", path="/usr/local/go/bin")

    def test_pgsql_service_without_files(self, install_ctx, monkeypatch):
        monkeypatch.setattr(
            "hudo.core.services.tool_install.detection.service_status.query_service_state",
            lambda *a, **kw: ServiceState.STOPPED,
        )
        result = INSTALLERS["pgsql"].detect(
            "thorough", install_ctx.registry, install_ctx.config, platform=install_ctx.platform,
        )
        assert isinstance(result, InstalledExternal)
        assert result.path == "service:PostgreSQL"


class TestDetectAll:
    def test_all_tools_in_order(self, install_ctx):
        results = detect_all(
            list(INSTALLERS.values()), install_ctx.registry, install_ctx.config,
            platform=install_ctx.platform,
        )
        assert list(results) == list(INSTALLERS)
        assert all(isinstance(r, NotInstalled) for r in results.values())

    def test_one_failing_probe_is_isolated(self, install_ctx, monkeypatch):
        def _boom(*a, **kw):
            raise RuntimeError("probe crashed")

        monkeypatch.setattr(GO, "probe", _boom)
        results = detect_all(
            [INSTALLERS["uv"], GO], install_ctx.registry, install_ctx.config,
            platform=install_ctx.platform,
        )
        assert results["go"] == NotInstalled(error="probe crashed")
        assert results["uv"] == NotInstalled()


class TestToolVersion:
    def test_git_windows_suffix(self):
        completed = type("R", (), {"stdout": "git version 2.47.1.windows.2\n", "stderr": ""})()
        with patch("subprocess.run", return_value=completed):
            assert get_tool_version("git", "git") == "2.47.1.2"

    def test_java_reads_stderr(self):
        completed = type("R", (), {"stdout": "", "stderr": 'openjdk version "21.0.5" 2024-10-15\n'})()
        with patch("subprocess.run", return_value=completed):
            assert get_tool_version("jdk", "java") == "21"

    def test_missing_executable(self):
        with patch("subprocess.run", side_effect=FileNotFoundError("nope")):
            assert get_tool_version("go", "/missing/go") is None


class TestServiceParsing:
    @pytest.mark.parametrize("output, state", [
        ("SERVICE_NAME: PostgreSQL\n        STATE              : 4  RUNNING\n", ServiceState.RUNNING),
        ("        STATE              : 1  STOPPED\n", ServiceState.STOPPED),
        ("        STATE              : 2  START_PENDING\n", ServiceState.PENDING),
        ("garbage", ServiceState.UNKNOWN),
    ])
    def test_sc(self, output, state):
        assert parse_sc_output(output) == state

    @pytest.mark.parametrize("props, state", [
        ({"loadstate": "not-found", "activestate": "inactive"}, ServiceState.NOT_FOUND),
        ({"loadstate": "loaded", "activestate": "active"}, ServiceState.RUNNING),
        ({"loadstate": "loaded", "activestate": "failed"}, ServiceState.STOPPED),
        ({"loadstate": "loaded", "activestate": "activating"}, ServiceState.PENDING),
    ])
    def test_systemd(self, props, state):
        assert parse_systemd_props(props) == state
