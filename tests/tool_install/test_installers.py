"""
Tests for per-tool installer behavior — asset layout, env actions, configure.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from hudo.core.models.tool import (
    InstallOutcome,
    PrependPath,
    ResolvedDownload,
    SetVariable,
    ToolCategory,
    VersionSource,
)
from hudo.core.services.tool_install.detection.service_status import ServiceState
from hudo.core.services.tool_install.domain.dag import install_order
from hudo.core.services.tool_install.domain.platform import Platform, current_platform
from hudo.core.services.tool_install.errors import ConfigureFailed, InstallFailed, UnknownTool
from hudo.core.services.tool_install.installers import INSTALLERS, PREREQUISITES, get_installer

DB = "hudo.core.services.tool_install.installers.databases"
BASE = "hudo.core.services.tool_install.installers.base"
LINUX = Platform(os="linux", arch="arm64")
WINDOWS = Platform(os="windows", arch="amd64")


def _ok() -> dict:
    return {"ok": True, "returncode": 0, "stdout": "", "stderr": ""}


class TestRegistry:
    def test_every_installer_describes_itself(self):
        for tool_id, inst in INSTALLERS.items():
            desc = inst.describe()
            assert desc.id == tool_id
            assert desc.display_name

    def test_unknown(self):
        with pytest.raises(UnknownTool):
            get_installer("cobol")

    def test_install_dirs_follow_category(self, hudo_config):
        assert get_installer("go").install_dir(hudo_config) == hudo_config.lang_dir / "go"
        assert get_installer("jdk").install_dir(hudo_config) == hudo_config.lang_dir / "java"
        assert get_installer("git").install_dir(hudo_config).parent == hudo_config.tools_dir
        assert get_installer("vscode").describe().category == ToolCategory.IDE


class TestAssets:
    def test_go(self):
        go = get_installer("go")
        assert go.asset_filename("1.23.4", WINDOWS) == "go1.23.4.windows-amd64.zip"

    def test_uv_triple(self):
        uv = get_installer("uv")
        assert uv.asset_suffix("0.6.3", LINUX) == "0.6.3/uv-aarch64-unknown-linux-gnu.tar.gz"

    def test_jdk_names_file_after_redirect(self):
        jdk = get_installer("jdk")
        assert jdk.asset_suffix("21", WINDOWS) == "21/ga/windows/x64/jdk/hotspot/normal/eclipse"
        assert jdk.asset_filename("21", WINDOWS) == "jdk-21-windows-x64.zip"

    def test_mysql_series_dir(self):
        mysql = get_installer("mysql")
        assert mysql.asset_suffix("8.4.4", WINDOWS) == "MySQL-8.4/mysql-8.4.4-winx64.zip"


class TestEnvActions:
    def test_go_sets_goroot_and_gopath(self, hudo_config):
        go = get_installer("go")
        root = hudo_config.lang_dir / "go"
        actions = go.env_actions(InstallOutcome(path=str(root), version="1.23.4"), hudo_config)

        gopath = hudo_config.lang_dir / "gopath"
        assert actions == [
            SetVariable(name="GOROOT", value=str(root)),
            SetVariable(name="GOPATH", value=str(gopath)),
            PrependPath(dir=str(root / "bin")),
            PrependPath(dir=str(gopath / "bin")),
        ]

    def test_jdk_home_on_macos(self, hudo_config):
        jdk = get_installer("jdk")
        outcome = InstallOutcome(path="/opt/hudo/lang/java", version="21")
        actions = jdk.env_actions(outcome, hudo_config, platform=Platform(os="darwin", arch="arm64"))
        assert actions[0] == SetVariable(name="JAVA_HOME", value=str(Path("/opt/hudo/lang/java/Contents/Home")))

    def test_uv_keeps_data_under_root(self, hudo_config):
        uv = get_installer("uv")
        actions = uv.env_actions(InstallOutcome(path="/x/uv", version="0.6.3"), hudo_config)
        values = {a.name: a.value for a in actions if isinstance(a, SetVariable)}
        assert values["UV_CACHE_DIR"] == str(hudo_config.cache_dir / "uv")
        assert values["UV_PYTHON_INSTALL_DIR"] == str(hudo_config.lang_dir / "python")

    def test_default_prepends_bin(self, hudo_config):
        gh = get_installer("gh")
        actions = gh.env_actions(InstallOutcome(path="/x/gh", version="2.87.3"), hudo_config)
        assert actions == [PrependPath(dir=str(Path("/x/gh/bin")))]


class TestGoConfigure:
    def test_creates_gopath(self, hudo_config):
        go = get_installer("go")
        go.configure(InstallOutcome(path="/x/go", version="1.23.4"), hudo_config)
        assert (hudo_config.lang_dir / "gopath" / "bin").is_dir()


class TestMysqlConfigure:
    def test_initializes_empty_data_dir(self, tmp_path: Path, hudo_config):
        outcome = InstallOutcome(path=str(tmp_path / "mysql"), version="8.4.4")
        with patch(f"{DB}._run_subprocess", return_value=_ok()) as run:
            get_installer("mysql").configure(outcome, hudo_config, platform=WINDOWS)

        cmd = run.call_args.args[0]
        assert cmd[0].endswith("mysqld.exe")
        assert "--initialize-insecure" in cmd

    def test_existing_data_untouched(self, tmp_path: Path, hudo_config):
        data = tmp_path / "mysql" / "data"
        data.mkdir(parents=True)
        (data / "ibdata1").write_text("x")
        outcome = InstallOutcome(path=str(tmp_path / "mysql"), version="8.4.4")

        with patch(f"{DB}._run_subprocess") as run:
            get_installer("mysql").configure(outcome, hudo_config, platform=WINDOWS)
        run.assert_not_called()

    def test_init_failure(self, tmp_path: Path, hudo_config):
        outcome = InstallOutcome(path=str(tmp_path / "mysql"), version="8.4.4")
        failed = {"ok": False, "returncode": 1, "stdout": "", "stderr": "bad basedir"}
        with patch(f"{DB}._run_subprocess", return_value=failed):
            with pytest.raises(ConfigureFailed, match="bad basedir"):
                get_installer("mysql").configure(outcome, hudo_config, platform=WINDOWS)


class TestPgsqlService:
    @pytest.fixture
    def outcome(self, tmp_path: Path) -> InstallOutcome:
        data = tmp_path / "pgsql" / "data"
        data.mkdir(parents=True)
        (data / "PG_VERSION").write_text("17")
        return InstallOutcome(path=str(tmp_path / "pgsql"), version="17.8")

    def test_registers_and_starts(self, outcome, hudo_config):
        with patch(f"{DB}.service_status.query_service_state", return_value=ServiceState.NOT_FOUND), \
             patch(f"{DB}.run_service_operation", return_value=ServiceState.STOPPED) as op:
            get_installer("pgsql").configure(outcome, hudo_config)

        commands = [c.args[0] for c in op.call_args_list]
        assert commands[0][1] == "register"
        assert commands[1] == ["net", "start", "PostgreSQL"]

    def test_running_service_left_alone(self, outcome, hudo_config):
        with patch(f"{DB}.service_status.query_service_state", return_value=ServiceState.RUNNING), \
             patch(f"{DB}.run_service_operation") as op:
            get_installer("pgsql").configure(outcome, hudo_config)
        op.assert_not_called()

    def test_teardown_stops_then_unregisters(self, outcome, hudo_config):
        with patch(f"{DB}.service_status.query_service_state", return_value=ServiceState.RUNNING), \
             patch(f"{DB}.run_service_operation") as op:
            get_installer("pgsql").teardown(outcome, hudo_config)

        commands = [c.args[0] for c in op.call_args_list]
        assert commands[0] == ["net", "stop", "PostgreSQL"]
        assert commands[1][1] == "unregister"

    def test_teardown_without_service(self, outcome, hudo_config):
        with patch(f"{DB}.service_status.query_service_state", return_value=ServiceState.NOT_FOUND), \
             patch(f"{DB}.run_service_operation") as op:
            get_installer("pgsql").teardown(outcome, hudo_config)
        op.assert_not_called()


def _setup_download(tool_id: str, version: str, filename: str) -> ResolvedDownload:
    return ResolvedDownload(
        tool_id=tool_id,
        url=f"https://example.test/{filename}",
        filename=filename,
        resolved_version=version,
        version_source=VersionSource.LOCK,
    )


class TestToolchainAssets:
    def test_mingw_winlibs_release(self, hudo_config):
        mingw = get_installer("mingw")
        suffix = mingw.asset_suffix("14.2.0-19.1.7-12.0.0-ucrt-r2", WINDOWS)
        assert suffix == (
            "14.2.0-posix-seh-ucrt-r2/"
            "winlibs-x86_64-posix-seh-gcc-14.2.0-19.1.7-12.0.0-ucrt-r2-mingw-w64ucrt.zip"
        )
        assert mingw.install_dir(hudo_config) == hudo_config.tools_dir / "mingw64"
        assert mingw.binary_relpath(WINDOWS) == "bin/gcc.exe"

    def test_rust_needs_mingw_first(self):
        assert install_order(["rust"], PREREQUISITES) == ["mingw", "rust"]

    def test_rustup_init_shared_across_toolchains(self):
        rust = get_installer("rust")
        assert rust.asset_filename("stable", WINDOWS) == rust.asset_filename("1.84.0", WINDOWS) == "rustup-init.exe"

    def test_miniconda_build_name(self):
        conda = get_installer("miniconda")
        assert conda.asset_filename("latest", WINDOWS) == "Miniconda3-latest-Windows-x86_64.exe"
        assert conda.asset_filename("py312_24.11.1-0", WINDOWS) == "Miniconda3-py312_24.11.1-0-Windows-x86_64.exe"

    def test_pycharm_per_platform(self, hudo_config):
        pycharm = get_installer("pycharm")
        assert pycharm.asset_suffix("2024.3.5", WINDOWS) == "python/pycharm-community-2024.3.5.win.zip"
        assert pycharm.asset_suffix("2024.3.5", LINUX) == "python/pycharm-community-2024.3.5-aarch64.tar.gz"
        assert pycharm.binary_relpath(WINDOWS) == "bin/pycharm64.exe"
        assert pycharm.binary_relpath(LINUX) == "bin/pycharm.sh"
        assert pycharm.install_dir(hudo_config) == hudo_config.ide_dir / "pycharm"


class TestToolchainEnv:
    def test_rust_homes(self, hudo_config):
        rust = get_installer("rust")
        cargo = hudo_config.lang_dir / "cargo"
        actions = rust.env_actions(InstallOutcome(path=str(cargo), version="stable"), hudo_config)
        assert actions == [
            SetVariable(name="RUSTUP_HOME", value=str(hudo_config.tools_dir / "rustup")),
            SetVariable(name="CARGO_HOME", value=str(cargo)),
            PrependPath(dir=str(cargo / "bin")),
        ]

    def test_miniconda_path_dirs(self, hudo_config):
        conda = get_installer("miniconda")
        root = Path("/x/miniconda")
        actions = conda.env_actions(InstallOutcome(path=str(root), version="latest"), hudo_config)
        assert actions == [
            PrependPath(dir=str(root)),
            PrependPath(dir=str(root / "Scripts")),
            PrependPath(dir=str(root / "Library" / "bin")),
        ]


class TestSetupPrograms:
    @staticmethod
    def _fake_setup(installer, target: Path, calls: list):
        """Pretend to be the vendor setup: record the call, drop the binary."""

        def _run(cmd, *, timeout=120, env_overrides=None, cwd=None):
            calls.append((cmd, env_overrides))
            binary = target / installer.binary_relpath(current_platform())
            binary.parent.mkdir(parents=True, exist_ok=True)
            binary.write_text("fake")
            return _ok()

        return _run

    def test_rustup_init(self, tmp_path: Path, hudo_config):
        rust = get_installer("rust")
        target = rust.install_dir(hudo_config)
        artifact = tmp_path / "rustup-init.exe"
        calls: list = []

        with patch(f"{BASE}._run_subprocess", side_effect=self._fake_setup(rust, target, calls)):
            outcome = rust.install(_setup_download("rust", "1.84.0", artifact.name), artifact, hudo_config)

        assert outcome == InstallOutcome(path=str(target), version="1.84.0")
        cmd, env = calls[0]
        assert cmd[0] == str(artifact)
        assert cmd[1:3] == ["-y", "--no-modify-path"]
        assert cmd[-4:] == ["--default-host", "x86_64-pc-windows-gnu", "--default-toolchain", "1.84.0"]
        assert env == {"RUSTUP_HOME": str(hudo_config.tools_dir / "rustup"), "CARGO_HOME": str(target)}

    def test_miniconda_starts_clean_with_target_last(self, tmp_path: Path, hudo_config):
        conda = get_installer("miniconda")
        target = conda.install_dir(hudo_config)
        (target / "pkgs").mkdir(parents=True)
        (target / "pkgs" / "stale.tar.bz2").write_text("old")
        artifact = tmp_path / "Miniconda3-latest-Windows-x86_64.exe"
        calls: list = []

        with patch(f"{BASE}._run_subprocess", side_effect=self._fake_setup(conda, target, calls)):
            conda.install(_setup_download("miniconda", "latest", artifact.name), artifact, hudo_config)

        cmd, _env = calls[0]
        assert "/S" in cmd
        assert cmd[-1] == f"/D={target}"
        assert not (target / "pkgs").exists()

    def test_setup_failure(self, tmp_path: Path, hudo_config):
        failed = {"ok": False, "returncode": 1, "stdout": "", "stderr": "error: could not download toolchain"}
        rust = get_installer("rust")
        with patch(f"{BASE}._run_subprocess", return_value=failed):
            with pytest.raises(InstallFailed, match="could not download toolchain"):
                rust.install(
                    _setup_download("rust", "stable", "rustup-init.exe"),
                    tmp_path / "rustup-init.exe",
                    hudo_config,
                )

    def test_exit_zero_without_binary(self, tmp_path: Path, hudo_config):
        conda = get_installer("miniconda")
        with patch(f"{BASE}._run_subprocess", return_value=_ok()):
            with pytest.raises(InstallFailed, match="is missing"):
                conda.install(_setup_download("miniconda", "latest", "m.exe"), tmp_path / "m.exe", hudo_config)

    def test_rust_teardown_removes_toolchains(self, hudo_config):
        rust = get_installer("rust")
        toolchains = hudo_config.tools_dir / "rustup" / "toolchains"
        toolchains.mkdir(parents=True)
        rust.teardown(InstallOutcome(path=str(hudo_config.lang_dir / "cargo"), version="stable"), hudo_config)
        assert not (hudo_config.tools_dir / "rustup").exists()
