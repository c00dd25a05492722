"""Rust via rustup, GNU host toolchain.

``rustup-init`` puts cargo and the proxies in CARGO_HOME (the install
dir) and the toolchains in RUSTUP_HOME.  The GNU host links with the
MinGW-w64 gcc, hence the prerequisite.  Versions are rustup toolchain
specs: ``stable``, ``beta`` or a release such as ``1.84.0``.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from hudo.core.models.config import HudoConfig
from hudo.core.models.tool import (
    EnvAction,
    InstallOutcome,
    PrependPath,
    ResolvedDownload,
    SetVariable,
    ToolCategory,
)
from hudo.core.services.tool_install.domain.platform import Platform
from hudo.core.services.tool_install.errors import UninstallFailed
from hudo.core.services.tool_install.installers.base import SetupInstaller

HOST = "x86_64-pc-windows-gnu"


class RustInstaller(SetupInstaller):
    id = "rust"
    display_name = "Rust"
    description = "Rust toolchain (rustup, GNU host)"
    category = ToolCategory.LANGUAGE
    prerequisites = frozenset({"mingw"})
    platforms = frozenset({"windows"})
    official_base = "https://static.rust-lang.org/rustup/dist"
    fallback_version = "stable"
    dir_name = "cargo"
    binary = "bin/cargo"

    @staticmethod
    def rustup_home(config: HudoConfig) -> Path:
        return config.tools_dir / "rustup"

    def asset_suffix(self, version: str, platform: Platform) -> str:
        # one rustup-init serves every toolchain
        return "x86_64-pc-windows-msvc/rustup-init.exe"

    def setup_args(self, target: Path, download: ResolvedDownload, config: HudoConfig) -> list[str]:
        return [
            "-y",
            "--no-modify-path",
            "--default-host", HOST,
            "--default-toolchain", download.resolved_version,
        ]

    def setup_env(self, target: Path, config: HudoConfig) -> dict[str, str] | None:
        return {"RUSTUP_HOME": str(self.rustup_home(config)), "CARGO_HOME": str(target)}

    def env_actions(
        self,
        outcome: InstallOutcome,
        config: HudoConfig,
        *,
        platform: Platform | None = None,
    ) -> list[EnvAction]:
        cargo_home = Path(outcome.path)
        return [
            SetVariable(name="RUSTUP_HOME", value=str(self.rustup_home(config))),
            SetVariable(name="CARGO_HOME", value=str(cargo_home)),
            PrependPath(dir=str(cargo_home / "bin")),
        ]

    def teardown(
        self,
        outcome: InstallOutcome,
        config: HudoConfig,
        *,
        platform: Platform | None = None,
    ) -> None:
        home = self.rustup_home(config)
        if not home.exists():
            return
        try:
            shutil.rmtree(home)
        except OSError as e:
            raise UninstallFailed(f"Cannot remove {home}: {e}", tool_id=self.id) from e
