"""Miniconda — silent per-user install into the hudo tools dir.

The NSIS setup refuses a non-empty target, so a reinstall starts from
an empty directory and environments under ``envs/`` are lost; export
them with ``conda env export`` first.  Versions name the installer
build (``py312_24.11.1-0``) or ``latest``.
"""

from __future__ import annotations

from pathlib import Path

from hudo.core.models.config import HudoConfig
from hudo.core.models.tool import ResolvedDownload, ToolCategory
from hudo.core.services.tool_install.domain.platform import Platform
from hudo.core.services.tool_install.installers.base import SetupInstaller


class MinicondaInstaller(SetupInstaller):
    id = "miniconda"
    display_name = "Miniconda"
    description = "Minimal conda distribution"
    category = ToolCategory.TOOL
    platforms = frozenset({"windows"})
    official_base = "https://repo.anaconda.com/miniconda"
    fallback_version = "latest"
    binary = "Scripts/conda"
    path_dirs = ("", "Scripts", "Library/bin")
    replace_existing = True

    def asset_suffix(self, version: str, platform: Platform) -> str:
        return f"Miniconda3-{version}-Windows-x86_64.exe"

    def setup_args(self, target: Path, download: ResolvedDownload, config: HudoConfig) -> list[str]:
        return [
            "/InstallationType=JustMe",
            "/RegisterPython=0",
            "/AddToPath=0",
            "/S",
            # must come last, unquoted
            f"/D={target}",
        ]
