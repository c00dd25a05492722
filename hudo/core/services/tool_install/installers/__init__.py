"""
Installer registry — the closed set of tools hudo can manage.

``INSTALLERS`` is built once at import time, in display order.  The
prerequisite graph is validated here; a cycle or a dangling reference
is a programming error and fails the import.
"""

from __future__ import annotations

from hudo.core.services.tool_install.domain.dag import validate_graph
from hudo.core.services.tool_install.errors import UnknownTool
from hudo.core.services.tool_install.installers.base import ArchiveInstaller, SetupInstaller, ToolInstaller
from hudo.core.services.tool_install.installers.build_tools import GradleInstaller, MavenInstaller
from hudo.core.services.tool_install.installers.bun import BunInstaller
from hudo.core.services.tool_install.installers.databases import MysqlInstaller, PgsqlInstaller
from hudo.core.services.tool_install.installers.gh import GhInstaller
from hudo.core.services.tool_install.installers.git import GitInstaller
from hudo.core.services.tool_install.installers.go import GoInstaller
from hudo.core.services.tool_install.installers.jdk import JdkInstaller
from hudo.core.services.tool_install.installers.mingw import MingwInstaller
from hudo.core.services.tool_install.installers.miniconda import MinicondaInstaller
from hudo.core.services.tool_install.installers.nodejs import NodejsInstaller
from hudo.core.services.tool_install.installers.pycharm import PycharmInstaller
from hudo.core.services.tool_install.installers.rust import RustInstaller
from hudo.core.services.tool_install.installers.uv import UvInstaller
from hudo.core.services.tool_install.installers.vscode import VscodeInstaller

INSTALLERS: dict[str, ToolInstaller] = {
    inst.id: inst
    for inst in (
        GitInstaller(),
        GhInstaller(),
        UvInstaller(),
        NodejsInstaller(),
        BunInstaller(),
        GoInstaller(),
        MingwInstaller(),
        RustInstaller(),
        JdkInstaller(),
        MavenInstaller(),
        GradleInstaller(),
        MinicondaInstaller(),
        MysqlInstaller(),
        PgsqlInstaller(),
        VscodeInstaller(),
        PycharmInstaller(),
    )
}

PREREQUISITES: dict[str, frozenset[str]] = {
    tool_id: inst.prerequisites for tool_id, inst in INSTALLERS.items()
}

_errors = validate_graph(PREREQUISITES)
if _errors:
    raise RuntimeError("Invalid installer prerequisites: " + "; ".join(_errors))


def get_installer(tool_id: str) -> ToolInstaller:
    """Look up an installer by id.

    Raises:
        UnknownTool: No such tool.
    """
    try:
        return INSTALLERS[tool_id]
    except KeyError:
        raise UnknownTool(f"Unknown tool: {tool_id}", tool_id=tool_id) from None


__all__ = [
    "INSTALLERS",
    "PREREQUISITES",
    "ArchiveInstaller",
    "SetupInstaller",
    "ToolInstaller",
    "get_installer",
]
