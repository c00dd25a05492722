"""
Tool models — descriptors, detection results, download plans, env actions.

Tagged unions (``DetectResult``, ``EnvAction``) use a ``kind`` literal as
the pydantic discriminator so they serialize cleanly to JSON for
``--json`` output and round-trip through ``model_validate``.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class ToolCategory(str, Enum):
    """Where a tool lives under the hudo root."""

    TOOL = "tool"
    LANGUAGE = "language"
    DATABASE = "database"
    IDE = "ide"


class ToolDescriptor(BaseModel):
    """Static, immutable facts about an installable tool."""

    model_config = ConfigDict(frozen=True)

    id: str
    category: ToolCategory
    display_name: str
    description: str = ""
    prerequisites: frozenset[str] = frozenset()
    platforms: frozenset[str] = frozenset({"windows", "linux", "darwin"})


# ── Detection ───────────────────────────────────────────────────


class NotInstalled(BaseModel):
    kind: Literal["not_installed"] = "not_installed"
    stale_record: bool = False
    error: str | None = None


class InstalledByHudo(BaseModel):
    kind: Literal["installed_by_hudo"] = "installed_by_hudo"
    version: str
    path: str
    configured: bool = True


class InstalledExternal(BaseModel):
    kind: Literal["installed_external"] = "installed_external"
    version: str
    path: str


DetectResult = Annotated[
    Union[NotInstalled, InstalledByHudo, InstalledExternal],
    Field(discriminator="kind"),
]


# ── Resolution ──────────────────────────────────────────────────


class VersionSource(str, Enum):
    OVERRIDE = "override"
    LOCK = "lock"
    REMOTE = "remote"
    FALLBACK = "fallback"


class ResolvedVersion(BaseModel):
    version: str
    source: VersionSource


class ResolvedDownload(BaseModel):
    """One concrete artifact to fetch for one install attempt."""

    tool_id: str
    url: str
    filename: str
    resolved_version: str
    version_source: VersionSource
    expected_checksum: str | None = None
    mirrored: bool = False


class InstallOutcome(BaseModel):
    path: str
    version: str


# ── Environment ─────────────────────────────────────────────────


class PrependPath(BaseModel):
    kind: Literal["prepend_path"] = "prepend_path"
    dir: str


class SetVariable(BaseModel):
    kind: Literal["set_variable"] = "set_variable"
    name: str
    value: str


class NoAction(BaseModel):
    kind: Literal["no_action"] = "no_action"


EnvAction = Annotated[
    Union[PrependPath, SetVariable, NoAction],
    Field(discriminator="kind"),
]


# ── Operation receipts ──────────────────────────────────────────


class OutcomeStatus(str, Enum):
    OK = "ok"
    ALREADY_MANAGED = "already_managed"
    REPAIRED = "repaired"
    SKIPPED = "skipped"
    FAILED = "failed"


class ToolOutcome(BaseModel):
    """Per-tool result of an install / configure / uninstall.

    Errors are captured here instead of raised, so a batch can report
    one outcome per tool.
    """

    tool_id: str
    operation: str
    status: OutcomeStatus
    version: str | None = None
    path: str | None = None
    message: str = ""
    error_kind: str | None = None
    hint: str | None = None
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status != OutcomeStatus.FAILED
