"""
Domain models — Pydantic types for hudo.

All models are re-exported here for convenient access:

    from hudo.core.models import HudoConfig, InstallRecord, ToolOutcome
"""

from hudo.core.models.config import HudoConfig
from hudo.core.models.profile import Profile
from hudo.core.models.state import InstallRecord, RegistryState
from hudo.core.models.tool import (
    DetectResult,
    EnvAction,
    InstallOutcome,
    InstalledByHudo,
    InstalledExternal,
    NoAction,
    NotInstalled,
    OutcomeStatus,
    PrependPath,
    ResolvedDownload,
    ResolvedVersion,
    SetVariable,
    ToolCategory,
    ToolDescriptor,
    ToolOutcome,
    VersionSource,
)

__all__ = [
    "DetectResult",
    "EnvAction",
    "HudoConfig",
    "InstallOutcome",
    "InstallRecord",
    "InstalledByHudo",
    "InstalledExternal",
    "NoAction",
    "NotInstalled",
    "OutcomeStatus",
    "PrependPath",
    "Profile",
    "RegistryState",
    "ResolvedDownload",
    "ResolvedVersion",
    "SetVariable",
    "ToolCategory",
    "ToolDescriptor",
    "ToolOutcome",
    "VersionSource",
]
