"""
Tool installation service — package re-exports.

Layers (each only imports from the ones above it)::

    domain        pure helpers: DAG, versions, platform
    resolver      version + URL resolution, remote sources
    detection     registry / filesystem / service probes
    execution     download, extract, env, elevation, subprocess
    installers    one class per tool
    orchestration install / configure / uninstall / list
"""

# ── Errors ──
from hudo.core.services.tool_install.errors import (  # noqa: F401
    AlreadyManaged,
    ConfigureFailed,
    DownloadFailed,
    ElevationDenied,
    ElevationVerificationTimeout,
    ExternallyManaged,
    ExtractFailed,
    HudoError,
    InstallFailed,
    IntegrityMismatch,
    NotManaged,
    ProfileError,
    UninstallFailed,
    UnknownTool,
    UnsupportedPlatform,
    VersionUnavailable,
)

# ── Installers ──
from hudo.core.services.tool_install.installers import (  # noqa: F401
    INSTALLERS,
    PREREQUISITES,
    get_installer,
)

# ── Orchestration ──
from hudo.core.services.tool_install.orchestration import (  # noqa: F401
    configure_tool,
    detect_tools,
    install_tool,
    install_tools,
    list_tools,
    uninstall_tool,
)
