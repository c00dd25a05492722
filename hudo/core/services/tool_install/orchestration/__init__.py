"""
L5 Orchestration — tool lifecycle operations.
"""

from hudo.core.services.tool_install.orchestration.orchestrator import (  # noqa: F401
    configure_tool,
    detect_tools,
    fetch_for,
    install_tool,
    install_tools,
    list_tools,
    uninstall_tool,
)
