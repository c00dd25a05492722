"""
L3 Detection — read-only probes and registry reconciliation.
"""

from hudo.core.services.tool_install.detection.detector import (  # noqa: F401
    DetectMode,
    Probe,
    classify,
    detect_all,
    from_record,
)
from hudo.core.services.tool_install.detection.service_status import (  # noqa: F401
    ServiceState,
    query_service_state,
)
from hudo.core.services.tool_install.detection.tool_version import (  # noqa: F401
    VERSION_COMMANDS,
    get_tool_version,
)
