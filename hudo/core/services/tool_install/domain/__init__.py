"""
L1 Domain — pure helpers: prerequisite graph, version strings, platform.

No subprocess calls, no filesystem access, no network calls.
"""

from hudo.core.services.tool_install.domain.dag import (  # noqa: F401
    dependents,
    install_order,
    prerequisite_closure,
    validate_graph,
)
from hudo.core.services.tool_install.domain.platform import (  # noqa: F401
    Platform,
    current_platform,
)
from hudo.core.services.tool_install.domain.versions import (  # noqa: F401
    extract_version,
    git_tag_for,
    major_minor,
    parse_git_tag,
    strip_prefix,
)
