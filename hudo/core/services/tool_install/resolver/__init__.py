"""
L2 Resolver — version and URL resolution.
"""

from hudo.core.services.tool_install.resolver.version_resolution import (  # noqa: F401
    VersionResolver,
    join_url,
)
