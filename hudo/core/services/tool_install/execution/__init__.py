"""
L4 Execution — ``__init__.py`` re-exports the execution functions.

These functions WRITE to the system: downloads, archive extraction,
environment changes, privileged commands.
"""

from hudo.core.services.tool_install.execution.download import (  # noqa: F401
    _verify_checksum,
    cache_path,
    fetch_artifact,
    invalidate_artifact,
)
from hudo.core.services.tool_install.execution.elevation import (  # noqa: F401
    run_elevated,
    run_service_operation,
    wait_for_service_state,
)
from hudo.core.services.tool_install.execution.env_applier import (  # noqa: F401
    EnvApplier,
    PosixEnvApplier,
    WindowsEnvApplier,
    default_env_applier,
)
from hudo.core.services.tool_install.execution.extract import (  # noqa: F401
    extract_archive,
    find_single_subdir,
)
from hudo.core.services.tool_install.execution.subprocess_runner import (  # noqa: F401
    _run_subprocess,
)
