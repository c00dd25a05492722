"""
L3 Detection — tool version probing.

Read-only probes: runs a tool's version command against a specific
executable and parses the output.
"""

from __future__ import annotations

import logging
import subprocess

from hudo.core.services.tool_install.domain.versions import extract_version, parse_git_tag

logger = logging.getLogger(__name__)

# tool id → (arguments after the executable, regex with one capture group)
VERSION_COMMANDS: dict[str, tuple[list[str], str]] = {
    "git":     (["--version"],              r"git version\s+(\S+)"),
    "gh":      (["--version"],              r"gh version\s+(\d+\.\d+\.\d+)"),
    "uv":      (["--version"],              r"uv\s+(\d+\.\d+\.\d+)"),
    "nodejs":  (["--version"],              r"v(\d+\.\d+\.\d+)"),
    "bun":     (["--version"],              r"(\d+\.\d+\.\d+)"),
    "go":      (["version"],                r"go(\d+\.\d+(?:\.\d+)?)"),
    "mingw":   (["--version"],              r"\)\s+(\d+\.\d+\.\d+)"),
    "rust":    (["--version"],              r"cargo\s+(\d+\.\d+\.\d+)"),
    "jdk":     (["-version"],               r'version "(\d+)'),
    "maven":   (["--version"],              r"Apache Maven\s+(\d+\.\d+\.\d+)"),
    "gradle":  (["--version"],              r"Gradle\s+(\d+\.\d+(?:\.\d+)?)"),
    "miniconda": (["--version"],            r"conda\s+(\d+\.\d+\.\d+)"),
    "mysql":   (["--version"],              r"Ver\s+(\d+\.\d+\.\d+)"),
    "pgsql":   (["--version"],              r"\(PostgreSQL\)\s+(\d+(?:\.\d+)?)"),
    "vscode":  (["--version"],              r"^(\d+\.\d+\.\d+)"),
}


def get_tool_version(tool_id: str, executable: str, *, timeout: float = 10) -> str | None:
    """Run ``executable`` with the tool's version arguments.

    Returns:
        Parsed version string, or None if the command failed, timed
        out, or printed nothing recognizable.
    """
    entry = VERSION_COMMANDS.get(tool_id)
    if entry is None:
        return None

    args, pattern = entry
    try:
        result = subprocess.run(
            [executable, *args], capture_output=True, text=True, timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.warning("%s: version probe timed out after %ss", tool_id, timeout)
        return None
    except OSError as e:
        logger.debug("%s: cannot run %s: %s", tool_id, executable, e)
        return None

    # java prints its version to stderr
    output = (result.stdout or "") + (result.stderr or "")
    version = extract_version(output, pattern)
    if version and tool_id == "git":
        # "2.47.1.windows.2" → "2.47.1.2"
        return parse_git_tag(version) or version
    return version
