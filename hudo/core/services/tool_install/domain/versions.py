"""
L1 Domain — version string helpers (pure).
"""

from __future__ import annotations

import re

_GIT_TAG_RE = re.compile(r"^v?(\d+\.\d+\.\d+)\.windows\.(\d+)$")


def parse_git_tag(tag: str) -> str | None:
    """Normalize a git-for-windows release tag.

    ``v2.47.1.windows.2`` → ``2.47.1.2``; the first windows build of a
    release drops the suffix: ``v2.53.0.windows.1`` → ``2.53.0``.
    Anything else → None.
    """
    m = _GIT_TAG_RE.match(tag.strip())
    if not m:
        return None
    base, build = m.groups()
    return base if build == "1" else f"{base}.{build}"


def git_tag_for(version: str) -> str:
    """Inverse of ``parse_git_tag``: ``2.47.1.2`` → ``v2.47.1.windows.2``."""
    parts = version.split(".")
    if len(parts) == 4:
        return f"v{'.'.join(parts[:3])}.windows.{parts[3]}"
    return f"v{version}.windows.1"


def strip_prefix(value: str, prefix: str) -> str:
    return value[len(prefix):] if value.startswith(prefix) else value


def major_minor(version: str) -> str:
    """``8.4.4`` → ``8.4``."""
    return ".".join(version.split(".")[:2])


def extract_version(text: str, pattern: str) -> str | None:
    """First capture group of ``pattern`` in ``text``, or None."""
    m = re.search(pattern, text)
    return m.group(1) if m else None
