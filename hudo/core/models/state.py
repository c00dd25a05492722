"""
RegistryState — the install registry document.

One ``InstallRecord`` per managed tool, serialized to ``<root>/state.json``.
A record is the unit of crash-consistency: it is written before the
tool's configure step runs (``configured=False``) and flipped once
configure succeeds.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class InstallRecord(BaseModel):
    """A tool hudo installed and owns."""

    tool_id: str
    version: str
    install_path: str
    managed: bool = True
    configured: bool = False
    installed_at: str = Field(default_factory=_now_iso)


class RegistryState(BaseModel):
    """Root registry document."""

    schema_version: int = 1
    updated_at: str = Field(default_factory=_now_iso)
    tools: dict[str, InstallRecord] = Field(default_factory=dict)

    def touch(self) -> None:
        """Update the timestamp."""
        self.updated_at = _now_iso()
