"""
Profile — portable snapshot of managed tools and their settings.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class Profile(BaseModel):
    hudo_version: str = ""
    exported_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    tools: dict[str, str] = Field(default_factory=dict)
    tool_config: dict[str, dict[str, str]] = Field(default_factory=dict)
