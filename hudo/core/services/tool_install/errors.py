"""
Typed failures for tool operations.

Each error carries the tool id, a machine-readable ``kind`` and a
user-facing ``hint``.  The orchestrator turns them into ``ToolOutcome``
receipts; nothing here is retried automatically.
"""

from __future__ import annotations


class HudoError(Exception):
    """Base class for all hudo operation errors."""

    kind = "error"
    default_hint = ""

    def __init__(self, message: str, *, tool_id: str = "", hint: str | None = None):
        super().__init__(message)
        self.message = message
        self.tool_id = tool_id
        self.hint = hint if hint is not None else self.default_hint

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "tool_id": self.tool_id,
            "message": self.message,
            "hint": self.hint,
        }


class UnknownTool(HudoError):
    kind = "unknown_tool"
    default_hint = "Run 'hudo list --all' to see available tools."


class UnsupportedPlatform(HudoError):
    kind = "unsupported_platform"
    default_hint = "This tool has no prebuilt archive for this OS/arch."


class VersionUnavailable(HudoError):
    kind = "version_unavailable"
    default_hint = "Pin a version with 'hudo config set versions.<tool> <version>'."


class DownloadFailed(HudoError):
    kind = "download_failed"
    default_hint = "Check the network, or set a mirror with 'hudo config set mirrors.<tool> <url>'."


class IntegrityMismatch(HudoError):
    kind = "integrity_mismatch"
    default_hint = "The artifact was deleted from the cache. Verify the configured checksum or mirror."


class ExtractFailed(HudoError):
    kind = "extract_failed"
    default_hint = "The cached archive was discarded; retry to download it again."


class InstallFailed(HudoError):
    kind = "install_failed"
    default_hint = (
        "The archive is still cached. Files in the install directory may be in use; "
        "stop the tool or its service and retry."
    )


class ConfigureFailed(HudoError):
    kind = "configure_failed"
    default_hint = "Files are installed. Fix the cause and run 'hudo configure <tool>'."


class ElevationDenied(HudoError):
    kind = "elevation_denied"
    default_hint = "Administrator approval was declined. Re-run and accept the prompt."


class ElevationVerificationTimeout(HudoError):
    kind = "elevation_verification_timeout"
    default_hint = (
        "The privileged step did not take effect in time. "
        "Check the service manager, then run 'hudo configure <tool>'."
    )


class AlreadyManaged(HudoError):
    kind = "already_managed"


class ExternallyManaged(HudoError):
    kind = "externally_managed"
    default_hint = "Use --take-over to install a hudo-managed copy alongside it."


class NotManaged(HudoError):
    kind = "not_managed"
    default_hint = "hudo only uninstalls tools it installed."


class UninstallFailed(HudoError):
    kind = "uninstall_failed"
    default_hint = "The record was kept. Fix the cause or re-run with --force."


class ProfileError(HudoError):
    kind = "profile_error"
