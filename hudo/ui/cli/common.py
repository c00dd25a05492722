"""
Shared CLI helpers — context loading and outcome rendering.
"""

from __future__ import annotations

import json
import sys

import click

from hudo.core.models.tool import OutcomeStatus, ToolOutcome

EXIT_FAILED = 1
EXIT_USAGE = 2

_STATUS_STYLE = {
    OutcomeStatus.OK: ("✅", "green"),
    OutcomeStatus.ALREADY_MANAGED: ("✓ ", "cyan"),
    OutcomeStatus.REPAIRED: ("🔧", "green"),
    OutcomeStatus.SKIPPED: ("⊘ ", "yellow"),
    OutcomeStatus.FAILED: ("❌", "red"),
}


def load_context(ctx: click.Context):
    """Build the install context once per invocation."""
    from hudo.core.config.loader import ConfigError, load_config
    from hudo.core.context import build_context

    cached = ctx.obj.get("install_ctx")
    if cached is not None:
        return cached

    try:
        config = load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(EXIT_FAILED)

    install_ctx = build_context(config)
    ctx.obj["install_ctx"] = install_ctx
    return install_ctx


def echo_outcomes(outcomes: list[ToolOutcome], *, as_json: bool = False, verbose: bool = False) -> None:
    if as_json:
        click.echo(json.dumps([o.model_dump(mode="json") for o in outcomes], indent=2))
        return

    click.echo()
    for o in outcomes:
        icon, color = _STATUS_STYLE[o.status]
        version = f" {o.version}" if o.version else ""
        click.secho(f"   {icon} {o.tool_id}{version} ", fg=color, nl=False)
        timing = f" ({o.duration_ms}ms)" if o.duration_ms and verbose else ""
        click.echo(f"{o.message}{timing}")
        if o.status == OutcomeStatus.FAILED and o.hint:
            click.secho(f"      💡 {o.hint}", fg="yellow")
    click.echo()


def exit_for(outcomes: list[ToolOutcome]) -> None:
    """Exit 1 if any tool failed."""
    if any(o.status == OutcomeStatus.FAILED for o in outcomes):
        sys.exit(EXIT_FAILED)
