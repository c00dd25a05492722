"""
CLI commands for profiles — move a toolchain between machines.

Thin wrappers over ``hudo.core.services.profile_ops``.

Usage::

    hudo profile export
    hudo profile export team.yml
    hudo profile import team.yml --json
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from hudo.ui.cli.common import EXIT_FAILED, EXIT_USAGE, echo_outcomes, exit_for, load_context


@click.group()
def profile() -> None:
    """Profiles — export and import the managed toolchain."""


@profile.command("export")
@click.argument("file", required=False, type=click.Path(dir_okay=False))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def profile_export(ctx: click.Context, file: str | None, as_json: bool) -> None:
    """Write managed tools and settings to FILE (default: hudo-profile.yml)."""
    from hudo.core.services.profile_ops import DEFAULT_PROFILE, export_profile

    path = Path(file or DEFAULT_PROFILE)
    install_ctx = load_context(ctx)
    try:
        snapshot = export_profile(install_ctx, path)
    except OSError as e:
        click.secho(f"❌ Export failed: {e}", fg="red")
        sys.exit(EXIT_FAILED)

    if as_json:
        click.echo(json.dumps(snapshot.model_dump(mode="json"), indent=2))
        return

    click.secho(f"✅ Exported {len(snapshot.tools)} tool(s) to {path}", fg="green", bold=True)
    for tid, version in snapshot.tools.items():
        click.echo(f"   • {tid} {version}")


@profile.command("import")
@click.argument("file", type=click.Path(dir_okay=False))
@click.option("--take-over", is_flag=True, help="Install even if a copy is already on PATH.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def profile_import(ctx: click.Context, file: str, take_over: bool, as_json: bool) -> None:
    """Install the tools listed in FILE and apply their settings."""
    from hudo.core.services.profile_ops import import_profile, load_profile
    from hudo.core.services.tool_install import ProfileError, UnknownTool

    try:
        snapshot = load_profile(Path(file))
    except ProfileError as e:
        click.secho(f"❌ {e.message}", fg="red")
        sys.exit(EXIT_FAILED)

    install_ctx = load_context(ctx)
    try:
        outcomes = import_profile(install_ctx, snapshot, take_over=take_over)
    except UnknownTool as e:
        click.secho(f"❌ {e.message}", fg="red")
        sys.exit(EXIT_USAGE)

    echo_outcomes(outcomes, as_json=as_json, verbose=ctx.obj.get("verbose", False))
    exit_for(outcomes)
