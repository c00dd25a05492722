"""
hudo — CLI entrypoint.

Usage:
    hudo --help
    hudo install git gh
    hudo list --all
    hudo profile export
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from hudo import __version__
from hudo.core.observability.logging_config import (
    ENV_FILE,
    ENV_FILE_LEVEL,
    ENV_LEVEL,
    resolve_level,
    setup_logging,
)
from hudo.ui.cli.common import EXIT_USAGE, echo_outcomes, exit_for, load_context


@click.group()
@click.version_option(version=__version__, prog_name="hudo")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to config.yml (default: $HUDO_CONFIG or ~/.hudo/config.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """hudo — install and manage your development toolchain."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(
            debug=debug, verbose=verbose, quiet=quiet,
            env_level=os.environ.get(ENV_LEVEL),
        ),
        log_file=os.environ.get(ENV_FILE),
        log_file_level=os.environ.get(ENV_FILE_LEVEL),
        quiet_third_party=not debug,
    )


@cli.command()
@click.argument("tools", nargs=-1, required=True)
@click.option("--take-over", is_flag=True, help="Install even if a copy is already on PATH.")
@click.option("--no-configure", is_flag=True, help="Install files only, skip configuration.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    tools: tuple[str, ...],
    take_over: bool,
    no_configure: bool,
    as_json: bool,
) -> None:
    """Install one or more tools (prerequisites included).

    Examples:

        hudo install git

        hudo install maven gradle --no-configure
    """
    from hudo.core.services.tool_install import UnknownTool, install_tools

    install_ctx = load_context(ctx)
    try:
        outcomes = install_tools(
            install_ctx, list(tools),
            take_over=take_over,
            configure=not no_configure,
        )
    except UnknownTool as e:
        click.secho(f"❌ {e.message}", fg="red")
        click.echo(f"   💡 {e.hint}")
        sys.exit(EXIT_USAGE)

    echo_outcomes(outcomes, as_json=as_json, verbose=ctx.obj.get("verbose", False))
    exit_for(outcomes)


@cli.command()
@click.argument("tool")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def configure(ctx: click.Context, tool: str, as_json: bool) -> None:
    """Re-run configuration for an installed tool."""
    from hudo.core.services.tool_install import UnknownTool, configure_tool

    install_ctx = load_context(ctx)
    try:
        outcome = configure_tool(install_ctx, tool)
    except UnknownTool as e:
        click.secho(f"❌ {e.message}", fg="red")
        sys.exit(EXIT_USAGE)

    echo_outcomes([outcome], as_json=as_json)
    exit_for([outcome])


@cli.command()
@click.argument("tool")
@click.option("--force", is_flag=True, help="Drop the record even if cleanup fails.")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def uninstall(ctx: click.Context, tool: str, force: bool, yes: bool, as_json: bool) -> None:
    """Remove a tool installed by hudo."""
    from hudo.core.services.tool_install import UnknownTool, get_installer, uninstall_tool

    try:
        installer = get_installer(tool)
    except UnknownTool as e:
        click.secho(f"❌ {e.message}", fg="red")
        sys.exit(EXIT_USAGE)

    install_ctx = load_context(ctx)
    record = install_ctx.registry.get(tool)
    if record is not None and not yes and not as_json:
        click.confirm(
            f"Remove {installer.display_name} {record.version} from {record.install_path}?",
            abort=True,
        )

    outcome = uninstall_tool(install_ctx, tool, force=force)
    echo_outcomes([outcome], as_json=as_json)
    exit_for([outcome])


@cli.command("list")
@click.option("--all", "show_all", is_flag=True, help="Probe every known tool, not just managed ones.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, show_all: bool, as_json: bool) -> None:
    """List managed tools."""
    from hudo.core.services.tool_install import list_tools

    install_ctx = load_context(ctx)
    results = list_tools(install_ctx, thorough=show_all)
    _echo_detect(results, as_json=as_json)


@cli.command()
@click.argument("tools", nargs=-1)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def detect(ctx: click.Context, tools: tuple[str, ...], as_json: bool) -> None:
    """Probe the system for tools (hudo-managed or not)."""
    from hudo.core.services.tool_install import UnknownTool, detect_tools

    install_ctx = load_context(ctx)
    try:
        results = detect_tools(install_ctx, list(tools) or None)
    except UnknownTool as e:
        click.secho(f"❌ {e.message}", fg="red")
        sys.exit(EXIT_USAGE)
    _echo_detect(results, as_json=as_json)


def _echo_detect(results: dict, *, as_json: bool) -> None:
    from hudo.core.models.tool import InstalledByHudo, InstalledExternal

    if as_json:
        click.echo(json.dumps(
            {tid: r.model_dump(mode="json") for tid, r in results.items()}, indent=2,
        ))
        return

    if not results:
        click.echo("No tools installed by hudo. Try 'hudo list --all'.")
        return

    click.echo()
    for tid, r in results.items():
        if isinstance(r, InstalledByHudo):
            flag = "" if r.configured else " (not configured)"
            click.secho(f"   ✓ {tid} {r.version}", fg="green", nl=False)
            click.echo(f"{flag}  → {r.path}")
        elif isinstance(r, InstalledExternal):
            version = f" {r.version}" if r.version else ""
            click.secho(f"   ◦ {tid}{version}", fg="yellow", nl=False)
            click.echo(f" (external)  → {r.path}")
        elif r.stale_record:
            click.secho(f"   ⚠️  {tid} recorded but files are missing", fg="yellow")
        elif r.error:
            click.secho(f"   ✗ {tid} ", fg="red", nl=False)
            click.echo(f"({r.error})")
        else:
            click.secho(f"   · {tid} not installed", dim=True)
    click.echo()


@cli.command()
@click.option("-n", "limit", default=20, show_default=True, help="Number of entries to show.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def history(ctx: click.Context, limit: int, as_json: bool) -> None:
    """Show recent install / uninstall operations."""
    install_ctx = load_context(ctx)
    entries = install_ctx.history.read_recent(limit)

    if as_json:
        click.echo(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
        return

    if not entries:
        click.echo("No operations recorded yet.")
        return

    colors = {"ok": "green", "failed": "red", "skipped": "yellow"}
    click.echo()
    for e in entries:
        when = e.timestamp[:19].replace("T", " ")
        version = f" {e.version}" if e.version else ""
        click.echo(f"   {when}  {e.operation:<9} ", nl=False)
        click.secho(f"{e.status:<15}", fg=colors.get(e.status, "white"), nl=False)
        click.echo(f" {e.tool_id}{version}  {e.message}")
    click.echo()


# ── Register sub-command groups from hudo/ui/cli/ ──────────────────

from hudo.ui.cli.config import config  # noqa: E402
from hudo.ui.cli.profile import profile  # noqa: E402

cli.add_command(config)
cli.add_command(profile)


if __name__ == "__main__":
    cli()
