"""
CLI commands for hudo configuration.

Thin wrappers over ``hudo.core.config.loader``.

Usage::

    hudo config show
    hudo config set versions.go 1.23.0
    hudo config set mirrors.go https://mirrors.aliyun.com/golang
    hudo config unset versions.go
    hudo config reset
    hudo config path
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click


def _config_file(ctx: click.Context) -> Path:
    from hudo.core.config.loader import config_path

    return ctx.obj.get("config_path") or config_path()


@click.group()
def config() -> None:
    """Configuration — version locks, mirrors, checksums, settings."""


@config.command("show")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Print the effective configuration."""
    import yaml

    from hudo.core.config.loader import ConfigError, load_config

    try:
        cfg = load_config(_config_file(ctx))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    data = cfg.model_dump(mode="json")
    if as_json:
        click.echo(json.dumps(data, indent=2))
        return
    click.echo(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), nl=False)


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set a dotted KEY (e.g. versions.go, settings.git.user_name)."""
    from hudo.core.config.loader import ConfigError, load_config, save_config, set_config_value

    path = _config_file(ctx)
    try:
        cfg = set_config_value(load_config(path), key, value)
        save_config(cfg, path)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    click.secho(f"✅ {key} = {value}", fg="green")


@config.command("unset")
@click.argument("key")
@click.pass_context
def config_unset(ctx: click.Context, key: str) -> None:
    """Remove a dotted KEY, reverting it to its default."""
    from hudo.core.config.loader import ConfigError, load_config, save_config, unset_config_value

    path = _config_file(ctx)
    try:
        cfg = unset_config_value(load_config(path), key)
        save_config(cfg, path)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    click.secho(f"✅ {key} unset", fg="green")


@config.command("path")
@click.pass_context
def config_path_cmd(ctx: click.Context) -> None:
    """Print the config file location."""
    click.echo(str(_config_file(ctx)))


@config.command("reset")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def config_reset(ctx: click.Context, yes: bool) -> None:
    """Delete the config file; every key reverts to its default."""
    from hudo.core.config.loader import ConfigError, reset_config

    path = _config_file(ctx)
    if path.is_file() and not yes:
        click.confirm(f"Delete {path} and revert every setting to its default?", abort=True)
    try:
        removed = reset_config(path)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if removed:
        click.secho(f"✅ Removed {path}", fg="green")
    else:
        click.echo(f"No config file at {path}; already using defaults.")
