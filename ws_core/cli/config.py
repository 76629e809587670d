"""Config commands for the workspacer CLI."""

import click

from ws_core.cli import cli
from ws_core.cli.helpers import (
    config_file,
    current_workspace,
    load_global,
    loaded_env_file,
    user_errors,
)
from ws_core.config import ConfigError, write_default_config


@cli.group("config")
def config_group():
    """Inspect or create the global config file."""


@config_group.command("new")
def config_new():
    """Write the default config to the config path (never overwrites)."""
    path = config_file()
    with user_errors():
        write_default_config(path)
    click.echo(f"Wrote default config to {path}")


@config_group.command("list")
def config_list():
    """Show which config and env files are in effect."""
    with user_errors():
        conf, loaded = load_global()
        try:
            ws, _ = current_workspace()
        except ConfigError:
            ws = None
    click.echo(f"Config:    {loaded if loaded else 'built-in defaults'}")
    click.echo(f"Env file:  {loaded_env_file() or '-'}")
    click.echo(f"Default:   {conf.default_workspace or '-'}")
    for key, w in sorted(conf.workspaces.items()):
        marker = "*" if ws is not None and key == ws.key else " "
        click.echo(f" {marker} {key:<12} {w.name:<16} {w.path}")
