"""Cache commands for the workspacer CLI."""

import click

from ws_core import cache as cache_mod
from ws_core.cli import cli
from ws_core.cli.helpers import current_workspace, user_errors


@cli.group("cache")
def cache_group():
    """Manage the workspace metadata cache."""


@cache_group.command("clear")
def cache_clear():
    """Delete the workspace's cache file."""
    with user_errors():
        ws, _ = current_workspace()
        removed = cache_mod.clear_cache(ws)
    path = cache_mod.cache_path(ws)
    click.echo(f"Cleared {path}" if removed else f"No cache at {path}")


def _fmt(value) -> str:
    if value is None:
        return "-"
    if hasattr(value, "isoformat"):
        return value.isoformat(timespec="seconds")
    return str(value)


@cache_group.command("status")
def cache_status():
    """Show where the cache lives and what it holds."""
    with user_errors():
        ws, _ = current_workspace()
        stats = cache_mod.cache_stats(ws)
    click.echo(f"Workspace:       {ws.name}")
    click.echo(f"Cache enabled:   {ws.enable_cache}")
    click.echo(f"Path:            {stats['path']}")
    if not stats["exists"]:
        click.echo("Exists:          no")
        return
    click.echo(f"Size:            {stats['size_bytes']} bytes")
    click.echo(f"Modified:        {_fmt(stats['modified'])}")
    click.echo(f"Last updated:    {_fmt(stats['last_updated'])}")
    click.echo(f"Projects:        {stats['num_projects']}")
    click.echo(f"GitHub repos:    {stats['num_github_repos']}")
    click.echo(f"Recent accesses: {stats['num_recent_accesses']}")
