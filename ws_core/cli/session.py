"""Session commands for the workspacer CLI.

Everything that works on live tmux sessions rather than on the project
catalog: re-attaching, listing, closing and preset sessions.
"""

import click

from ws_core import workspace
from ws_core.cli import cli
from ws_core.cli.helpers import (
    current_workspace,
    fail,
    load_global,
    user_errors,
    workspace_key,
)
from ws_core.paths import configure_logger
from ws_core.session import close_all, list_active_projects

_log = configure_logger("ws.cli.session")


@cli.command("active")
def active_cmd():
    """Pick one of the workspace's open sessions and attach to it."""
    with user_errors():
        ws, _ = current_workspace()
        if not list_active_projects(ws.prefix):
            click.echo(f"No open projects in workspace {ws.name}")
            return
        workspace.choose_active_session(ws)


@cli.command("list")
def list_cmd():
    """List the projects that have an open session."""
    with user_errors():
        ws, _ = current_workspace()
        for project in list_active_projects(ws.prefix):
            click.echo(project)


@cli.command("close-all")
def close_all_cmd():
    """Kill every open session of the workspace."""
    with user_errors():
        ws, _ = current_workspace()
        killed = close_all(ws)
    for name in killed:
        click.echo(f"Closed {name}")
    if not killed:
        click.echo("No sessions to close")


@cli.command("preset")
@click.argument("name", required=False)
def preset_cmd(name: str | None):
    """Open the session for preset NAME (or pick one).

    Only presets with their own ``path`` can be opened this way.  The
    session is called ``preset-<NAME>``.
    """
    with user_errors():
        conf, _ = load_global()
        if name:
            workspace.open_preset(name, conf.session_presets)
        else:
            workspace.choose_preset(conf.session_presets)


@cli.command("tmux-filter")
def tmux_filter_cmd():
    """Print a tmux format filter matching this workspace's sessions.

    Useful with ``choose-tree -f``.
    """
    with user_errors():
        conf, _ = load_global()
        key = workspace_key() or conf.default_workspace
    if not key:
        fail("No workspace given and no default_workspace configured")
    _log.debug("tmux filter for %s", key)
    click.echo(f"#{{m:{key}-*,#{{session_name}}}}", nl=False)
