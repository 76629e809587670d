"""Click CLI definitions for workspacer.

The ``cli`` Click group, ``main`` entry point and the project commands
live here.  Shared helpers (HelpGroup, workspace resolution, error
translation) are in ``cli.helpers``.

Command groups are split into submodules:
- cli.session  — live tmux sessions: active, list, close-all, preset, tmux-filter
- cli.cache    — workspace cache administration
- cli.config   — global config file
"""

import click

from ws_core import workspace
from ws_core.cli.helpers import (
    CONTEXT_SETTINGS,
    HelpGroup,
    current_workspace,
    set_overrides,
    user_errors,
)
from ws_core.paths import set_debug


@click.group(invoke_without_command=True, cls=HelpGroup, context_settings=CONTEXT_SETTINGS)
@click.option("-W", "--workspace", "workspace_name", default=None, envvar="WORKSPACER_WORKSPACE",
              help="Workspace to use ('current' = from the tmux session name)")
@click.option("--config", "config_file", default=None, type=click.Path(dir_okay=False),
              help="Config file (default ~/.config/workspacer/workspaces.json)")
@click.option("-D", "--debug", is_flag=True, default=False,
              help="Debug logging, mirrored to stderr")
@click.pass_context
def cli(ctx, workspace_name: str | None, config_file: str | None, debug: bool):
    """workspacer — tmux sessions for the projects in a workspace."""
    set_overrides(config_file, workspace_name)
    if debug:
        set_debug(True)
    if ctx.invoked_subcommand is None:
        ctx.invoke(pick_cmd)


@cli.command("pick")
@click.option("--refresh", is_flag=True, default=False,
              help="Ignore cached git info and remote repos for this run")
@click.option("--presets", "with_presets", is_flag=True, default=False,
              help="Also offer session presets")
def pick_cmd(refresh: bool, with_presets: bool):
    """Pick a project from the workspace and open its session.

    This is what runs when workspacer is called without a command.
    """
    with user_errors():
        ws, conf = current_workspace()
        workspace.choose_project(ws, conf.session_presets,
                                 refresh=refresh, with_presets=with_presets)


@cli.command("open")
@click.argument("selector", metavar="PROJECT[:FILE[:EXTRA]]")
def open_cmd(selector: str):
    """Open (or re-attach to) the session for PROJECT.

    FILE and EXTRA are appended to editor panes (vi, vim, nvim), e.g.
    ``workspacer open api:main.go:/TODO``.  A project that only exists
    on GitHub is cloned first.
    """
    with user_errors():
        ws, conf = current_workspace()
        workspace.open_project(ws, conf.session_presets, selector, clone_missing=True)


@cli.command("clone")
@click.argument("name")
@click.option("--no-open", is_flag=True, default=False, help="Clone only, don't open a session")
def clone_cmd(name: str, no_open: bool):
    """Clone NAME from the workspace's GitHub org and open it."""
    with user_errors():
        ws, conf = current_workspace()
        dest = workspace.clone_project(ws, name)
        click.echo(f"Cloned into {dest}")
        if not no_open:
            workspace.open_project(ws, conf.session_presets, name)


# ---------------------------------------------------------------------------
# Import submodules to register their commands on ``cli``.
# This must be at the bottom of the file, after ``cli`` is defined.
# ---------------------------------------------------------------------------
from ws_core.cli import session, cache, config  # noqa: E402, F401


def main():
    cli()
