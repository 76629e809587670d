"""Shared helpers for the workspacer CLI package.

Contains HelpGroup, the global-option state set by the ``cli`` group
callback, workspace resolution and the error-to-exit translation used by
every command.
"""

from contextlib import contextmanager
from pathlib import Path

import click

from ws_core import tmux as tmux_mod
from ws_core.cache import CacheWriteError
from ws_core.config import ConfigError, GlobalConfig, WorkspaceConfig, config_path, load_or_default
from ws_core.gh_ops import RemoteListError
from ws_core.layout import LayoutError
from ws_core.paths import configure_logger
from ws_core.session import SessionError
from ws_core.workspace import WorkspaceError, load_env_file

_log = configure_logger("ws.cli")

# Module-level state set by the cli() group callback via set_overrides()
_config_override: str | None = None
_workspace_override: str | None = None
_env_file: Path | None = None

# Shared Click settings: make -h and --help both work everywhere
CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

# Errors that end a command with a message instead of a traceback.
USER_ERRORS = (ConfigError, WorkspaceError, LayoutError, SessionError,
               RemoteListError, CacheWriteError)


def set_overrides(config: str | None, workspace: str | None) -> None:
    """Record --config / -W (called by the cli group callback)."""
    global _config_override, _workspace_override, _env_file
    _config_override = config
    _workspace_override = workspace
    _env_file = None


class HelpGroup(click.Group):
    """Click Group that treats 'help' as an alias for --help everywhere.

    Applied to the top-level group and auto-inherited by all child groups
    via ``group_class = type`` (Click uses ``type(self)`` as default cls).
    """

    group_class = type  # auto-propagate HelpGroup to child groups

    def resolve_command(self, ctx, args):
        if args and args[0] == "help":
            if super().get_command(ctx, "help") is not None:
                return super().resolve_command(ctx, args)
            args = ["--help"] + args[1:]
        cmd_name, cmd, remaining = super().resolve_command(ctx, args)
        # 'workspacer cache status help' -> 'workspacer cache status --help'
        if (remaining and remaining[0] == "help"
                and cmd is not None and not isinstance(cmd, click.Group)):
            remaining = ["--help"] + remaining[1:]
        return cmd_name, cmd, remaining


def fail(message: str) -> None:
    click.echo(message, err=True)
    raise SystemExit(1)


@contextmanager
def user_errors():
    """Turn workspacer errors into a message on stderr and exit status 1."""
    try:
        yield
    except USER_ERRORS as e:
        _log.error("%s: %s", type(e).__name__, e)
        fail(f"Error: {e}")


def config_file() -> Path:
    """Config path honouring --config and $WORKSPACER_CONFIG."""
    return config_path(_config_override)


def load_global() -> tuple[GlobalConfig, Path | None]:
    """Load the global config; defaults if there is no file."""
    return load_or_default(config_file())


def workspace_key() -> str | None:
    """The -W value, with ``current`` resolved from the attached tmux session.

    Session names are ``<prefix>-<project>``, so the workspace is the text
    before the first dash.
    """
    key = _workspace_override
    if key == "current":
        session = tmux_mod.current_session_name()
        if not session:
            raise ConfigError("-W current needs to run inside a tmux session")
        key = session.split("-", 1)[0]
    return key


def current_workspace() -> tuple[WorkspaceConfig, GlobalConfig]:
    """Resolve the selected workspace and load its environment file."""
    global _env_file
    conf, _ = load_global()
    ws = conf.workspace(workspace_key())
    _env_file = load_env_file(ws)
    _log.debug("workspace %s (root %s)", ws.key, ws.root)
    return ws, conf


def loaded_env_file() -> Path | None:
    return _env_file
