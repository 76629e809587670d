"""Materialise a SessionLayoutPlan as a live tmux session.

A session is ABSENT until provisioned, CREATED once its windows and
panes exist and startup commands were sent, ATTACHED once the terminal
was handed over.  An already running session goes straight from ABSENT
to ATTACHED without touching its layout.

Provisioning failures are not rolled back: re-running finds the
partially created session and simply attaches to it.
"""

import subprocess
from enum import Enum

from ws_core import tmux as tmux_mod
from ws_core.config import WorkspaceConfig
from ws_core.layout import SessionLayoutPlan
from ws_core.paths import configure_logger

_log = configure_logger("ws.session")


class SessionState(Enum):
    ABSENT = "absent"
    CREATED = "created"
    ATTACHED = "attached"


class SessionError(Exception):
    """Raised when tmux can't be reached or a session can't be provisioned."""


def safe_name(project: str) -> str:
    """tmux rewrites "." and ":" in session names; do it up front so lookups match."""
    return project.replace(".", "_").replace(":", "_")


def session_name(ws: WorkspaceConfig, project: str) -> str:
    """``<prefix>-<project>``, or just the project when there is no prefix."""
    project = safe_name(project)
    return f"{ws.prefix}-{project}" if ws.prefix else project


class SessionDriver:
    """Drives tmux through the ``ws_core.tmux`` function set.

    The tmux module is injectable so tests can record the calls made.
    """

    def __init__(self, tmux=tmux_mod):
        self.tmux = tmux
        self.state = SessionState.ABSENT

    def _step(self, what: str, fn, *args):
        try:
            return fn(*args)
        except (subprocess.CalledProcessError, OSError, IndexError) as e:
            detail = getattr(e, "stderr", None) or e
            raise SessionError(f"{what} failed: {detail}") from e

    def exists(self, name: str) -> bool:
        try:
            return self.tmux.session_exists(name)
        except OSError as e:
            raise SessionError(f"querying tmux for session '{name}' failed: {e}") from e

    def provision(self, name: str, plan: SessionLayoutPlan) -> None:
        """Create windows and panes in plan order, then send pane commands.

        The i-th pane created receives the i-th configured command.
        """
        created: list[str] = []
        first_window = first_pane = ""
        for i, window in enumerate(plan.windows):
            if i == 0:
                window_id, pane_id = self._step(
                    f"creating session '{name}'", self.tmux.create_session,
                    name, str(window.path), window.name)
                first_window, first_pane = window_id, pane_id
            else:
                window_id, pane_id = self._step(
                    f"creating window '{window.name}'", self.tmux.create_window,
                    name, window.name, str(window.path))
            for j, pane in enumerate(window.panes):
                if j > 0:
                    pane_id = self._step(
                        f"creating pane {j} in window '{window.name}'",
                        self.tmux.split_pane,
                        window_id, str(pane.path), pane.orientation, pane.size)
                created.append(pane_id)
            if window.layout:
                self.tmux.apply_layout(window_id, window.layout)

        for pane_id, pane in zip(created, plan.panes()):
            if pane.command:
                self._step(f"sending '{pane.command}' to pane {pane_id}",
                           self.tmux.send_keys, pane_id, pane.command)

        self._step("selecting first window", self.tmux.select_window, first_window)
        self._step("selecting first pane", self.tmux.select_pane, first_pane)
        self.state = SessionState.CREATED
        _log.info("created session %s (%d window(s), %d pane(s))",
                  name, len(plan.windows), len(created))

    def attach(self, name: str) -> None:
        self._step(f"attaching to session '{name}'", self.tmux.attach, name)
        self.state = SessionState.ATTACHED

    def open(self, name: str, plan: SessionLayoutPlan) -> SessionState:
        """Attach to *name*, provisioning it from *plan* first if it isn't running."""
        if self.exists(name):
            _log.info("session %s already running, attaching", name)
        else:
            self.provision(name, plan)
        self.attach(name)
        return self.state


def list_active_projects(prefix: str, tmux=tmux_mod) -> list[str]:
    """Project names with a live session under ``<prefix>-``."""
    if not prefix:
        return []
    head = prefix + "-"
    return [s[len(head):] for s in tmux.list_sessions() if s.startswith(head)]


def live_project_names(ws: WorkspaceConfig, tmux=tmux_mod) -> list[str]:
    """Live session names to match against the workspace's projects.

    Without a prefix, project sessions carry the bare (tmux-safe) project
    name, so every live session is a candidate.
    """
    if ws.prefix:
        return list_active_projects(ws.prefix, tmux)
    return tmux.list_sessions()


def close_all(ws: WorkspaceConfig, tmux=tmux_mod) -> list[str]:
    """Kill every session of the workspace. Returns the killed session names."""
    if not ws.prefix:
        raise SessionError(f"workspace '{ws.key}' has no prefix, refusing to close all sessions")
    killed = []
    for project in list_active_projects(ws.prefix, tmux):
        name = f"{ws.prefix}-{project}"
        tmux.kill_session(name)
        killed.append(name)
        _log.info("killed session %s", name)
    return killed
