"""Shared fixtures for ws_core tests."""

import pytest

from ws_core.config import PaneConfig, SessionConfig, WindowConfig, WorkspaceConfig


class FakeTmux:
    """Stands in for the ``ws_core.tmux`` module and records every call.

    Sessions in ``running`` are reported as existing.  Window and pane
    ids are handed out sequentially (@1, %2, ...).
    """

    def __init__(self, running=()):
        self.running = set(running)
        self.calls: list[tuple] = []
        self._next = 0

    def _id(self, sigil: str) -> str:
        self._next += 1
        return f"{sigil}{self._next}"

    def names(self) -> list[str]:
        return [c[0] for c in self.calls]

    def session_exists(self, name):
        self.calls.append(("session_exists", name))
        return name in self.running

    def create_session(self, name, cwd, window_name=""):
        self.calls.append(("create_session", name, cwd, window_name))
        self.running.add(name)
        return self._id("@"), self._id("%")

    def create_window(self, session, name, cwd):
        self.calls.append(("create_window", session, name, cwd))
        return self._id("@"), self._id("%")

    def split_pane(self, target, cwd, orientation="", size=0):
        pane = self._id("%")
        self.calls.append(("split_pane", target, cwd, orientation, size, pane))
        return pane

    def apply_layout(self, window, layout):
        self.calls.append(("apply_layout", window, layout))
        return True

    def send_keys(self, pane, keys):
        self.calls.append(("send_keys", pane, keys))

    def select_window(self, window):
        self.calls.append(("select_window", window))

    def select_pane(self, pane):
        self.calls.append(("select_pane", pane))

    def attach(self, name):
        self.calls.append(("attach", name))

    def list_sessions(self):
        return sorted(self.running)

    def kill_session(self, name):
        self.calls.append(("kill_session", name))
        self.running.discard(name)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("WORKSPACER_CONFIG", "WORKSPACER_WORKSPACE", "WORKSPACER_TMUX_SOCKET",
                "GITHUB_AUTH", "TMUX", "TMUX_PANE"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def fake_tmux():
    return FakeTmux()


@pytest.fixture
def presets():
    """The built-in "default" preset: one nvim window with two panes."""
    return {
        "default": SessionConfig(windows=(
            WindowConfig(name="nvim", layout="main-vertical", panes=(
                PaneConfig(command="nvim"),
                PaneConfig(command=""),
            )),
        )),
    }


@pytest.fixture
def make_ws(tmp_path):
    """Factory for a WorkspaceConfig rooted at tmp_path (fields overridable)."""
    def _make(**overrides) -> WorkspaceConfig:
        fields = dict(key="ws", name="Projects", prefix="ws",
                      path=str(tmp_path), session_preset="default")
        fields.update(overrides)
        return WorkspaceConfig(**fields)
    return _make
