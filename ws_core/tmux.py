"""Tmux session management for workspacer."""

import os
import shutil
import subprocess

from ws_core.paths import configure_logger, log_shell_command

_log = configure_logger("ws.tmux")


def _tmux_cmd(*args: str, socket_path: str | None = None) -> list[str]:
    """Build a tmux command with optional custom socket.

    If socket_path is given, uses it.  Otherwise checks the
    WORKSPACER_TMUX_SOCKET env var, so tests and nested setups can point
    every call at a private server.
    """
    cmd = ["tmux"]
    sp = socket_path or os.environ.get("WORKSPACER_TMUX_SOCKET")
    if sp:
        cmd.extend(["-S", sp])
    cmd.extend(args)
    return cmd


def _run(*args: str, check: bool = False, capture: bool = True) -> subprocess.CompletedProcess:
    cmd = _tmux_cmd(*args)
    log_shell_command(cmd, prefix="tmux")
    result = subprocess.run(cmd, capture_output=capture, text=True, check=check)
    if result.returncode != 0:
        log_shell_command(cmd, prefix="tmux", returncode=result.returncode)
    return result


def has_tmux() -> bool:
    """Check if tmux is installed."""
    return shutil.which("tmux") is not None


def in_tmux() -> bool:
    """Check if we're currently inside a tmux session."""
    return bool(os.environ.get("TMUX"))


def session_exists(name: str) -> bool:
    """Check if a tmux session with the given name exists."""
    # "=" forces an exact match; plain -t would also match a prefix.
    return _run("has-session", "-t", f"={name}").returncode == 0


def list_sessions() -> list[str]:
    """Names of all running sessions (empty when no server is running)."""
    if not has_tmux():
        return []
    result = _run("list-sessions", "-F", "#{session_name}")
    if result.returncode != 0:
        return []
    return [line for line in result.stdout.splitlines() if line.strip()]


def current_session_name() -> str:
    """Get the current tmux session name ("" outside tmux)."""
    if not in_tmux():
        return ""
    pane = os.environ.get("TMUX_PANE")
    if pane:
        result = _run("display-message", "-p", "-t", pane, "#{session_name}")
    else:
        result = _run("display-message", "-p", "#{session_name}")
    return result.stdout.strip() if result.returncode == 0 else ""


def _ids(result: subprocess.CompletedProcess) -> tuple[str, str]:
    parts = result.stdout.strip().split()
    return parts[0], parts[1]


def create_session(name: str, cwd: str, window_name: str = "") -> tuple[str, str]:
    """Create a detached session with one window.

    Returns ``(window_id, pane_id)`` of the initial window.
    """
    args = ["new-session", "-d", "-s", name, "-c", cwd,
            "-P", "-F", "#{window_id} #{pane_id}"]
    if window_name:
        args[4:4] = ["-n", window_name]
    return _ids(_run(*args, check=True))


def create_window(session: str, name: str, cwd: str) -> tuple[str, str]:
    """Append a window to *session*. Returns ``(window_id, pane_id)``.

    Uses 'session:' format so numeric session names aren't interpreted
    as window indices.
    """
    args = ["new-window", "-d", "-t", f"{session}:", "-c", cwd,
            "-P", "-F", "#{window_id} #{pane_id}"]
    if name:
        args[4:4] = ["-n", name]
    return _ids(_run(*args, check=True))


def split_pane(target: str, cwd: str, orientation: str = "", size: int = 0) -> str:
    """Split *target* (a window or pane id). Returns the new pane ID.

    orientation: 'vertical' stacks top/bottom, anything else splits
    left/right.  *size* is a percentage, applied when 0 < size < 100.
    """
    flag = "-v" if orientation == "vertical" else "-h"
    args = ["split-window", "-d", flag, "-t", target, "-c", cwd]
    if 0 < size < 100:
        args.extend(["-l", f"{size}%"])
    args.extend(["-P", "-F", "#{pane_id}"])
    return _run(*args, check=True).stdout.strip()


def apply_layout(window: str, layout: str) -> bool:
    """Apply a tmux layout (preset name or layout string). Returns True on success."""
    result = _run("select-layout", "-t", window, layout)
    if result.returncode != 0:
        _log.warning("tmux select-layout %s failed: %s", layout, result.stderr.strip())
    return result.returncode == 0


def send_keys(pane_target: str, keys: str) -> None:
    """Send keys to a tmux pane (followed by Enter)."""
    _run("send-keys", "-t", pane_target, keys, "Enter", check=True)


def select_window(window: str) -> None:
    _run("select-window", "-t", window, check=True)


def select_pane(pane_id: str) -> None:
    """Focus a specific pane."""
    _run("select-pane", "-t", pane_id, check=True)


def attach(name: str) -> None:
    """Attach to a session, or switch the client when already inside tmux."""
    if in_tmux():
        _run("switch-client", "-t", f"={name}", check=True)
    else:
        # The attached client needs the real terminal.
        _run("attach-session", "-t", f"={name}", check=True, capture=False)


def kill_session(name: str) -> None:
    """Kill a tmux session."""
    _run("kill-session", "-t", f"={name}")
