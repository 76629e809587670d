"""Centralized path management for workspacer.

All workspacer-owned files live under ~/.config/workspacer/:
- workspaces.json  - Global config (workspaces and session presets)
- debug/           - Rotating command/debug log

Per-workspace state (the metadata cache) lives inside each workspace root.
"""

import logging
import os
import shlex
from pathlib import Path

CONFIG_FILE_NAME = "workspaces.json"
LOG_FILE_NAME = "workspacer.log"

# Loggers handed out by configure_logger, so debug mode can be switched on
# after they were created at import time.
_configured: list[logging.Logger] = []


def expand_path(path: str | Path) -> Path:
    """Expand a leading ``~`` and environment variables in *path*."""
    return Path(os.path.expandvars(os.path.expanduser(str(path))))


def config_dir() -> Path:
    """Return the workspacer config directory (~/.config/workspacer/)."""
    return Path.home() / ".config" / "workspacer"


def default_config_path() -> Path:
    """Return the default global config file path."""
    return config_dir() / CONFIG_FILE_NAME


def debug_dir() -> Path:
    """Return the debug/logs directory (~/.config/workspacer/debug/)."""
    d = config_dir() / "debug"
    d.mkdir(parents=True, exist_ok=True)
    return d


def command_log_file() -> Path:
    """Get the path to the command log file.

    All workspacer commands log their shell executions here.
    """
    return debug_dir() / LOG_FILE_NAME


def debug_enabled() -> bool:
    """Check if debug mode is on (``WORKSPACER_DEBUG`` set to anything but 0)."""
    value = os.environ.get("WORKSPACER_DEBUG", "")
    return value not in ("", "0")


def configure_logger(name: str, max_bytes: int = 10_000_000) -> logging.Logger:
    """Configure a logger that always writes to file with rotation.

    Args:
        name: Logger name (e.g., "ws.catalog")
        max_bytes: Maximum log file size before rotation (default 10MB)

    Returns:
        Configured logger instance
    """
    from logging.handlers import RotatingFileHandler

    logger = logging.getLogger(name)

    # Avoid adding duplicate handlers
    if logger.handlers:
        return logger

    try:
        handler: logging.Handler = RotatingFileHandler(
            command_log_file(),
            maxBytes=max_bytes,
            backupCount=1,
        )
    except OSError:
        # Read-only home: keep the logger usable, just without a file.
        handler = logging.NullHandler()
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s", datefmt="%H:%M:%S"
    ))
    logger.addHandler(handler)
    logger.propagate = False
    logger.setLevel(logging.DEBUG if debug_enabled() else logging.INFO)
    _configured.append(logger)
    return logger


def set_debug(enabled: bool = True) -> None:
    """Switch debug mode on or off for every configured logger.

    When enabled, records are also mirrored to stderr so ``-D`` shows
    what workspacer is doing without tailing the log file.
    """
    if enabled:
        os.environ["WORKSPACER_DEBUG"] = "1"
    else:
        os.environ.pop("WORKSPACER_DEBUG", None)
    for logger in _configured:
        logger.setLevel(logging.DEBUG if enabled else logging.INFO)
        stderr_handlers = [h for h in logger.handlers
                           if getattr(h, "_ws_stderr", False)]
        if enabled and not stderr_handlers:
            h = logging.StreamHandler()
            h.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
            h._ws_stderr = True  # type: ignore[attr-defined]
            logger.addHandler(h)
        elif not enabled:
            for h in stderr_handlers:
                logger.removeHandler(h)


def log_shell_command(cmd: list[str] | str, prefix: str = "shell", returncode: int | None = None) -> None:
    """Log a shell command to the central command log.

    Args:
        cmd: Command list or string to log
        prefix: Prefix for the log entry (e.g., "git", "gh", "tmux")
        returncode: If provided, logs as completion with return code
    """
    cmd_str = shlex.join(cmd) if isinstance(cmd, list) else cmd
    logger = logging.getLogger("ws.shell")
    if returncode is None:
        logger.debug("%s: %s", prefix, cmd_str)
    elif returncode == 0:
        logger.debug("%s done: %s", prefix, cmd_str)
    else:
        logger.warning("%s failed (rc=%s): %s", prefix, returncode, cmd_str)


configure_logger("ws.shell")
