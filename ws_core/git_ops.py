"""Git introspection and clone operations."""

import subprocess
from pathlib import Path
from typing import Optional

from ws_core.paths import log_shell_command


def has_git_marker(path: Path) -> bool:
    """Check if *path* has a ``.git`` directory directly inside it."""
    return (path / ".git").is_dir()


def run_git(*args: str, cwd: Optional[str | Path] = None, check: bool = True) -> subprocess.CompletedProcess:
    """Run a git command and return result.

    Logs to the command log file.
    """
    cmd = ["git", *args]
    log_shell_command(cmd, prefix="git")
    result = subprocess.run(
        cmd,
        cwd=cwd,
        capture_output=True,
        text=True,
        check=check,
    )
    if result.returncode != 0:
        log_shell_command(cmd, prefix="git", returncode=result.returncode)
    return result


def current_branch(path: Path) -> str:
    """Return the checked-out branch of the repo at *path*.

    Returns "" when *path* is not a git repo, git is missing, or HEAD is
    detached/unborn.
    """
    if not has_git_marker(path):
        return ""
    try:
        result = run_git("rev-parse", "--abbrev-ref", "HEAD", cwd=path, check=False)
    except OSError:
        return ""
    if result.returncode != 0:
        return ""
    branch = result.stdout.strip()
    # "HEAD" means detached
    return "" if branch == "HEAD" else branch


def uncommitted_changes(path: Path) -> int:
    """Count entries reported by ``git status --porcelain`` (0 = clean)."""
    if not has_git_marker(path):
        return 0
    try:
        result = run_git("status", "--porcelain", cwd=path, check=False)
    except OSError:
        return 0
    if result.returncode != 0:
        return 0
    return len([line for line in result.stdout.splitlines() if line.strip()])


def github_ssh_url(owner: str, repo: str) -> str:
    return f"git@github.com:{owner}/{repo}.git"


def clone(repo_url: str, dest: Path) -> None:
    """Clone *repo_url* into *dest*.

    Raises subprocess.CalledProcessError on failure and FileNotFoundError
    if git is not installed.
    """
    run_git("clone", repo_url, str(dest))
