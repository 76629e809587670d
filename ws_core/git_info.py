"""Concurrent git status collection for workspace projects.

Each project is queried on its own worker thread.  Results are gathered
back on the calling thread, so the returned map has a single writer.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from pathlib import Path

from ws_core import git_ops
from ws_core.paths import configure_logger

_log = configure_logger("ws.git_info")

MAX_WORKERS = 16


@dataclass(frozen=True)
class GitInfo:
    """Git facts for one project, plus its tenant twin when paired."""

    name: str
    branch: str = ""
    changes: int = 0
    has_error: bool = False
    has_tenant: bool = False
    tenant_branch: str = ""
    tenant_changes: int = 0


def collect_one(root: Path, name: str, tenant_name: str = "") -> GitInfo:
    """Gather git facts for ``root/name`` (and ``root/tenant_name`` if given)."""
    path = root / name
    branch = git_ops.current_branch(path)
    info = GitInfo(
        name=name,
        branch=branch,
        changes=git_ops.uncommitted_changes(path),
        has_error=not branch,
    )
    if tenant_name and (root / tenant_name).is_dir():
        tenant_path = root / tenant_name
        info = replace(
            info,
            has_tenant=True,
            tenant_branch=git_ops.current_branch(tenant_path),
            tenant_changes=git_ops.uncommitted_changes(tenant_path),
        )
    return info


def collect_git_info(
    root: Path,
    names: list[str],
    tenant_prefix: str = "",
    max_workers: int = MAX_WORKERS,
) -> dict[str, GitInfo]:
    """Collect git info for every project in *names* that has a ``.git`` dir.

    Projects without a marker are skipped.  A failure inside one worker is
    recorded as ``has_error=True`` for that project only.  Returns once all
    workers have finished.
    """
    candidates = [n for n in names if git_ops.has_git_marker(root / n)]
    if not candidates:
        return {}

    results: dict[str, GitInfo] = {}
    workers = max(1, min(max_workers, len(candidates)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ws-git-info") as pool:
        futures = {
            name: pool.submit(
                collect_one, root, name,
                tenant_prefix + name if tenant_prefix else "",
            )
            for name in candidates
        }
        for name, future in futures.items():
            try:
                results[name] = future.result()
            except Exception as e:
                _log.warning("git info for %s failed: %s", name, e)
                results[name] = GitInfo(name=name, has_error=True)
    _log.debug("collected git info for %d project(s)", len(results))
    return results
