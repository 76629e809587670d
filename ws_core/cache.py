"""Per-workspace metadata cache (.workspacer-cache.json in the workspace root).

Holds cached git facts per project, the last fetched remote repo list and
a sliding log of recent project accesses.  A missing or unreadable cache
is never fatal: it loads as empty.  There is no cross-process locking;
concurrent invocations race and the last writer wins.
"""

import json
import os
import tempfile
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ws_core.config import WorkspaceConfig
from ws_core.git_info import GitInfo
from ws_core.paths import configure_logger

_log = configure_logger("ws.cache")

CACHE_FILE_NAME = ".workspacer-cache.json"


class CacheWriteError(Exception):
    """Raised when the cache file cannot be written or removed."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_ts(value) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


@dataclass
class ProjectCacheEntry:
    git_branch: str = ""
    git_changes: int = 0
    tenant_branch: str = ""
    tenant_changes: int = 0
    access_count_total: int = 0
    access_count_recent: int = 0

    @property
    def has_git_info(self) -> bool:
        """Entries created by access tracking alone carry no git facts."""
        return bool(self.git_branch)

    def to_git_info(self, name: str) -> GitInfo:
        return GitInfo(
            name=name,
            branch=self.git_branch,
            changes=self.git_changes,
            has_tenant=bool(self.tenant_branch),
            tenant_branch=self.tenant_branch,
            tenant_changes=self.tenant_changes,
        )


@dataclass
class AccessRecord:
    project: str
    timestamp: datetime


@dataclass
class WorkspaceCache:
    last_updated: Optional[datetime] = None
    projects: dict[str, ProjectCacheEntry] = field(default_factory=dict)
    github_repos: list[str] = field(default_factory=list)
    github_repos_updated: Optional[datetime] = None
    recent_accesses: list[AccessRecord] = field(default_factory=list)

    def get_project(self, name: str) -> Optional[ProjectCacheEntry]:
        return self.projects.get(name)

    def update_git_info(self, name: str, info: GitInfo) -> None:
        """Replace the git fields of *name*'s entry, keeping access counters."""
        entry = self.projects.setdefault(name, ProjectCacheEntry())
        entry.git_branch = info.branch
        entry.git_changes = info.changes
        entry.tenant_branch = info.tenant_branch if info.has_tenant else ""
        entry.tenant_changes = info.tenant_changes if info.has_tenant else 0

    def update_remote_repos(self, names: list[str]) -> None:
        self.github_repos = list(names)
        self.github_repos_updated = _now()

    def record_access(self, name: str, window_size: int,
                      now: Optional[datetime] = None) -> None:
        """Append an access, trim the log to *window_size*, refresh counters.

        The recent counter is recomputed from the trimmed log, because
        trimming can evict records of this project as well as others.
        """
        self.recent_accesses.append(AccessRecord(name, now or _now()))
        if window_size > 0 and len(self.recent_accesses) > window_size:
            self.recent_accesses = self.recent_accesses[-window_size:]

        entry = self.projects.setdefault(name, ProjectCacheEntry())
        entry.access_count_total += 1
        self.recount_recent()

    def recount_recent(self) -> None:
        """Recompute access_count_recent of every project from the log."""
        counts: dict[str, int] = {}
        for rec in self.recent_accesses:
            counts[rec.project] = counts.get(rec.project, 0) + 1
        for name, entry in self.projects.items():
            entry.access_count_recent = counts.get(name, 0)

    def recent_count(self, name: str) -> int:
        entry = self.projects.get(name)
        return entry.access_count_recent if entry else 0

    # --- (de)serialization ---

    def to_dict(self) -> dict:
        return {
            "last_updated": _ts(self.last_updated),
            "projects": {name: asdict(e) for name, e in self.projects.items()},
            "github_repos": list(self.github_repos),
            "github_repos_updated": _ts(self.github_repos_updated),
            "recent_accesses": [
                {"project": r.project, "timestamp": _ts(r.timestamp)}
                for r in self.recent_accesses
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkspaceCache":
        """Build a cache from decoded JSON.

        Raises KeyError/TypeError/ValueError on malformed content.
        """
        if not isinstance(data, dict):
            raise TypeError("cache root must be an object")
        raw_projects = data.get("projects") or {}
        if not isinstance(raw_projects, dict):
            raise TypeError("cache 'projects' must be an object")
        known = set(ProjectCacheEntry.__dataclass_fields__)
        projects = {}
        for name, entry in raw_projects.items():
            if not isinstance(entry, dict):
                raise TypeError(f"cache entry for {name!r} must be an object")
            projects[name] = ProjectCacheEntry(**{k: v for k, v in entry.items() if k in known})
        return cls(
            last_updated=_parse_ts(data.get("last_updated")),
            projects=projects,
            github_repos=[str(n) for n in data.get("github_repos") or []],
            github_repos_updated=_parse_ts(data.get("github_repos_updated")),
            recent_accesses=[
                AccessRecord(r["project"], _parse_ts(r["timestamp"]))
                for r in data.get("recent_accesses") or []
            ],
        )


def cache_path(ws: WorkspaceConfig) -> Path:
    return ws.root / CACHE_FILE_NAME


def load_cache(ws: WorkspaceConfig) -> WorkspaceCache:
    """Load the workspace cache; never raises.

    Returns an empty cache when caching is disabled or the file is
    missing, unreadable or malformed.
    """
    if not ws.enable_cache:
        return WorkspaceCache()
    path = cache_path(ws)
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        return WorkspaceCache()
    except OSError as e:
        _log.warning("reading cache %s failed, ignoring: %s", path, e)
        return WorkspaceCache()
    try:
        # UnicodeDecodeError is a ValueError
        return WorkspaceCache.from_dict(json.loads(raw.decode("utf-8")))
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        _log.warning("parsing cache %s failed, ignoring: %s", path, e)
        return WorkspaceCache()


def save_cache(ws: WorkspaceConfig, cache: WorkspaceCache) -> None:
    """Stamp ``last_updated`` and atomically write the cache.

    No-op when caching is disabled.  Raises CacheWriteError on I/O failure.
    """
    if not ws.enable_cache:
        return
    cache.last_updated = _now()
    path = cache_path(ws)
    payload = json.dumps(cache.to_dict(), indent=2) + "\n"
    try:
        fd, tmp = tempfile.mkstemp(prefix=CACHE_FILE_NAME + ".", dir=path.parent)
        try:
            with os.fdopen(fd, "w") as f:
                f.write(payload)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
    except OSError as e:
        raise CacheWriteError(f"writing cache {path}: {e}") from e
    _log.debug("saved cache %s (%d projects)", path, len(cache.projects))


def clear_cache(ws: WorkspaceConfig) -> bool:
    """Delete the cache file. Returns False if there was nothing to delete."""
    path = cache_path(ws)
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        raise CacheWriteError(f"deleting cache {path}: {e}") from e
    _log.info("cleared cache %s", path)
    return True


def cache_stats(ws: WorkspaceConfig) -> dict:
    """Describe the on-disk cache for ``cache status``."""
    path = cache_path(ws)
    stats: dict = {"path": str(path), "exists": path.exists()}
    if not stats["exists"]:
        return stats
    st = path.stat()
    stats["size_bytes"] = st.st_size
    stats["modified"] = datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)
    # Read regardless of enable_cache so status reflects what is on disk.
    cache = load_cache(ws if ws.enable_cache else _with_cache(ws))
    stats["num_projects"] = len(cache.projects)
    stats["num_github_repos"] = len(cache.github_repos)
    stats["num_recent_accesses"] = len(cache.recent_accesses)
    stats["last_updated"] = cache.last_updated
    return stats


def _with_cache(ws: WorkspaceConfig) -> WorkspaceConfig:
    return replace(ws, enable_cache=True)
