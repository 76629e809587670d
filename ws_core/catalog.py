"""Build the ordered list of projects offered by the picker.

The catalog merges four sources for one workspace: directories under the
workspace root, git facts (cached or freshly collected), the remote repo
list, and access statistics from the cache.  No single source failing
stops the build; a failed remote listing shows up as one error item at
the end of the list.

The builder mutates the cache it is given (fresh git facts, fetched
remote list) but never saves it.  Saving is the caller's job.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Optional

from rich.text import Text

from ws_core.cache import WorkspaceCache
from ws_core.config import WorkspaceConfig
from ws_core.gh_ops import RemoteListError, RemoteRepoProvider
from ws_core.git_info import GitInfo, collect_git_info
from ws_core.paths import configure_logger
from ws_core.session import safe_name

_log = configure_logger("ws.catalog")

REMOTE_ERROR_LABEL = "⚠ GitHub repos unavailable"
REMOTE_ERROR_HINT = "Check network connection or GITHUB_AUTH token"

BRANCH_STYLE = "cyan"
CHANGES_STYLE = "yellow"
CLEAN_STYLE = "green"
MUTED_STYLE = "dim"


class ItemKind(Enum):
    LOCAL = "folder"
    CLONABLE = "git"
    ERROR = "error"
    PRESET = "preset"


@dataclass(frozen=True)
class CatalogItem:
    label: str
    kind: ItemKind
    name: str
    subtitle: Text = field(default_factory=Text)
    active: bool = False

    @property
    def key(self) -> str:
        """Opaque identity handed to the picker and back."""
        return f"{self.kind.value}:{self.name}"


@dataclass
class CatalogResult:
    items: list[CatalogItem]
    remote_error: Optional[str] = None

    def find(self, key: str) -> Optional[CatalogItem]:
        for item in self.items:
            if item.key == key:
                return item
        return None


def list_local_dirs(root: Path) -> list[str]:
    """Sorted names of the non-hidden directories directly under *root*."""
    try:
        entries = list(root.iterdir())
    except OSError as e:
        _log.warning("listing %s failed: %s", root, e)
        return []
    return sorted(e.name for e in entries if e.is_dir() and not e.name.startswith("."))


# --- Subtitles ---

def _status(text: Text, branch: str, changes: int) -> None:
    text.append(branch, style=BRANCH_STYLE)
    if changes > 0:
        text.append(f" ({changes})", style=CHANGES_STYLE)
    else:
        text.append(" ✓", style=CLEAN_STYLE)


def git_subtitle(info: Optional[GitInfo]) -> Text:
    """``Service: main (3) | Tenant: main ✓`` style summary."""
    if info is None:
        return Text("Folder", style=MUTED_STYLE)
    text = Text("Service: ")
    if info.branch:
        _status(text, info.branch, info.changes)
    else:
        text.append("(error loading git info)", style=MUTED_STYLE)
    if info.has_tenant:
        text.append(" | Tenant: ")
        if info.tenant_branch:
            _status(text, info.tenant_branch, info.tenant_changes)
    return text


# --- Build steps ---

def _git_facts(ws, cache, root, names, collector, refresh) -> dict[str, GitInfo]:
    """Serve git facts from the cache where possible, collect the rest.

    Every freshly collected result is written back to the cache.
    """
    facts: dict[str, GitInfo] = {}
    missing = []
    for name in names:
        entry = cache.get_project(name) if ws.enable_cache and not refresh else None
        if entry is not None and entry.has_git_info:
            facts[name] = entry.to_git_info(name)
        else:
            missing.append(name)
    cached = len(facts)
    if missing:
        tenant_prefix = ws.tenant_repo_prefix if ws.tenant_pairing else ""
        fresh = collector(root, missing, tenant_prefix)
        for name, info in fresh.items():
            facts[name] = info
            cache.update_git_info(name, info)
    _log.debug("git facts: %d cached, %d collected", cached, len(missing))
    return facts


def _remote_names(ws, cache, provider, refresh) -> tuple[list[str], Optional[str]]:
    if ws.enable_cache and cache.github_repos and not refresh:
        return list(cache.github_repos), None
    if not ws.github_org:
        return [], "no org_github configured"
    try:
        names = provider.list_repo_names(ws.github_org, ws.is_org)
    except (RemoteListError, OSError) as e:
        _log.error("listing remote repos for %s failed: %s", ws.github_org, e)
        return [], str(e)
    cache.update_remote_repos(names)
    return names, None


def _sort_key(ws: WorkspaceConfig, cache: WorkspaceCache):
    by_usage = ws.enable_usage_tracking and ws.enable_cache

    def key(item: CatalogItem):
        recent = cache.recent_count(item.name) if by_usage else 0
        return (not item.active, -recent, item.label.casefold())
    return key


def build_catalog(
    ws: WorkspaceConfig,
    cache: WorkspaceCache,
    active_projects: Iterable[str],
    entries: list[str],
    provider: Optional[RemoteRepoProvider] = None,
    extra_items: Iterable[CatalogItem] = (),
    git_collector: Callable[..., dict[str, GitInfo]] = collect_git_info,
    refresh: bool = False,
) -> CatalogResult:
    """Merge local dirs, git facts, remote repos and usage into one list.

    *entries* are the directory names under the workspace root, in the
    order they should appear before sorting.  *active_projects* are the
    (tmux-safe) names of projects with a live session.
    """
    root = ws.root
    active = set(active_projects)

    names = [n for n in entries if not (ws.tenant_pairing and not ws.is_service_repo(n))]
    facts = _git_facts(ws, cache, root, names, git_collector, refresh) if ws.enable_git_info else {}

    remote: list[str] = []
    remote_error = None
    if ws.enable_remote_repos:
        if provider is None:
            remote_error = "no remote provider configured"
        else:
            remote, remote_error = _remote_names(ws, cache, provider, refresh)

    local_items = []
    for name in names:
        label = name
        if ws.tenant_pairing and (root / ws.tenant_repo_name(name)).is_dir():
            label += " + tenant"
        is_active = safe_name(name) in active
        if is_active:
            label += " (Active)"
        local_items.append(CatalogItem(
            label=label,
            kind=ItemKind.LOCAL,
            name=name,
            subtitle=git_subtitle(facts.get(name)),
            active=is_active,
        ))

    if ws.active_projects_first:
        local_items.sort(key=_sort_key(ws, cache))

    local = set(entries)
    items = list(local_items)
    items.extend(
        CatalogItem(label=r, kind=ItemKind.CLONABLE, name=r,
                    subtitle=Text("Clone From GitHub", style=MUTED_STYLE))
        for r in remote if r not in local
    )
    items.extend(extra_items)
    if remote_error is not None:
        items.append(CatalogItem(
            label=REMOTE_ERROR_LABEL,
            kind=ItemKind.ERROR,
            name="remote",
            subtitle=Text(f"{REMOTE_ERROR_HINT} ({remote_error})", style="red"),
        ))
    return CatalogResult(items=items, remote_error=remote_error)
