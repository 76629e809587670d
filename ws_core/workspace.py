"""End-to-end workspace flows: pick, open, clone, re-attach.

These glue the catalog, picker, usage tracker, layout resolver and
session driver together.  Collaborators are passed in so the CLI can use
the real ones and tests can use fakes.
"""

import subprocess
from pathlib import Path
from typing import Callable, Optional

from dotenv import load_dotenv
from rich.text import Text

from ws_core import git_ops
from ws_core.cache import CacheWriteError, WorkspaceCache, load_cache, save_cache
from ws_core.catalog import CatalogItem, ItemKind, build_catalog, list_local_dirs
from ws_core.config import SessionConfig, WorkspaceConfig
from ws_core.gh_ops import RemoteListError, RemoteRepoProvider, get_provider
from ws_core.layout import parse_selector, resolve_layout, resolve_preset_plan
from ws_core.paths import configure_logger
from ws_core.picker import pick
from ws_core.session import (
    SessionDriver,
    SessionState,
    list_active_projects,
    live_project_names,
    session_name,
)
from ws_core.usage import record_usage, tracking_enabled

_log = configure_logger("ws.workspace")

ENV_FILE_NAME = ".workspace.env"
PRESET_SESSION_PREFIX = "preset"

Picker = Callable[[str, list[CatalogItem]], Optional[str]]


class WorkspaceError(Exception):
    """Raised when a workspace flow can't continue (missing root/project, clone failure)."""


def load_env_file(ws: WorkspaceConfig) -> Optional[Path]:
    """Load ``.workspace.env`` from the workspace root, else from $HOME.

    Variables already set in the environment win.  Returns the loaded
    file, or None if there was none.
    """
    for candidate in (ws.root / ENV_FILE_NAME, Path.home() / ENV_FILE_NAME):
        if candidate.is_file():
            load_dotenv(candidate, override=False)
            _log.debug("loaded env file %s", candidate)
            return candidate
    return None


def _require_root(ws: WorkspaceConfig) -> Path:
    root = ws.root
    if not root.is_dir():
        raise WorkspaceError(f"workspace '{ws.key}' root {root} does not exist")
    return root


def project_exists(ws: WorkspaceConfig, project: str) -> bool:
    return bool(project) and (ws.root / project).is_dir()


def _persist(ws: WorkspaceConfig, cache: WorkspaceCache, project: Optional[str]) -> None:
    """Write the cache once: through the usage tracker if a project was chosen."""
    try:
        if project and tracking_enabled(ws):
            record_usage(ws, cache, project)
        else:
            save_cache(ws, cache)
    except CacheWriteError as e:
        _log.error("saving cache failed: %s", e)


def _remote_has(ws: WorkspaceConfig, name: str,
                provider: Optional[RemoteRepoProvider]) -> bool:
    if not (ws.enable_remote_repos and ws.github_org):
        return False
    cache = load_cache(ws)
    if name in cache.github_repos:
        return True
    try:
        return name in (provider or get_provider(ws)).list_repo_names(ws.github_org, ws.is_org)
    except RemoteListError as e:
        _log.warning("remote lookup of %s failed: %s", name, e)
        return False


def clone_project(ws: WorkspaceConfig, name: str) -> Path:
    """Clone ``<org>/<name>`` into the workspace root. Returns the new path."""
    root = _require_root(ws)
    if not ws.github_org:
        raise WorkspaceError(f"cannot clone '{name}': workspace '{ws.key}' has no org_github")
    dest = root / name
    if dest.exists():
        raise WorkspaceError(f"cannot clone '{name}': {dest} already exists")
    url = git_ops.github_ssh_url(ws.github_org, name)
    _log.info("cloning %s into %s", url, dest)
    try:
        git_ops.clone(url, dest)
    except OSError as e:
        raise WorkspaceError(f"cloning {url} failed: {e}") from e
    except subprocess.CalledProcessError as e:
        raise WorkspaceError(f"cloning {url} failed: {(e.stderr or '').strip() or e}") from e
    return dest


def open_project(
    ws: WorkspaceConfig,
    presets: dict[str, SessionConfig],
    selector: str,
    driver: Optional[SessionDriver] = None,
    clone_missing: bool = False,
    provider: Optional[RemoteRepoProvider] = None,
) -> SessionState:
    """Open (or re-attach to) the session for ``project[:file[:extra]]``.

    With *clone_missing*, a project that only exists remotely is cloned
    first.
    """
    root = _require_root(ws)
    sel = parse_selector(selector)
    if not sel.project:
        raise WorkspaceError("no project given")
    if not project_exists(ws, sel.project):
        if clone_missing and _remote_has(ws, sel.project, provider):
            clone_project(ws, sel.project)
        else:
            raise WorkspaceError(f"project '{sel.project}' not found in {root}")
    plan = resolve_layout(ws, presets, root / sel.project, sel)
    return (driver or SessionDriver()).open(session_name(ws, sel.project), plan)


def preset_items(presets: dict[str, SessionConfig]) -> list[CatalogItem]:
    """Catalog entries for presets that can be opened on their own (have a path)."""
    return [
        CatalogItem(label=name, kind=ItemKind.PRESET, name=name,
                    subtitle=Text(f"Session preset ({s.path})", style="dim"))
        for name, s in sorted(presets.items()) if s.path
    ]


def open_preset(name: str, presets: dict[str, SessionConfig],
                driver: Optional[SessionDriver] = None) -> SessionState:
    plan = resolve_preset_plan(name, presets)
    return (driver or SessionDriver()).open(f"{PRESET_SESSION_PREFIX}-{name}", plan)


def choose_preset(presets: dict[str, SessionConfig], picker: Picker = pick,
                  driver: Optional[SessionDriver] = None) -> Optional[SessionState]:
    key = picker("Session presets", preset_items(presets))
    if not key:
        return None
    return open_preset(key.split(":", 1)[1], presets, driver)


def choose_project(
    ws: WorkspaceConfig,
    presets: dict[str, SessionConfig],
    refresh: bool = False,
    with_presets: bool = False,
    picker: Picker = pick,
    provider: Optional[RemoteRepoProvider] = None,
    driver: Optional[SessionDriver] = None,
) -> Optional[SessionState]:
    """Build the catalog, let the user pick, then open what was picked.

    Returns None when the user cancelled or picked the error placeholder.
    The cache is saved exactly once, before any clone or tmux work.
    """
    root = _require_root(ws)
    cache = load_cache(ws)
    if provider is None and ws.enable_remote_repos:
        provider = get_provider(ws)
    result = build_catalog(
        ws,
        cache,
        active_projects=live_project_names(ws),
        entries=list_local_dirs(root),
        provider=provider,
        extra_items=preset_items(presets) if with_presets else (),
        refresh=refresh,
    )
    key = picker(f"Projects in workspace: {ws.name}", result.items)
    item = result.find(key) if key else None

    chosen = item.name if item and item.kind in (ItemKind.LOCAL, ItemKind.CLONABLE) else None
    _persist(ws, cache, chosen)

    if item is None or item.kind is ItemKind.ERROR:
        return None
    if item.kind is ItemKind.PRESET:
        return open_preset(item.name, presets, driver)
    if item.kind is ItemKind.CLONABLE:
        clone_project(ws, item.name)
    return open_project(ws, presets, item.name, driver)


def choose_active_session(
    ws: WorkspaceConfig,
    picker: Picker = pick,
    driver: Optional[SessionDriver] = None,
) -> Optional[SessionState]:
    """Pick among the workspace's live sessions and attach to it."""
    projects = list_active_projects(ws.prefix)
    if not projects:
        _log.info("no open projects in workspace %s", ws.key)
        return None
    items = [CatalogItem(label=p, kind=ItemKind.LOCAL, name=p, active=True) for p in projects]
    key = picker(f"Open projects in workspace: {ws.name}", items)
    if not key:
        return None
    project = key.split(":", 1)[1]
    if tracking_enabled(ws):
        _persist(ws, load_cache(ws), project)
    driver = driver or SessionDriver()
    driver.attach(session_name(ws, project))
    return driver.state
