"""Global config: workspaces and session presets.

The config file is JSON (``~/.config/workspacer/workspaces.json``).  It is
parsed with ``yaml.safe_load`` so hand-written YAML works too.  A missing
file means the built-in defaults are used.
"""

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path

import yaml

from ws_core.paths import configure_logger, default_config_path, expand_path

_log = configure_logger("ws.config")

DEFAULT_RECENT_ACCESS_WINDOW = 50

ORIENTATIONS = ("horizontal", "vertical")
GITHUB_BACKENDS = ("api", "cli")


class ConfigError(Exception):
    """Raised when the config file cannot be read or does not make sense."""


@dataclass(frozen=True)
class PaneConfig:
    command: str = ""
    orientation: str = ""
    size: int = 0
    path: str = ""


@dataclass(frozen=True)
class WindowConfig:
    name: str = ""
    layout: str = ""
    path: str = ""
    panes: tuple[PaneConfig, ...] = ()


@dataclass(frozen=True)
class SessionConfig:
    path: str = ""
    windows: tuple[WindowConfig, ...] = ()

    def list_panes(self) -> list[PaneConfig]:
        """All panes across all windows, in window then pane order."""
        return [p for w in self.windows for p in w.panes]


@dataclass(frozen=True)
class ProjectConfig:
    name: str
    sub_path: str = ""
    session_preset: str = ""


@dataclass(frozen=True)
class WorkspaceConfig:
    """One workspace: a root folder, a session prefix and feature toggles."""

    key: str
    name: str = ""
    prefix: str = ""
    path: str = ""
    github_org: str = ""
    is_org: bool = False
    projects: tuple[ProjectConfig, ...] = ()
    session_preset: str = ""
    session: SessionConfig | None = None
    enable_tenant_repos: bool = False
    tenant_repo_prefix: str = ""
    active_projects_first: bool = False
    enable_git_info: bool = False
    enable_remote_repos: bool = False
    github_backend: str = "api"
    enable_cache: bool = False
    enable_usage_tracking: bool = False
    recent_access_window: int = 0

    @property
    def root(self) -> Path:
        """Workspace root with ``~`` expanded."""
        return expand_path(self.path)

    @property
    def window_size(self) -> int:
        return self.recent_access_window or DEFAULT_RECENT_ACCESS_WINDOW

    @property
    def tenant_pairing(self) -> bool:
        return self.enable_tenant_repos and bool(self.tenant_repo_prefix)

    def project_config(self, project: str) -> ProjectConfig | None:
        for p in self.projects:
            if p.name == project:
                return p
        return None

    def is_service_repo(self, name: str) -> bool:
        """True unless *name* is a tenant repo under the configured prefix."""
        if not self.tenant_repo_prefix:
            return True
        return not name.startswith(self.tenant_repo_prefix)

    def tenant_repo_name(self, service: str) -> str:
        if not self.tenant_repo_prefix:
            return ""
        return self.tenant_repo_prefix + service


@dataclass(frozen=True)
class GlobalConfig:
    default_workspace: str = ""
    workspaces: dict[str, WorkspaceConfig] = field(default_factory=dict)
    session_presets: dict[str, SessionConfig] = field(default_factory=dict)

    def workspace(self, key: str | None) -> WorkspaceConfig:
        """Return the workspace for *key* (or the default one)."""
        key = key or self.default_workspace
        if not key:
            raise ConfigError("no workspace given and no default_workspace configured")
        try:
            return self.workspaces[key]
        except KeyError:
            known = ", ".join(sorted(self.workspaces)) or "none"
            raise ConfigError(f"workspace '{key}' not found (known: {known})") from None


# --- Parsing ---

def _pane_from_dict(d: dict) -> PaneConfig:
    orientation = d.get("orientation") or ""
    if orientation and orientation not in ORIENTATIONS:
        raise ConfigError(f"invalid pane orientation '{orientation}'")
    return PaneConfig(
        command=d.get("command") or "",
        orientation=orientation,
        size=int(d.get("size") or 0),
        path=d.get("path") or "",
    )


def _window_from_dict(d: dict) -> WindowConfig:
    return WindowConfig(
        name=d.get("name") or "",
        layout=d.get("layout") or "",
        path=d.get("path") or "",
        panes=tuple(_pane_from_dict(p) for p in d.get("panes") or []),
    )


def session_from_dict(d: dict) -> SessionConfig:
    return SessionConfig(
        path=d.get("path") or "",
        windows=tuple(_window_from_dict(w) for w in d.get("screens") or []),
    )


def workspace_from_dict(key: str, d: dict) -> WorkspaceConfig:
    backend = d.get("github_backend") or "api"
    if backend not in GITHUB_BACKENDS:
        raise ConfigError(f"workspace '{key}': unknown github_backend '{backend}'")
    inline = d.get("session_config")
    return WorkspaceConfig(
        key=key,
        name=d.get("name") or key,
        prefix=d.get("prefix") or "",
        path=d.get("path") or "",
        github_org=d.get("org_github") or "",
        is_org=bool(d.get("is_org")),
        projects=tuple(
            ProjectConfig(
                name=p["name"],
                sub_path=p.get("sub_path") or "",
                session_preset=p.get("session_preset") or "",
            )
            for p in d.get("projects") or []
        ),
        session_preset=d.get("session_preset") or "",
        session=session_from_dict(inline) if inline else None,
        enable_tenant_repos=bool(d.get("enable_tenant_repos")),
        tenant_repo_prefix=d.get("tenant_repo_prefix") or "",
        active_projects_first=bool(d.get("active_projects_first")),
        enable_git_info=bool(d.get("enable_git_info")),
        enable_remote_repos=bool(d.get("enable_remote_repos")),
        github_backend=backend,
        enable_cache=bool(d.get("enable_cache")),
        enable_usage_tracking=bool(d.get("enable_usage_tracking")),
        recent_access_window=int(d.get("recent_access_window") or 0),
    )


def config_from_dict(data: dict) -> GlobalConfig:
    """Build a GlobalConfig from the decoded JSON document."""
    if not isinstance(data, dict):
        raise ConfigError("config root must be an object")
    try:
        workspaces = {
            key: workspace_from_dict(key, ws)
            for key, ws in (data.get("workspaces") or {}).items()
        }
        presets = {
            name: session_from_dict(s)
            for name, s in (data.get("session_presets") or {}).items()
        }
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ConfigError(f"malformed config: {e}") from e
    return GlobalConfig(
        default_workspace=data.get("default_workspace") or "",
        workspaces=workspaces,
        session_presets=presets,
    )


# --- Serialization (inverse of the parsers above) ---

def _session_to_dict(s: SessionConfig) -> dict:
    return {
        "path": s.path,
        "screens": [
            {
                "name": w.name,
                "layout": w.layout,
                "path": w.path,
                "panes": [asdict(p) for p in w.panes],
            }
            for w in s.windows
        ],
    }


def config_to_dict(conf: GlobalConfig) -> dict:
    workspaces = {}
    for key, ws in conf.workspaces.items():
        d = {
            "name": ws.name,
            "prefix": ws.prefix,
            "path": ws.path,
            "org_github": ws.github_org,
            "is_org": ws.is_org,
            "projects": [asdict(p) for p in ws.projects],
            "session_preset": ws.session_preset,
            "enable_tenant_repos": ws.enable_tenant_repos,
            "tenant_repo_prefix": ws.tenant_repo_prefix,
            "active_projects_first": ws.active_projects_first,
            "enable_git_info": ws.enable_git_info,
            "enable_remote_repos": ws.enable_remote_repos,
            "github_backend": ws.github_backend,
            "enable_cache": ws.enable_cache,
            "enable_usage_tracking": ws.enable_usage_tracking,
            "recent_access_window": ws.recent_access_window,
        }
        if ws.session is not None:
            d["session_config"] = _session_to_dict(ws.session)
        workspaces[key] = d
    return {
        "default_workspace": conf.default_workspace,
        "workspaces": workspaces,
        "session_presets": {
            name: _session_to_dict(s) for name, s in conf.session_presets.items()
        },
    }


# --- Defaults ---

_DEFAULT_DOC = {
    "default_workspace": "ws",
    "workspaces": {
        "notes": {
            "name": "Notes",
            "prefix": "notes",
            "path": "~/Documents/notes/",
            "session_preset": "notes",
        },
        "ws": {
            "name": "Projects",
            "prefix": "ws",
            "path": "~/Projects/",
            "org_github": "",
            "is_org": False,
            "session_preset": "default",
            "active_projects_first": True,
            "enable_git_info": True,
            "enable_remote_repos": False,
            "github_backend": "api",
            "enable_cache": True,
            "enable_usage_tracking": True,
            "recent_access_window": DEFAULT_RECENT_ACCESS_WINDOW,
        },
    },
    "session_presets": {
        "notes": {
            "path": "~/Documents/notes/",
            "screens": [
                {"name": "nvim", "layout": "main-vertical",
                 "panes": [{"command": "nvim"}]},
            ],
        },
        "default": {
            "screens": [
                {"name": "nvim", "layout": "main-vertical",
                 "panes": [{"command": "nvim"}, {"command": ""}]},
            ],
        },
    },
}

DEFAULT_CONFIG = config_from_dict(_DEFAULT_DOC)


# --- File I/O ---

def config_path(override: str | None = None) -> Path:
    """Resolve the config path: explicit override, $WORKSPACER_CONFIG, default."""
    if override:
        return expand_path(override)
    env = os.environ.get("WORKSPACER_CONFIG")
    if env:
        return expand_path(env)
    return default_config_path()


def load_config(path: Path) -> GlobalConfig:
    """Load the global config from *path*.

    Raises ConfigError if the file exists but can't be read or parsed.
    """
    try:
        text = path.read_text()
    except OSError as e:
        raise ConfigError(f"reading config {path}: {e}") from e
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"parsing config {path}: {e}") from e
    _log.info("loaded config from %s", path)
    return config_from_dict(data or {})


def load_or_default(path: Path) -> tuple[GlobalConfig, Path | None]:
    """Load *path* if it exists, else the defaults.

    Returns ``(config, loaded_path)``; *loaded_path* is None for defaults.
    """
    if not path.exists():
        _log.debug("no config at %s, using defaults", path)
        return DEFAULT_CONFIG, None
    return load_config(path), path


def write_default_config(path: Path) -> None:
    """Write DEFAULT_CONFIG to *path* as JSON. Refuses to overwrite."""
    if path.exists():
        raise ConfigError(f"config file already exists at {path}")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(config_to_dict(DEFAULT_CONFIG), indent=2) + "\n")
    except OSError as e:
        raise ConfigError(f"writing config {path}: {e}") from e
