"""Turn a session preset into a concrete window/pane plan for one project.

Resolution is pure: no tmux calls and no filesystem access.  Paths are
expanded (``~`` and env vars) and relative window/pane paths are joined
to the session base directory.
"""

from dataclasses import dataclass
from pathlib import Path

from ws_core.config import SessionConfig, WorkspaceConfig
from ws_core.paths import expand_path

# Pane commands that get the selector's file/extra arguments appended.
EDITOR_COMMANDS = frozenset({"vi", "vim", "nvim"})


class LayoutError(Exception):
    """Raised when no usable session layout can be determined."""


class PresetNotFound(LayoutError):
    def __init__(self, name: str):
        super().__init__(f"session preset '{name}' not found")
        self.name = name


@dataclass(frozen=True)
class PanePlan:
    command: str
    path: Path
    orientation: str = ""
    size: int = 0


@dataclass(frozen=True)
class WindowPlan:
    name: str
    path: Path
    layout: str = ""
    panes: tuple[PanePlan, ...] = ()


@dataclass(frozen=True)
class SessionLayoutPlan:
    base_path: Path
    windows: tuple[WindowPlan, ...]

    def panes(self) -> list[PanePlan]:
        return [p for w in self.windows for p in w.panes]


@dataclass(frozen=True)
class ProjectSelector:
    project: str
    file: str = ""
    extra: str = ""


def parse_selector(selector: str) -> ProjectSelector:
    """Parse ``project[:file[:extra]]``.

    Only the first two colons split; the extra command may contain more.
    """
    parts = selector.split(":", 2)
    parts += [""] * (3 - len(parts))
    return ProjectSelector(project=parts[0], file=parts[1], extra=parts[2])


def _resolve_path(raw: str, base: Path) -> Path:
    if not raw:
        return base
    path = expand_path(raw)
    return path if path.is_absolute() else base / path


def _editor_command(command: str, selector: ProjectSelector) -> str:
    if command not in EDITOR_COMMANDS:
        return command
    if selector.file:
        command += f" ./{selector.file}"
    if selector.extra:
        command += f" {selector.extra}"
    return command


def select_session(ws: WorkspaceConfig, presets: dict[str, SessionConfig],
                   project: str = "") -> SessionConfig:
    """Pick the session layout for *project*.

    Order: the project's own preset, the workspace preset, the inline
    ``session_config``.  A named preset that doesn't exist is an error
    rather than a silent fallback.
    """
    proj = ws.project_config(project) if project else None
    name = (proj.session_preset if proj else "") or ws.session_preset
    if name:
        try:
            return presets[name]
        except KeyError:
            raise PresetNotFound(name) from None
    if ws.session is not None:
        return ws.session
    raise LayoutError(f"workspace '{ws.key}' has no session_preset and no session_config")


def build_plan(session: SessionConfig, base: Path,
               selector: ProjectSelector | None = None) -> SessionLayoutPlan:
    selector = selector or ProjectSelector(project="")
    windows = []
    for w in session.windows:
        wpath = _resolve_path(w.path, base)
        panes = tuple(
            PanePlan(
                command=_editor_command(p.command, selector),
                path=_resolve_path(p.path, wpath),
                orientation=p.orientation,
                size=p.size,
            )
            for p in w.panes
        )
        windows.append(WindowPlan(name=w.name, path=wpath, layout=w.layout, panes=panes))
    if not windows:
        raise LayoutError("session layout defines no windows")
    return SessionLayoutPlan(base_path=base, windows=tuple(windows))


def resolve_layout(ws: WorkspaceConfig, presets: dict[str, SessionConfig],
                   project_path: Path, selector: ProjectSelector) -> SessionLayoutPlan:
    """Build the plan for opening *selector*'s project at *project_path*."""
    session = select_session(ws, presets, selector.project)
    base = project_path
    proj = ws.project_config(selector.project)
    if proj and proj.sub_path:
        base = base / proj.sub_path
    return build_plan(session, base, selector)


def resolve_preset_plan(name: str, presets: dict[str, SessionConfig]) -> SessionLayoutPlan:
    """Plan for a standalone preset session, rooted at the preset's own path."""
    try:
        session = presets[name]
    except KeyError:
        raise PresetNotFound(name) from None
    if not session.path:
        raise LayoutError(f"session preset '{name}' has no path")
    return build_plan(session, expand_path(session.path))
