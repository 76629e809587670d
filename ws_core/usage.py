"""Project access tracking on top of the workspace cache."""

from ws_core.cache import WorkspaceCache, save_cache
from ws_core.config import WorkspaceConfig
from ws_core.paths import configure_logger

_log = configure_logger("ws.usage")


def tracking_enabled(ws: WorkspaceConfig) -> bool:
    """Usage tracking needs the cache to persist into."""
    return ws.enable_usage_tracking and ws.enable_cache


def record_usage(ws: WorkspaceConfig, cache: WorkspaceCache, project: str) -> bool:
    """Record one access to *project* and save the cache.

    Returns False without touching the cache when tracking is disabled.
    Raises CacheWriteError if the save fails.
    """
    if not tracking_enabled(ws):
        return False
    cache.record_access(project, ws.window_size)
    save_cache(ws, cache)
    _log.debug("recorded access to %s (recent=%d)", project, cache.recent_count(project))
    return True
