"""Tests for ws_core.usage — access tracking."""

from unittest.mock import patch

import pytest

from ws_core.cache import CacheWriteError, WorkspaceCache, load_cache
from ws_core.usage import record_usage, tracking_enabled


class TestTrackingEnabled:
    @pytest.mark.parametrize("usage,cache,expected", [
        (True, True, True),
        (True, False, False),
        (False, True, False),
        (False, False, False),
    ])
    def test_needs_both(self, make_ws, usage, cache, expected):
        ws = make_ws(enable_usage_tracking=usage, enable_cache=cache)
        assert tracking_enabled(ws) is expected


class TestRecordUsage:
    def test_records_and_saves(self, make_ws):
        ws = make_ws(enable_usage_tracking=True, enable_cache=True, recent_access_window=3)
        cache = WorkspaceCache()
        assert record_usage(ws, cache, "api") is True
        on_disk = load_cache(ws)
        assert on_disk.get_project("api").access_count_total == 1
        assert [r.project for r in on_disk.recent_accesses] == ["api"]

    def test_uses_workspace_window(self, make_ws):
        ws = make_ws(enable_usage_tracking=True, enable_cache=True, recent_access_window=2)
        cache = WorkspaceCache()
        for name in ["a", "b", "c"]:
            record_usage(ws, cache, name)
        assert [r.project for r in cache.recent_accesses] == ["b", "c"]

    def test_default_window(self, make_ws):
        ws = make_ws(enable_usage_tracking=True, enable_cache=True)
        cache = WorkspaceCache()
        with patch("ws_core.usage.save_cache"):
            for _ in range(60):
                record_usage(ws, cache, "api")
        assert len(cache.recent_accesses) == 50

    def test_disabled_does_nothing(self, make_ws, tmp_path):
        ws = make_ws(enable_usage_tracking=False, enable_cache=True)
        cache = WorkspaceCache()
        assert record_usage(ws, cache, "api") is False
        assert cache.recent_accesses == []
        assert list(tmp_path.iterdir()) == []

    def test_save_failure_propagates(self, make_ws):
        ws = make_ws(enable_usage_tracking=True, enable_cache=True)
        with patch("ws_core.usage.save_cache", side_effect=CacheWriteError("disk full")):
            with pytest.raises(CacheWriteError):
                record_usage(ws, WorkspaceCache(), "api")
