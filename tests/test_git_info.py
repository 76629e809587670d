"""Tests for ws_core.git_info — concurrent git fact collection."""

import threading
from unittest.mock import patch

from ws_core.git_info import GitInfo, collect_git_info, collect_one


def _mkrepo(root, name, git=True):
    path = root / name
    path.mkdir()
    if git:
        (path / ".git").mkdir()
    return path


class TestCollectOne:
    @patch("ws_core.git_info.git_ops.uncommitted_changes", return_value=3)
    @patch("ws_core.git_info.git_ops.current_branch", return_value="main")
    def test_basic(self, mock_branch, mock_changes, tmp_path):
        _mkrepo(tmp_path, "api")
        info = collect_one(tmp_path, "api")
        assert info == GitInfo(name="api", branch="main", changes=3)

    @patch("ws_core.git_info.git_ops.uncommitted_changes", return_value=0)
    @patch("ws_core.git_info.git_ops.current_branch", return_value="")
    def test_no_branch_is_error(self, mock_branch, mock_changes, tmp_path):
        _mkrepo(tmp_path, "api")
        info = collect_one(tmp_path, "api")
        assert info.has_error is True
        assert info.branch == ""

    def test_tenant_twin(self, tmp_path):
        _mkrepo(tmp_path, "svc-a")
        _mkrepo(tmp_path, "infra-svc-a")
        branches = {"svc-a": "main", "infra-svc-a": "prod"}
        changes = {"svc-a": 0, "infra-svc-a": 2}
        with patch("ws_core.git_info.git_ops.current_branch",
                   side_effect=lambda p: branches[p.name]), \
             patch("ws_core.git_info.git_ops.uncommitted_changes",
                   side_effect=lambda p: changes[p.name]):
            info = collect_one(tmp_path, "svc-a", "infra-svc-a")
        assert info.has_tenant is True
        assert info.tenant_branch == "prod"
        assert info.tenant_changes == 2
        assert info.branch == "main"

    @patch("ws_core.git_info.git_ops.uncommitted_changes", return_value=0)
    @patch("ws_core.git_info.git_ops.current_branch", return_value="main")
    def test_missing_tenant_twin(self, mock_branch, mock_changes, tmp_path):
        _mkrepo(tmp_path, "svc-a")
        info = collect_one(tmp_path, "svc-a", "infra-svc-a")
        assert info.has_tenant is False
        assert info.tenant_branch == ""


class TestCollectGitInfo:
    @patch("ws_core.git_info.git_ops.uncommitted_changes", return_value=0)
    @patch("ws_core.git_info.git_ops.current_branch", return_value="main")
    def test_skips_dirs_without_marker(self, mock_branch, mock_changes, tmp_path):
        _mkrepo(tmp_path, "api")
        _mkrepo(tmp_path, "notes", git=False)
        result = collect_git_info(tmp_path, ["api", "notes"])
        assert set(result) == {"api"}

    def test_empty(self, tmp_path):
        assert collect_git_info(tmp_path, []) == {}

    def test_one_failure_does_not_abort_batch(self, tmp_path):
        for name in ("a", "b", "c"):
            _mkrepo(tmp_path, name)

        def branch(path):
            if path.name == "b":
                raise RuntimeError("boom")
            return "main"

        with patch("ws_core.git_info.git_ops.current_branch", side_effect=branch), \
             patch("ws_core.git_info.git_ops.uncommitted_changes", return_value=1):
            result = collect_git_info(tmp_path, ["a", "b", "c"])
        assert result["a"].branch == "main"
        assert result["c"].changes == 1
        assert result["b"] == GitInfo(name="b", has_error=True)

    def test_runs_concurrently_and_joins(self, tmp_path):
        names = [f"p{i}" for i in range(6)]
        for name in names:
            _mkrepo(tmp_path, name)
        # Every worker waits until all are running; a serial run would time out.
        barrier = threading.Barrier(len(names), timeout=5)

        def branch(path):
            barrier.wait()
            return path.name

        with patch("ws_core.git_info.git_ops.current_branch", side_effect=branch), \
             patch("ws_core.git_info.git_ops.uncommitted_changes", return_value=0):
            result = collect_git_info(tmp_path, names, max_workers=len(names))
        assert {n: i.branch for n, i in result.items()} == {n: n for n in names}

    @patch("ws_core.git_info.git_ops.uncommitted_changes", return_value=0)
    @patch("ws_core.git_info.git_ops.current_branch", return_value="main")
    def test_tenant_prefix_pairs(self, mock_branch, mock_changes, tmp_path):
        _mkrepo(tmp_path, "svc-a")
        _mkrepo(tmp_path, "infra-svc-a")
        result = collect_git_info(tmp_path, ["svc-a"], tenant_prefix="infra-")
        assert result["svc-a"].has_tenant is True
