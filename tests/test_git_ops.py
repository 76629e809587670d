"""Tests for ws_core.git_ops — git introspection helpers."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from ws_core import git_ops


def _repo(tmp_path, name="repo"):
    path = tmp_path / name
    (path / ".git").mkdir(parents=True)
    return path


class TestHasGitMarker:
    def test_with_git_dir(self, tmp_path):
        assert git_ops.has_git_marker(_repo(tmp_path)) is True

    def test_plain_dir(self, tmp_path):
        assert git_ops.has_git_marker(tmp_path) is False

    def test_git_file_is_not_a_marker(self, tmp_path):
        (tmp_path / ".git").write_text("gitdir: elsewhere")
        assert git_ops.has_git_marker(tmp_path) is False


class TestCurrentBranch:
    @patch("ws_core.git_ops.subprocess.run")
    def test_branch(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout="main\n")
        assert git_ops.current_branch(_repo(tmp_path)) == "main"
        assert mock_run.call_args[0][0] == ["git", "rev-parse", "--abbrev-ref", "HEAD"]

    @patch("ws_core.git_ops.subprocess.run")
    def test_detached_head(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout="HEAD\n")
        assert git_ops.current_branch(_repo(tmp_path)) == ""

    @patch("ws_core.git_ops.subprocess.run")
    def test_git_error(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=128, stdout="", stderr="fatal")
        assert git_ops.current_branch(_repo(tmp_path)) == ""

    @patch("ws_core.git_ops.subprocess.run", side_effect=FileNotFoundError("git"))
    def test_git_missing(self, mock_run, tmp_path):
        assert git_ops.current_branch(_repo(tmp_path)) == ""

    @patch("ws_core.git_ops.subprocess.run")
    def test_not_a_repo_skips_git(self, mock_run, tmp_path):
        assert git_ops.current_branch(tmp_path) == ""
        mock_run.assert_not_called()


class TestUncommittedChanges:
    @patch("ws_core.git_ops.subprocess.run")
    def test_counts_lines(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout=" M a.py\n?? b.py\n\n")
        assert git_ops.uncommitted_changes(_repo(tmp_path)) == 2

    @patch("ws_core.git_ops.subprocess.run")
    def test_clean(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout="")
        assert git_ops.uncommitted_changes(_repo(tmp_path)) == 0

    @patch("ws_core.git_ops.subprocess.run")
    def test_failure_is_zero(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=1, stdout="garbage")
        assert git_ops.uncommitted_changes(_repo(tmp_path)) == 0


class TestClone:
    def test_ssh_url(self):
        assert git_ops.github_ssh_url("acme", "api") == "git@github.com:acme/api.git"

    @patch("ws_core.git_ops.subprocess.run")
    def test_clone_runs_git(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout="")
        git_ops.clone("git@github.com:acme/api.git", tmp_path / "api")
        assert mock_run.call_args[0][0] == [
            "git", "clone", "git@github.com:acme/api.git", str(tmp_path / "api")]

    @patch("ws_core.git_ops.subprocess.run")
    def test_clone_failure_raises(self, mock_run, tmp_path):
        mock_run.side_effect = subprocess.CalledProcessError(128, ["git", "clone"])
        with pytest.raises(subprocess.CalledProcessError):
            git_ops.clone("git@github.com:acme/api.git", tmp_path / "api")
