"""Tests for ws_core.config — parsing, defaults and config file I/O."""

import json

import pytest

from ws_core.config import (
    DEFAULT_CONFIG,
    DEFAULT_RECENT_ACCESS_WINDOW,
    ConfigError,
    ProjectConfig,
    WorkspaceConfig,
    config_from_dict,
    config_path,
    config_to_dict,
    load_config,
    load_or_default,
    write_default_config,
)


SAMPLE = {
    "default_workspace": "work",
    "workspaces": {
        "work": {
            "name": "Work",
            "prefix": "w",
            "path": "~/work/",
            "org_github": "acme",
            "is_org": True,
            "projects": [{"name": "mono", "sub_path": "svc", "session_preset": "ops"}],
            "session_preset": "default",
            "enable_tenant_repos": True,
            "tenant_repo_prefix": "infra-",
            "github_backend": "cli",
            "enable_cache": True,
            "recent_access_window": 20,
        },
        "scratch": {
            "path": "/tmp/scratch",
            "session_config": {"screens": [{"name": "sh", "panes": [{"command": "bash"}]}]},
        },
    },
    "session_presets": {
        "ops": {
            "path": "~/ops",
            "screens": [{
                "name": "main",
                "layout": "tiled",
                "panes": [
                    {"command": "htop"},
                    {"command": "", "orientation": "vertical", "size": 40, "path": "logs"},
                ],
            }],
        },
    },
}


class TestParsing:
    def test_workspace_fields(self):
        ws = config_from_dict(SAMPLE).workspace("work")
        assert ws.name == "Work"
        assert ws.prefix == "w"
        assert ws.github_org == "acme"
        assert ws.is_org is True
        assert ws.github_backend == "cli"
        assert ws.tenant_pairing is True
        assert ws.window_size == 20
        assert ws.project_config("mono") == ProjectConfig("mono", "svc", "ops")
        assert ws.project_config("other") is None

    def test_defaults(self):
        ws = config_from_dict(SAMPLE).workspace("scratch")
        assert ws.name == "scratch"
        assert ws.github_backend == "api"
        assert ws.enable_cache is False
        assert ws.window_size == DEFAULT_RECENT_ACCESS_WINDOW
        assert ws.session.windows[0].panes[0].command == "bash"

    def test_preset(self):
        ops = config_from_dict(SAMPLE).session_presets["ops"]
        assert ops.path == "~/ops"
        window = ops.windows[0]
        assert (window.name, window.layout) == ("main", "tiled")
        assert window.panes[1].orientation == "vertical"
        assert window.panes[1].size == 40
        assert [p.command for p in ops.list_panes()] == ["htop", ""]

    def test_default_workspace(self):
        assert config_from_dict(SAMPLE).workspace(None).key == "work"

    def test_unknown_workspace(self):
        with pytest.raises(ConfigError, match="'nope' not found"):
            config_from_dict(SAMPLE).workspace("nope")

    def test_no_default(self):
        with pytest.raises(ConfigError, match="no default_workspace"):
            config_from_dict({"workspaces": {}}).workspace(None)

    def test_bad_orientation(self):
        doc = {"session_presets": {"x": {"screens": [{"panes": [{"orientation": "diagonal"}]}]}}}
        with pytest.raises(ConfigError, match="orientation"):
            config_from_dict(doc)

    def test_bad_backend(self):
        with pytest.raises(ConfigError, match="github_backend"):
            config_from_dict({"workspaces": {"a": {"github_backend": "svn"}}})

    def test_malformed(self):
        with pytest.raises(ConfigError, match="malformed"):
            config_from_dict({"workspaces": {"a": {"projects": [{"sub_path": "x"}]}}})

    def test_root_must_be_object(self):
        with pytest.raises(ConfigError):
            config_from_dict(["not", "a", "dict"])


class TestWorkspaceHelpers:
    def test_root_expands_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert WorkspaceConfig(key="k", path="~/code").root == tmp_path / "code"

    def test_service_repo(self):
        ws = WorkspaceConfig(key="k", enable_tenant_repos=True, tenant_repo_prefix="infra-")
        assert ws.is_service_repo("svc-a")
        assert not ws.is_service_repo("infra-svc-a")
        assert ws.tenant_repo_name("svc-a") == "infra-svc-a"

    def test_no_tenant_prefix(self):
        ws = WorkspaceConfig(key="k", enable_tenant_repos=True)
        assert ws.tenant_pairing is False
        assert ws.is_service_repo("infra-x")
        assert ws.tenant_repo_name("x") == ""


class TestDefaults:
    def test_default_config(self):
        ws = DEFAULT_CONFIG.workspace(None)
        assert ws.key == "ws"
        assert ws.enable_cache and ws.enable_usage_tracking and ws.enable_git_info
        panes = DEFAULT_CONFIG.session_presets["default"].windows[0].panes
        assert [p.command for p in panes] == ["nvim", ""]

    def test_round_trip(self):
        again = config_from_dict(json.loads(json.dumps(config_to_dict(DEFAULT_CONFIG))))
        assert again == DEFAULT_CONFIG

    def test_round_trip_sample(self):
        conf = config_from_dict(SAMPLE)
        assert config_from_dict(config_to_dict(conf)) == conf


class TestFileIO:
    def test_config_path_override(self, tmp_path):
        assert config_path(str(tmp_path / "c.json")) == tmp_path / "c.json"

    def test_config_path_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("WORKSPACER_CONFIG", str(tmp_path / "env.json"))
        assert config_path() == tmp_path / "env.json"

    def test_load_json(self, tmp_path):
        path = tmp_path / "workspaces.json"
        path.write_text(json.dumps(SAMPLE))
        assert load_config(path).default_workspace == "work"

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "workspaces.yaml"
        path.write_text("default_workspace: y\nworkspaces:\n  y:\n    path: /tmp\n")
        assert load_config(path).workspace(None).path == "/tmp"

    def test_load_garbage(self, tmp_path):
        path = tmp_path / "workspaces.json"
        path.write_text("{: [")
        with pytest.raises(ConfigError, match="parsing config"):
            load_config(path)

    def test_load_or_default_missing(self, tmp_path):
        conf, loaded = load_or_default(tmp_path / "none.json")
        assert conf is DEFAULT_CONFIG
        assert loaded is None

    def test_load_or_default_present(self, tmp_path):
        path = tmp_path / "workspaces.json"
        path.write_text(json.dumps(SAMPLE))
        conf, loaded = load_or_default(path)
        assert loaded == path
        assert conf.default_workspace == "work"

    def test_write_default(self, tmp_path):
        path = tmp_path / "sub" / "workspaces.json"
        write_default_config(path)
        assert load_config(path) == DEFAULT_CONFIG

    def test_write_default_refuses_overwrite(self, tmp_path):
        path = tmp_path / "workspaces.json"
        path.write_text("{}")
        with pytest.raises(ConfigError, match="already exists"):
            write_default_config(path)
        assert path.read_text() == "{}"
