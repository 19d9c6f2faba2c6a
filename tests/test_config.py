"""Tests for configuration loading."""

import stat

import pytest
import yaml

from argocd_mcp.config import (
    ArgoCDSettings,
    Config,
    ConfigError,
    load_config,
    mask_token,
    save_config,
)
from argocd_mcp.shaping import DEFAULT_LIMITS


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    """Point HOME and the working directory at empty temp dirs."""
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    return home, work


def write_yaml(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data))
    return path


class TestConfigModel:
    """Tests for Config defaults and helpers."""

    def test_defaults(self):
        config = Config()
        assert config.argocd.server == "localhost:8080"
        assert config.argocd.token == ""
        assert config.server.mcp_endpoint == "stdio"
        assert config.server.safe_mode is False
        assert config.logging.level == "info"
        assert config.limits.to_limits() == DEFAULT_LIMITS

    def test_with_overrides(self):
        config = Config(argocd=ArgoCDSettings(server="a:443", token="t1"))
        updated = config.with_overrides(server="b:443", safe_mode=True, grpc_web=True)
        assert updated.argocd.server == "b:443"
        assert updated.argocd.token == "t1"
        assert updated.argocd.grpc_web is True
        assert updated.server.safe_mode is True
        assert config.argocd.server == "a:443"

    def test_empty_overrides_keep_values(self):
        config = Config(argocd=ArgoCDSettings(server="a:443"))
        assert config.with_overrides(server="", token=None).argocd.server == "a:443"

    def test_to_yaml(self):
        data = yaml.safe_load(Config().to_yaml())
        assert list(data) == ["argocd", "server", "logging", "limits"]
        assert data["limits"]["max_events"] == 20


class TestLoadConfig:
    """Tests for load_config()."""

    def test_explicit_file(self, tmp_path):
        path = write_yaml(tmp_path / "c.yaml", {
            "argocd": {"server": "argocd.example.com", "insecure": True},
            "limits": {"max_items": 10},
        })
        config = load_config(path, environ={})
        assert config.argocd.server == "argocd.example.com"
        assert config.argocd.insecure is True
        assert config.limits.max_items == 10
        assert config.limits.max_events == 20

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.yaml", environ={})

    def test_no_files_gives_defaults(self, isolated_home):
        assert load_config(environ={}) == Config()

    def test_home_file_preferred(self, isolated_home):
        home, work = isolated_home
        write_yaml(home / ".config" / "argocd-mcp" / "config.yaml", {"argocd": {"server": "home:443"}})
        write_yaml(work / "config.yaml", {"argocd": {"server": "cwd:443"}})
        assert load_config(environ={}).argocd.server == "home:443"

    def test_cwd_file(self, isolated_home):
        _, work = isolated_home
        write_yaml(work / "config.yaml", {"server": {"safe_mode": True}})
        assert load_config(environ={}).server.safe_mode is True

    def test_environment_overrides_file(self, tmp_path):
        path = write_yaml(tmp_path / "c.yaml", {"argocd": {"server": "file:443"}})
        config = load_config(path, environ={
            "ARGOCD_MCP_ARGOCD_SERVER": "env:443",
            "ARGOCD_MCP_SERVER_SAFE_MODE": "true",
            "ARGOCD_MCP_LIMITS_MAX_ITEMS": "5",
        })
        assert config.argocd.server == "env:443"
        assert config.server.safe_mode is True
        assert config.limits.max_items == 5

    def test_flat_environment_shortcuts(self, isolated_home):
        config = load_config(environ={"ARGOCD_MCP_SERVER": "flat:443", "ARGOCD_MCP_TOKEN": "tok"})
        assert config.argocd.server == "flat:443"
        assert config.argocd.token == "tok"

    def test_invalid_values(self, tmp_path):
        path = write_yaml(tmp_path / "c.yaml", {"limits": {"max_items": 0}})
        with pytest.raises(ConfigError, match="invalid configuration"):
            load_config(path, environ={})

    def test_non_mapping_file_ignored(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("- just\n- a list\n")
        assert load_config(path, environ={}) == Config()

    def test_unparsable_file_ignored(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("argocd: [unclosed\n")
        assert load_config(path, environ={}) == Config()


class TestSaveConfig:
    """Tests for save_config()."""

    def test_round_trip(self, tmp_path):
        config = Config(argocd=ArgoCDSettings(server="argocd.example.com", token="secret-token"))
        path = save_config(config, tmp_path / "nested" / "config.yaml")
        assert path.exists()
        assert load_config(path, environ={}) == config

    def test_owner_only(self, tmp_path):
        path = save_config(Config(), tmp_path / "config.yaml")
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_default_location(self, isolated_home):
        home, _ = isolated_home
        path = save_config(Config())
        assert path == home / ".config" / "argocd-mcp" / "config.yaml"


class TestMaskToken:
    """Tests for mask_token()."""

    def test_long_token(self):
        assert mask_token("abcdefghijkl") == "abcd****ijkl"

    def test_short_token(self):
        assert mask_token("abc") == "****"
