"""Tests for user-level configuration."""

import json

from botracers_platform.user_config import (
    DEFAULT_SERVER_URL,
    UserConfig,
    default_artifact_target,
    load_user_config,
    resolve_server_url,
    resolve_workspace_root,
    save_user_config,
    update_user_config,
)
from botracers_platform.workspace import DEFAULT_ARTIFACT_TARGET


def test_defaults_without_config(isolated_config, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    assert load_user_config() == UserConfig()
    assert resolve_server_url() == DEFAULT_SERVER_URL
    assert default_artifact_target() == DEFAULT_ARTIFACT_TARGET
    assert resolve_workspace_root() == tmp_path.resolve()


def test_update_persists_and_merges(isolated_config):
    update_user_config(server_url="https://race.example/")
    update_user_config(artifact_target="thumbv7em-none-eabihf")

    data = json.loads(isolated_config.read_text(encoding="utf-8"))
    assert data["server_url"] == "https://race.example"
    assert data["artifact_target"] == "thumbv7em-none-eabihf"
    assert resolve_server_url() == "https://race.example"
    assert default_artifact_target() == "thumbv7em-none-eabihf"


def test_blank_update_clears_value(isolated_config):
    update_user_config(server_url="https://race.example")
    update_user_config(server_url="  ")

    assert load_user_config().server_url is None
    assert resolve_server_url() == DEFAULT_SERVER_URL


def test_env_overrides_config(isolated_config, monkeypatch):
    save_user_config(UserConfig(server_url="https://race.example", artifact_target="a"))
    monkeypatch.setenv("BOTRACERS_URL", "http://localhost:9000/")
    monkeypatch.setenv("BOTRACERS_ARTIFACT_TARGET", "b")

    assert resolve_server_url() == "http://localhost:9000"
    assert default_artifact_target() == "b"


def test_workspace_root_from_config_and_env(isolated_config, bot_workspace, tmp_path, monkeypatch):
    update_user_config(workspace_root=str(bot_workspace))
    assert resolve_workspace_root() == bot_workspace.resolve()

    other = tmp_path / "other"
    other.mkdir()
    monkeypatch.setenv("BOTRACERS_WORKSPACE", str(other))
    assert resolve_workspace_root() == other.resolve()


def test_workspace_root_missing_directory(isolated_config, tmp_path):
    update_user_config(workspace_root=str(tmp_path / "gone"))
    assert resolve_workspace_root() is None


def test_unreadable_config_falls_back(isolated_config):
    isolated_config.parent.mkdir(parents=True, exist_ok=True)
    isolated_config.write_text("not json", encoding="utf-8")

    assert load_user_config() == UserConfig()
    assert resolve_server_url() == DEFAULT_SERVER_URL
