"""User-level configuration persistence for botracers clients."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path

from .workspace import DEFAULT_ARTIFACT_TARGET

logger = logging.getLogger(__name__)


DEFAULT_SERVER_URL = "http://127.0.0.1:8787"

SERVER_URL_ENV = "BOTRACERS_URL"
ARTIFACT_TARGET_ENV = "BOTRACERS_ARTIFACT_TARGET"
WORKSPACE_ENV = "BOTRACERS_WORKSPACE"


@dataclass
class UserConfig:
    server_url: str | None = None
    artifact_target: str | None = None
    workspace_root: str | None = None


def get_user_config_dir() -> Path:
    """Return the directory holding user-level botracers files."""
    if os.name == "nt":
        base = Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))
        return base / "botracers"

    return Path.home() / ".config" / "botracers"


def get_user_config_path() -> Path:
    """Return the user-level config file path.

    Supports an override via ``BOTRACERS_USER_CONFIG_PATH`` for tests.
    """
    override = os.environ.get("BOTRACERS_USER_CONFIG_PATH", "").strip()
    if override:
        return Path(override)
    return get_user_config_dir() / "config.json"


def _clean(value) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    return None


def load_user_config() -> UserConfig:
    path = get_user_config_path()
    if not path.exists():
        return UserConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable user config %s: %s", path, e)
        return UserConfig()

    if not isinstance(data, dict):
        return UserConfig()
    return UserConfig(
        server_url=_clean(data.get("server_url")),
        artifact_target=_clean(data.get("artifact_target")),
        workspace_root=_clean(data.get("workspace_root")),
    )


def save_user_config(config: UserConfig) -> None:
    path = get_user_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(config), indent=2), encoding="utf-8")


def update_user_config(
    *,
    server_url: str | None = None,
    artifact_target: str | None = None,
    workspace_root: str | None = None,
) -> UserConfig:
    """Persist the given settings, leaving unspecified ones untouched."""
    config = load_user_config()
    if server_url is not None:
        config.server_url = server_url.strip().rstrip("/") or None
    if artifact_target is not None:
        config.artifact_target = artifact_target.strip() or None
    if workspace_root is not None:
        config.workspace_root = workspace_root.strip() or None
    save_user_config(config)
    return config


def resolve_server_url() -> str:
    env_value = os.environ.get(SERVER_URL_ENV, "").strip()
    if env_value:
        return env_value.rstrip("/")
    return (load_user_config().server_url or DEFAULT_SERVER_URL).rstrip("/")


def default_artifact_target() -> str:
    env_value = os.environ.get(ARTIFACT_TARGET_ENV, "").strip()
    if env_value:
        return env_value
    return load_user_config().artifact_target or DEFAULT_ARTIFACT_TARGET


def resolve_workspace_root() -> Path | None:
    """Return the bot workspace root, or None when no directory is usable."""
    candidate = os.environ.get(WORKSPACE_ENV, "").strip() or load_user_config().workspace_root
    root = Path(candidate).expanduser() if candidate else Path.cwd()
    try:
        root = root.resolve()
    except OSError:
        return None
    return root if root.is_dir() else None
