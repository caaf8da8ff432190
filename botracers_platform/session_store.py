"""Session token persistence, one opaque bearer token per registry URL."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path

from .user_config import get_user_config_dir

logger = logging.getLogger(__name__)


def get_session_path() -> Path:
    """Return the token file path; ``BOTRACERS_SESSION_PATH`` overrides it."""
    override = os.environ.get("BOTRACERS_SESSION_PATH", "").strip()
    if override:
        return Path(override)
    return get_user_config_dir() / "session.json"


class FileSessionStore:
    """Stores tokens in a user-private JSON file keyed by server URL."""

    def __init__(self, server_url: str, *, path: Path | None = None):
        self.server_url = server_url.rstrip("/")
        self.path = path or get_session_path()

    async def get(self) -> str | None:
        return await asyncio.to_thread(self._read_token)

    async def set(self, token: str) -> None:
        await asyncio.to_thread(self._write_token, token)

    async def clear(self) -> None:
        await asyncio.to_thread(self._write_token, None)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return {}
        tokens = data.get("tokens") if isinstance(data, dict) else None
        if not isinstance(tokens, dict):
            return {}
        return {k: v for k, v in tokens.items() if isinstance(k, str) and isinstance(v, str)}

    def _read_token(self) -> str | None:
        token = self._load().get(self.server_url, "").strip()
        return token or None

    def _write_token(self, token: str | None) -> None:
        tokens = self._load()
        if token:
            tokens[self.server_url] = token
        elif self.server_url in tokens:
            del tokens[self.server_url]
        else:
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Created user-private, then swapped in; the token is never world-readable.
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.unlink(missing_ok=True)
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(json.dumps({"tokens": tokens}, indent=2))
        os.replace(tmp, self.path)
