"""Polling watcher that refreshes the engine when the bot workspace changes.

Watched: the workspace root itself (so a config switch counts), ``Cargo.toml``
and every ``*.rs`` file under ``src/bin``. Changes are debounced so a burst of
saves results in one refresh.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable

from .engine import ReconciliationEngine
from .workspace import BINARIES_DIR, MANIFEST_FILENAME

logger = logging.getLogger(__name__)


Fingerprint = tuple


def workspace_fingerprint(root: Path | None) -> Fingerprint:
    """Return a cheap (path, mtime, size) summary of the watched files."""
    if root is None:
        return (None,)

    entries: list[tuple[str, int, int]] = []
    candidates = [root / MANIFEST_FILENAME]
    bin_dir = root / BINARIES_DIR
    if bin_dir.is_dir():
        candidates.extend(sorted(bin_dir.rglob("*.rs")))

    for path in candidates:
        try:
            stat = path.stat()
        except OSError:
            continue
        entries.append((str(path), stat.st_mtime_ns, stat.st_size))
    return (str(root), tuple(entries))


class WorkspaceWatcher:
    """Calls ``engine.refresh()`` after the workspace fingerprint changes."""

    def __init__(
        self,
        engine: ReconciliationEngine,
        root_provider: Callable[[], Path | None],
        *,
        interval_seconds: float = 1.0,
        debounce_seconds: float = 0.3,
    ):
        self.engine = engine
        self.root_provider = root_provider
        self.interval_seconds = interval_seconds
        self.debounce_seconds = debounce_seconds
        self._last: Fingerprint | None = None
        self._task: asyncio.Task | None = None

    def _fingerprint(self) -> Fingerprint:
        return workspace_fingerprint(self.root_provider())

    async def check_once(self) -> bool:
        """Refresh if the workspace changed since the previous check."""
        current = await asyncio.to_thread(self._fingerprint)
        if self._last is None:
            self._last = current
            return False
        if current == self._last:
            return False

        # Wait for the burst to settle before reconciling.
        while True:
            await asyncio.sleep(self.debounce_seconds)
            settled = await asyncio.to_thread(self._fingerprint)
            if settled == current:
                break
            current = settled

        self._last = current
        logger.info("Workspace changed; refreshing")
        await self.engine.refresh()
        return True

    async def run(self) -> None:
        self._last = await asyncio.to_thread(self._fingerprint)
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.check_once()
            except Exception:
                logger.exception("Workspace check failed; still watching")

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
