"""
Shared engine and workspace watcher for the web host (single-user local tool).
"""

import logging
import os
from typing import Optional

from botracers_platform.engine import EngineSnapshot, ReconciliationEngine
from botracers_platform.factory import create_engine
from botracers_platform.watcher import WorkspaceWatcher

from .operator import RequestOperator

logger = logging.getLogger(__name__)

WATCH_ENV = "BOTRACERS_WEB_WATCH"


class EngineHost:
    """Owns the process-wide engine; builds it lazily on first use."""

    def __init__(self):
        self._engine: Optional[ReconciliationEngine] = None
        self._watcher: Optional[WorkspaceWatcher] = None

    @property
    def engine(self) -> ReconciliationEngine:
        if self._engine is None:
            self._engine = create_engine(RequestOperator())
        return self._engine

    @engine.setter
    def engine(self, engine: Optional[ReconciliationEngine]) -> None:
        self._engine = engine

    async def current_snapshot(self) -> EngineSnapshot:
        """Return the latest snapshot, refreshing first if none was published yet."""
        engine = self.engine
        if engine.snapshot.generation == 0:
            return await engine.refresh()
        return engine.snapshot

    @property
    def watching(self) -> bool:
        return self._watcher is not None

    async def start(self) -> None:
        """Refresh once and start the workspace watcher unless disabled."""
        await self.engine.refresh()
        if os.environ.get(WATCH_ENV, "1").strip().lower() in ("0", "false", "no"):
            logger.info("Workspace watcher disabled via %s", WATCH_ENV)
            return
        engine = self.engine
        self._watcher = WorkspaceWatcher(engine, engine.workspace_root_provider)
        self._watcher.start()

    async def stop(self) -> None:
        if self._watcher is not None:
            await self._watcher.stop()
            self._watcher = None
