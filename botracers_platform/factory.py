"""Wire the default collaborators into a reconciliation engine."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from .build import CargoBuildInvoker
from .engine import ReconciliationEngine
from .ports import OperatorPort
from .registry_client import RegistryClient
from .session_store import FileSessionStore
from .user_config import default_artifact_target, resolve_server_url, resolve_workspace_root
from .workspace import WorkspaceInspector


def create_engine(
    operator: OperatorPort,
    *,
    server_url: str | None = None,
    artifact_target: str | None = None,
    workspace_root_provider: Callable[[], Path | None] | None = None,
) -> ReconciliationEngine:
    """Create an engine backed by the HTTP registry, token file and cargo."""
    server_url = server_url or resolve_server_url()
    target = artifact_target or default_artifact_target()
    return ReconciliationEngine(
        registry=RegistryClient(base_url=server_url),
        session_store=FileSessionStore(server_url),
        inspector=WorkspaceInspector(),
        builder=CargoBuildInvoker(target=target),
        operator=operator,
        workspace_root_provider=workspace_root_provider or resolve_workspace_root,
        artifact_target=target,
    )


def reconfigure_engine(engine: ReconciliationEngine) -> ReconciliationEngine:
    """Point an existing engine at the currently configured server and target."""
    server_url = resolve_server_url()
    target = default_artifact_target()
    engine.registry = RegistryClient(base_url=server_url)
    engine.session_store = FileSessionStore(server_url)
    engine.builder = CargoBuildInvoker(target=target)
    engine.artifact_target = target
    return engine
