"""
REST API routes for the botracers web host.
"""

import logging
from pathlib import Path
from typing import Awaitable, Optional, TypeVar

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from botracers_platform.engine import EngineSnapshot
from botracers_platform.errors import (
    BuildError,
    BuildOutputMissingError,
    PreconditionError,
    WorkbenchError,
)
from botracers_platform.factory import reconfigure_engine
from botracers_platform.registry_client import RegistryClientError, RegistryClientHTTPError
from botracers_platform.tree import render_tree
from botracers_platform.user_config import (
    default_artifact_target,
    get_user_config_path,
    resolve_server_url,
    resolve_workspace_root,
    update_user_config,
)

from .engine_host import EngineHost
from .operator import RequestOperator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

# Single shared engine (single-user local tool)
engine_host = EngineHost()

T = TypeVar("T")


# --- Request models ---

class UploadRequest(BaseModel):
    name: Optional[str] = None
    note: Optional[str] = None


class ReplaceRequest(BaseModel):
    binary: str
    note: Optional[str] = None


class DeleteRequest(BaseModel):
    confirm: bool = False


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None


class ConfigUpdateRequest(BaseModel):
    server_url: Optional[str] = None
    artifact_target: Optional[str] = None
    workspace_root: Optional[str] = None


class WorkspaceInitRequest(BaseModel):
    directory: Optional[str] = None


# --- Helpers ---

def _view_payload(snapshot: EngineSnapshot) -> dict:
    return {**snapshot.to_dict(), "tree": render_tree(snapshot)}


def _action_payload(operator: RequestOperator, **extra) -> dict:
    return {
        **extra,
        **operator.to_dict(),
        "view": _view_payload(engine_host.engine.snapshot),
    }


def _http_error(exc: Exception) -> HTTPException:
    """Map engine and registry failures onto HTTP status codes."""
    if isinstance(exc, BuildOutputMissingError):
        return HTTPException(status_code=409, detail={"code": "build_output_missing", "message": str(exc)})
    if isinstance(exc, PreconditionError):
        return HTTPException(status_code=409, detail={"code": "precondition_failed", "message": str(exc)})
    if isinstance(exc, BuildError):
        return HTTPException(
            status_code=500,
            detail={"code": "build_failed", "message": str(exc), "output": exc.output},
        )
    if isinstance(exc, RegistryClientHTTPError) and exc.is_unauthorized:
        return HTTPException(status_code=401, detail={"code": "unauthorized", "message": str(exc)})
    if isinstance(exc, RegistryClientError):
        return HTTPException(status_code=502, detail={"code": "registry_error", "message": str(exc)})
    return HTTPException(status_code=500, detail={"code": "error", "message": str(exc)})


async def _run(action: Awaitable[T]) -> T:
    try:
        return await action
    except (WorkbenchError, RegistryClientError) as e:
        logger.warning("Action failed: %s", e)
        raise _http_error(e) from e


async def _lookup_binary(name: str):
    snapshot = await engine_host.current_snapshot()
    binary = snapshot.find_binary(name)
    if binary is None:
        raise HTTPException(status_code=404, detail=f"Unknown local binary '{name}'")
    return binary


async def _lookup_artifact(artifact_id: int):
    snapshot = await engine_host.current_snapshot()
    artifact = snapshot.find_artifact(artifact_id)
    if artifact is None:
        raise HTTPException(status_code=404, detail=f"Artifact #{artifact_id} not found")
    return artifact


def _config_payload() -> dict:
    root = resolve_workspace_root()
    return {
        "server_url": resolve_server_url(),
        "artifact_target": default_artifact_target(),
        "workspace_root": str(root) if root is not None else None,
        "config_path": str(get_user_config_path()),
    }


# --- Routes ---

@router.get("/view")
async def get_view():
    """Return the current view status, collections and tree."""
    return _view_payload(await engine_host.current_snapshot())


@router.get("/tree")
async def get_tree():
    """Return only the rendered tree."""
    return {"tree": render_tree(await engine_host.current_snapshot())}


@router.post("/refresh")
async def refresh():
    """Reconcile now and return the new view."""
    return _view_payload(await engine_host.engine.refresh())


@router.get("/config")
async def get_config():
    """Return the effective configuration."""
    return _config_payload()


@router.post("/config")
async def update_config(req: ConfigUpdateRequest):
    """Persist configuration changes and re-point the engine."""
    update_user_config(
        server_url=req.server_url,
        artifact_target=req.artifact_target,
        workspace_root=req.workspace_root,
    )
    engine = engine_host.engine
    reconfigure_engine(engine)
    snapshot = await engine.refresh()
    return {**_config_payload(), "view": _view_payload(snapshot)}


@router.post("/login")
async def login(req: LoginRequest):
    """Log in with credentials, or store a token obtained elsewhere."""
    engine = engine_host.engine
    operator = RequestOperator()
    if req.token:
        await _run(engine.set_session_token(req.token))
        return _action_payload(operator)

    if not req.username or not req.password:
        raise HTTPException(status_code=400, detail="Provide either token or username and password")
    await _run(engine.login(req.username, req.password, operator=operator))
    return _action_payload(operator)


@router.post("/logout")
async def logout():
    operator = RequestOperator()
    await _run(engine_host.engine.logout(operator=operator))
    return _action_payload(operator)


@router.post("/workspace/init")
async def init_workspace(req: Optional[WorkspaceInitRequest] = None):
    """Create the starter bot project, in ``directory`` or the configured workspace."""
    engine = engine_host.engine
    operator = RequestOperator()
    if req is None or not req.directory:
        await _run(engine.init_workspace(operator=operator))
        return {**_action_payload(operator), **_config_payload()}

    root = Path(req.directory).expanduser().resolve()
    snapshot = await _run(engine.init_workspace(root, operator=operator))
    update_user_config(workspace_root=str(root))
    if snapshot.workspace is None or snapshot.workspace.root != root:
        await engine.refresh()
    return {**_action_payload(operator), **_config_payload()}


@router.post("/binaries/{name}/build")
async def build_binary(name: str):
    """Build a local binary without uploading it."""
    binary = await _lookup_binary(name)
    operator = RequestOperator()
    path = await _run(engine_host.engine.build_binary(binary, operator=operator))
    return _action_payload(operator, output_path=str(path))


@router.post("/binaries/{name}/upload")
async def upload_binary(name: str, req: UploadRequest):
    """Build a local binary and upload it as a new artifact."""
    binary = await _lookup_binary(name)
    operator = RequestOperator(name=req.name, note=req.note)
    outcome = await _run(engine_host.engine.build_and_upload(binary, operator=operator))
    if outcome is None:
        return _action_payload(operator, cancelled=True)
    return _action_payload(
        operator,
        cancelled=False,
        artifact_id=outcome.artifact_id,
        name=outcome.name,
    )


@router.get("/binaries/{name}/output")
async def reveal_build_output(name: str):
    """Return the path of the built ELF for a local binary."""
    binary = await _lookup_binary(name)
    operator = RequestOperator()
    path = await _run(engine_host.engine.reveal_build_output(binary, operator=operator))
    return {"path": str(path)}


@router.post("/artifacts/{artifact_id}/replace")
async def replace_artifact(artifact_id: int, req: ReplaceRequest):
    """Upload a new build of ``binary`` and delete the old artifact."""
    artifact = await _lookup_artifact(artifact_id)
    operator = RequestOperator(binary=req.binary, note=req.note)
    outcome = await _run(engine_host.engine.replace_artifact(artifact, operator=operator))
    if outcome is None:
        raise HTTPException(status_code=404, detail=f"Unknown local binary '{req.binary}'")
    return _action_payload(
        operator,
        new_artifact_id=outcome.new_artifact_id,
        old_artifact_id=outcome.old_artifact_id,
        old_deleted=outcome.old_deleted,
    )


@router.post("/artifacts/{artifact_id}/delete")
async def delete_artifact(artifact_id: int, req: DeleteRequest):
    """Delete an owned artifact; requires ``confirm: true``."""
    artifact = await _lookup_artifact(artifact_id)
    operator = RequestOperator(confirmed=req.confirm)
    deleted = await _run(engine_host.engine.delete_artifact(artifact, operator=operator))
    return _action_payload(operator, deleted=deleted)


@router.post("/artifacts/{artifact_id}/visibility")
async def toggle_visibility(artifact_id: int):
    """Flip an owned artifact between public and private."""
    artifact = await _lookup_artifact(artifact_id)
    operator = RequestOperator()
    is_public = await _run(engine_host.engine.toggle_visibility(artifact, operator=operator))
    return _action_payload(operator, is_public=is_public)
