"""Reconciliation engine for a bot workspace and the remote artifact registry.

The engine owns the view status plus the local-binary and remote-artifact
collections, published together as one immutable ``EngineSnapshot``. Hosts
subscribe to a parameterless change signal and pull ``engine.snapshot``.

``refresh()`` resolves capabilities, session, workspace, local binaries and
remote artifacts in that order and always publishes exactly once. Workflows
either fail before touching the registry or finish all of their remote calls
and then refresh once.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from contracts.v1.adapters import build_upload_request
from contracts.v1.schemas import ArtifactSummary

from .errors import BuildOutputMissingError, PreconditionError
from .ports import BuildPort, OperatorPort, RegistryPort, SessionStorePort, WorkspacePort
from .scaffold import scaffold_workspace
from .view_state import (
    INITIAL_STATUS,
    LoggedOut,
    LoggedOutReason,
    NeedsWorkspace,
    Ready,
    ViewState,
    ViewStatus,
    WorkspaceIssue,
)
from .workspace import DEFAULT_ARTIFACT_TARGET, LocalBinary, WorkspaceContext

logger = logging.getLogger(__name__)


NAME_PROMPT = "Artifact Name"
NOTE_PROMPT = "Artifact Note (optional)"

Listener = Callable[[], None]
WorkspaceRootProvider = Callable[[], Path | None]


@dataclass(frozen=True)
class EngineSnapshot:
    """Everything a host may render, captured at one publish."""

    status: ViewStatus = INITIAL_STATUS
    workspace: WorkspaceContext | None = None
    local_binaries: tuple[LocalBinary, ...] = ()
    artifacts: tuple[ArtifactSummary, ...] = ()
    authenticated: bool = False
    generation: int = 0

    @property
    def state(self) -> ViewState:
        return self.status.state

    @property
    def detail(self) -> str:
        return self.status.detail

    @property
    def bin_source_paths(self) -> frozenset[str]:
        """Normalized source paths of local binaries, for editor-side actions."""
        return frozenset(
            os.path.normpath(b.source_path) for b in self.local_binaries if b.source_path
        )

    def find_binary(self, name: str) -> LocalBinary | None:
        for binary in self.local_binaries:
            if binary.name == name:
                return binary
        return None

    def find_artifact(self, artifact_id: int) -> ArtifactSummary | None:
        for artifact in self.artifacts:
            if artifact.id == artifact_id:
                return artifact
        return None

    def to_dict(self) -> dict[str, Any]:
        workspace = None
        if self.workspace is not None:
            workspace = {
                "root": str(self.workspace.root) if self.workspace.root else None,
                "manifest_valid": self.workspace.manifest_valid,
            }
        return {
            **self.status.to_dict(),
            "generation": self.generation,
            "authenticated": self.authenticated,
            "workspace": workspace,
            "local_binaries": [
                {"name": b.name, "root_path": b.root_path, "source_path": b.source_path}
                for b in self.local_binaries
            ],
            "artifacts": [a.model_dump() for a in self.artifacts],
        }


@dataclass(frozen=True)
class UploadOutcome:
    artifact_id: int
    name: str
    binary_name: str


@dataclass(frozen=True)
class ReplaceOutcome:
    new_artifact_id: int
    old_artifact_id: int
    old_deleted: bool
    warning: str | None = None


def classify_refresh_failure(exc: BaseException) -> LoggedOutReason:
    """Map a refresh failure to the logged-out detail it produces.

    Only a structured HTTP status counts as unauthorized; error text is never
    inspected.
    """
    if getattr(exc, "status_code", None) == 401:
        return LoggedOutReason.SESSION_EXPIRED
    return LoggedOutReason.REQUEST_ERROR


@dataclass
class _RefreshGuard:
    running: bool = False
    rerun_requested: bool = False
    idle: asyncio.Event | None = field(default=None, repr=False)


class ReconciliationEngine:
    """Owns the view status and snapshot; drives refresh and artifact workflows."""

    def __init__(
        self,
        *,
        registry: RegistryPort,
        session_store: SessionStorePort,
        inspector: WorkspacePort,
        builder: BuildPort,
        operator: OperatorPort,
        workspace_root_provider: WorkspaceRootProvider,
        artifact_target: str = DEFAULT_ARTIFACT_TARGET,
    ):
        self.registry = registry
        self.session_store = session_store
        self.inspector = inspector
        self.builder = builder
        self.operator = operator
        self.workspace_root_provider = workspace_root_provider
        self.artifact_target = artifact_target

        self._snapshot = EngineSnapshot()
        self._listeners: list[Listener] = []
        self._token: str | None = None
        self._guard = _RefreshGuard()

    # -- snapshot & notification -------------------------------------------

    @property
    def snapshot(self) -> EngineSnapshot:
        return self._snapshot

    @property
    def status(self) -> ViewStatus:
        return self._snapshot.status

    @property
    def refresh_in_progress(self) -> bool:
        return self._guard.running

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(
        self,
        status: ViewStatus,
        *,
        workspace: WorkspaceContext | None = None,
        local_binaries: list[LocalBinary] | tuple[LocalBinary, ...] = (),
        artifacts: list[ArtifactSummary] | tuple[ArtifactSummary, ...] = (),
    ) -> EngineSnapshot:
        self._snapshot = EngineSnapshot(
            status=status,
            workspace=workspace,
            local_binaries=tuple(local_binaries),
            artifacts=tuple(artifacts),
            authenticated=self._token is not None,
            generation=self._snapshot.generation + 1,
        )
        logger.info("View status %s/%s", status.state.value, status.detail)

        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Change listener %r failed", listener)
        return self._snapshot

    # -- refresh -----------------------------------------------------------

    async def refresh(self) -> EngineSnapshot:
        """Reconcile and publish; overlapping calls coalesce into one follow-up run."""
        guard = self._guard
        if guard.running:
            guard.rerun_requested = True
            idle = guard.idle
            assert idle is not None
            await idle.wait()
            return self._snapshot

        guard.running = True
        guard.idle = asyncio.Event()
        try:
            while True:
                guard.rerun_requested = False
                await self._refresh_once()
                if not guard.rerun_requested:
                    break
        finally:
            guard.running = False
            guard.idle.set()
        return self._snapshot

    async def _refresh_once(self) -> None:
        workspace: WorkspaceContext | None = None
        try:
            capabilities = await self.registry.capabilities()
            if capabilities.auth_required:
                token = await self.session_store.get()
                if not token:
                    self._token = None
                    self._publish(LoggedOut(LoggedOutReason.NOT_LOGGED_IN))
                    return
                self._token = token
            else:
                self._token = None

            root = self.workspace_root_provider()
            manifest_valid = root is not None and await self.inspector.has_manifest(root)
            workspace = WorkspaceContext(root=root, manifest_valid=manifest_valid)
            if not manifest_valid:
                self._publish(
                    NeedsWorkspace(WorkspaceIssue.WORKSPACE_MISSING),
                    workspace=workspace,
                )
                return

            local_binaries = await self.inspector.list_local_binaries(root)
            if not local_binaries:
                self._publish(NeedsWorkspace(WorkspaceIssue.NO_BINARIES), workspace=workspace)
                return

            artifacts = await self.registry.list_artifacts(self._token)
        except Exception as e:
            reason = classify_refresh_failure(e)
            if reason is LoggedOutReason.SESSION_EXPIRED:
                logger.warning("Registry rejected the session; clearing it: %s", e)
                await self._clear_session()
            else:
                logger.warning("Refresh failed: %s", e)
            self._publish(LoggedOut(reason), workspace=workspace)
            return

        self._publish(
            Ready(),
            workspace=workspace,
            local_binaries=local_binaries,
            artifacts=artifacts,
        )

    async def _clear_session(self) -> None:
        self._token = None
        try:
            await self.session_store.clear()
        except Exception:
            logger.exception("Could not clear the stored session")

    # -- session -----------------------------------------------------------

    async def login(
        self,
        username: str,
        password: str,
        *,
        operator: OperatorPort | None = None,
    ) -> EngineSnapshot:
        """Exchange credentials for a token, store it and refresh."""
        op = operator or self.operator
        response = await self.registry.login(username, password)
        await self.session_store.set(response.token)
        op.info(f"Logged in as '{response.username or username}'")
        return await self.refresh()

    async def set_session_token(self, token: str) -> EngineSnapshot:
        """Store a token obtained out of band (for example a browser login)."""
        token = token.strip()
        if not token:
            raise PreconditionError("Session token is empty.")
        await self.session_store.set(token)
        return await self.refresh()

    async def logout(self, *, operator: OperatorPort | None = None) -> EngineSnapshot:
        op = operator or self.operator
        await self._clear_session()
        op.info("Logged out")
        return await self.refresh()

    # -- workspace ---------------------------------------------------------

    async def init_workspace(
        self,
        root: Path | str | None = None,
        *,
        operator: OperatorPort | None = None,
    ) -> EngineSnapshot:
        """Write the starter bot project, then refresh.

        ``root`` defaults to the configured workspace root. An existing
        ``Cargo.toml`` is never overwritten.
        """
        op = operator or self.operator
        target = Path(root) if root is not None else self.workspace_root_provider()
        if target is None:
            raise PreconditionError("No workspace folder is configured.")

        written = await asyncio.to_thread(scaffold_workspace, target)
        logger.info("Initialized bot workspace at %s", target)
        op.info(f"Bot project created in {target} ({len(written)} files)")
        return await self.refresh()

    # -- workflows ---------------------------------------------------------

    @staticmethod
    def _require_owned(artifact: ArtifactSummary, action: str) -> None:
        if not artifact.owned_by_me:
            raise PreconditionError(f"You can only {action} artifacts you own.")

    async def _current_local_binaries(self) -> list[LocalBinary]:
        root = self.workspace_root_provider()
        if root is None or not await self.inspector.has_manifest(root):
            return []
        return await self.inspector.list_local_binaries(root)

    async def _build_and_upload(
        self,
        binary: LocalBinary,
        *,
        op: OperatorPort,
        default_name: str,
        prompt_for_name: bool = True,
    ) -> UploadOutcome | None:
        await self.builder.build(binary.root_path, binary.name)

        elf_path = self.builder.output_path(binary.root_path, binary.name)
        if not await asyncio.to_thread(elf_path.is_file):
            raise BuildOutputMissingError(elf_path, f"ELF not found after build: {elf_path}")
        elf_bytes = await asyncio.to_thread(elf_path.read_bytes)
        if not elf_bytes:
            raise BuildOutputMissingError(elf_path, f"ELF is empty after build: {elf_path}")

        if prompt_for_name:
            name = await op.prompt_text(title=NAME_PROMPT, default=default_name)
            if not name or not name.strip():
                return None
        else:
            name = default_name

        note = await op.prompt_text(title=NOTE_PROMPT, default="")
        req = build_upload_request(
            name=name,
            note=note,
            target=self.artifact_target,
            elf_bytes=elf_bytes,
        )

        response = await self.registry.upload_artifact(req, self._token)
        logger.info("Uploaded '%s' as artifact #%d", binary.name, response.artifact_id)
        op.info(f"Artifact uploaded: #{response.artifact_id} from '{binary.name}'")
        return UploadOutcome(
            artifact_id=response.artifact_id,
            name=req.name,
            binary_name=binary.name,
        )

    async def build_binary(
        self,
        binary: LocalBinary,
        *,
        operator: OperatorPort | None = None,
    ) -> Path:
        """Build only; no registry call and no refresh."""
        op = operator or self.operator
        path = await self.builder.build(binary.root_path, binary.name)
        op.info(f"Built binary '{binary.name}'")
        return path

    async def build_and_upload(
        self,
        binary: LocalBinary,
        *,
        operator: OperatorPort | None = None,
    ) -> UploadOutcome | None:
        op = operator or self.operator
        outcome = await self._build_and_upload(binary, op=op, default_name=binary.name)
        if outcome is None:
            return None
        await self.refresh()
        return outcome

    async def replace_artifact(
        self,
        artifact: ArtifactSummary,
        *,
        operator: OperatorPort | None = None,
    ) -> ReplaceOutcome | None:
        """Upload a new build under the artifact's name, then delete the old one.

        A failed delete is reported as a warning; the upload is never undone.
        """
        op = operator or self.operator
        self._require_owned(artifact, "replace")

        binaries = await self._current_local_binaries()
        if not binaries:
            raise PreconditionError("No local binaries available in the current bot workspace.")

        picked = await op.pick_binary(
            binaries,
            title=f"Replace artifact '{artifact.name}' with local binary",
        )
        if picked is None:
            return None

        outcome = await self._build_and_upload(
            picked,
            op=op,
            default_name=artifact.name,
            prompt_for_name=False,
        )
        assert outcome is not None

        warning = None
        try:
            await self.registry.delete_artifact(artifact.id, self._token)
        except Exception as e:
            warning = (
                f"Uploaded replacement, but failed to delete old artifact #{artifact.id}: {e}"
            )
            logger.warning(warning)
            op.warn(warning)
        else:
            op.info(
                f"Replaced artifact '{artifact.name}' by uploading new build "
                f"and deleting #{artifact.id}"
            )

        await self.refresh()
        return ReplaceOutcome(
            new_artifact_id=outcome.artifact_id,
            old_artifact_id=artifact.id,
            old_deleted=warning is None,
            warning=warning,
        )

    async def delete_artifact(
        self,
        artifact: ArtifactSummary,
        *,
        operator: OperatorPort | None = None,
    ) -> bool:
        op = operator or self.operator
        self._require_owned(artifact, "delete")

        confirmed = await op.confirm(
            f"Delete artifact '{artifact.name}' (#{artifact.id})?",
            action="Delete",
        )
        if not confirmed:
            return False

        await self.registry.delete_artifact(artifact.id, self._token)
        op.info(f"Deleted artifact '{artifact.name}' (#{artifact.id})")
        await self.refresh()
        return True

    async def toggle_visibility(
        self,
        artifact: ArtifactSummary,
        *,
        operator: OperatorPort | None = None,
    ) -> bool:
        """Flip the public flag; returns the new value."""
        op = operator or self.operator
        self._require_owned(artifact, "change visibility of")

        next_public = not artifact.is_public
        await self.registry.set_visibility(artifact.id, next_public, self._token)
        op.info(f"Artifact '{artifact.name}' is now {'public' if next_public else 'private'}")
        await self.refresh()
        return next_public

    async def reveal_build_output(
        self,
        binary: LocalBinary,
        *,
        operator: OperatorPort | None = None,
    ) -> Path:
        op = operator or self.operator
        elf_path = self.builder.output_path(binary.root_path, binary.name)
        if not await asyncio.to_thread(elf_path.is_file):
            raise BuildOutputMissingError(elf_path)
        await op.reveal_path(elf_path)
        return elf_path
