"""Ports for the collaborators the reconciliation engine drives."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, Sequence

from contracts.v1.schemas import (
    ArtifactSummary,
    LoginResponse,
    ServerCapabilities,
    UploadArtifactRequest,
    UploadArtifactResponse,
)

from .workspace import LocalBinary


class RegistryPort(Protocol):
    """Port for the remote artifact registry."""

    async def capabilities(self) -> ServerCapabilities:
        ...

    async def login(self, username: str, password: str) -> LoginResponse:
        ...

    async def list_artifacts(self, token: str | None = None) -> list[ArtifactSummary]:
        ...

    async def upload_artifact(
        self,
        req: UploadArtifactRequest,
        token: str | None = None,
    ) -> UploadArtifactResponse:
        ...

    async def delete_artifact(self, artifact_id: int, token: str | None = None) -> None:
        ...

    async def set_visibility(
        self,
        artifact_id: int,
        is_public: bool,
        token: str | None = None,
    ) -> None:
        ...


class SessionStorePort(Protocol):
    """Port for persisting the opaque session token."""

    async def get(self) -> str | None:
        ...

    async def set(self, token: str) -> None:
        ...

    async def clear(self) -> None:
        ...


class WorkspacePort(Protocol):
    """Port for inspecting a bot workspace on disk."""

    async def has_manifest(self, root: Path | str | None) -> bool:
        ...

    async def list_local_binaries(self, root: Path | str) -> list[LocalBinary]:
        ...


class BuildPort(Protocol):
    """Port for compiling one binary; ``output_path`` must be pure."""

    def output_path(self, root: Path | str, name: str) -> Path:
        ...

    async def build(self, root: Path | str, name: str) -> Path:
        ...


class OperatorPort(Protocol):
    """Port for operator interaction owned by the host (CLI, web, editor)."""

    async def prompt_text(self, *, title: str, default: str = "") -> str | None:
        """Return entered text, or None when the operator cancelled."""
        ...

    async def pick_binary(
        self,
        binaries: Sequence[LocalBinary],
        *,
        title: str,
    ) -> LocalBinary | None:
        ...

    async def confirm(self, message: str, *, action: str) -> bool:
        ...

    def info(self, message: str) -> None:
        ...

    def warn(self, message: str) -> None:
        ...

    async def reveal_path(self, path: Path) -> None:
        ...
