"""
Shared fixtures for botracers tests.
"""

import asyncio
from pathlib import Path

import pytest

from contracts.v1.schemas import (
    ArtifactSummary,
    LoginResponse,
    ServerCapabilities,
    UploadArtifactResponse,
)
from botracers_platform.engine import ReconciliationEngine
from botracers_platform.workspace import (
    DEFAULT_ARTIFACT_TARGET,
    WorkspaceInspector,
    artifact_output_path,
)


ELF_BYTES = b"\x7fELF\x01\x01\x01\x00fake-bot"

MUTATING_CALLS = ("upload_artifact", "delete_artifact", "set_visibility")


class FakeRegistry:
    """In-memory registry that records every call.

    Set ``fail[method_name] = exc`` to make that method raise.
    """

    def __init__(self, *, auth_required: bool = True, artifacts=None, next_id: int = 100):
        self.auth_required = auth_required
        self.artifacts: list[ArtifactSummary] = list(artifacts or [])
        self.next_id = next_id
        self.calls: list[tuple] = []
        self.uploads = []
        self.fail: dict[str, Exception] = {}
        self.gate: asyncio.Event | None = None

    def _record(self, name: str, *args):
        self.calls.append((name, *args))
        exc = self.fail.get(name)
        if exc is not None:
            raise exc

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def mutating_calls(self) -> list[tuple]:
        return [call for call in self.calls if call[0] in MUTATING_CALLS]

    async def capabilities(self):
        self._record("capabilities")
        if self.gate is not None:
            gate, self.gate = self.gate, None
            await gate.wait()
        return ServerCapabilities(auth_required=self.auth_required)

    async def login(self, username, password):
        self._record("login", username)
        return LoginResponse(token=f"token-{username}", username=username)

    async def list_artifacts(self, token=None):
        self._record("list_artifacts", token)
        return list(self.artifacts)

    async def upload_artifact(self, req, token=None):
        self._record("upload_artifact", req.name, token)
        artifact_id = self.next_id
        self.next_id += 1
        self.uploads.append(req)
        self.artifacts.append(
            ArtifactSummary(
                id=artifact_id,
                name=req.name,
                owner_username="me",
                owned_by_me=True,
                target=req.target,
                note=req.note,
            )
        )
        return UploadArtifactResponse(artifact_id=artifact_id)

    async def delete_artifact(self, artifact_id, token=None):
        self._record("delete_artifact", artifact_id, token)
        self.artifacts = [a for a in self.artifacts if a.id != artifact_id]

    async def set_visibility(self, artifact_id, is_public, token=None):
        self._record("set_visibility", artifact_id, is_public, token)
        self.artifacts = [
            a.model_copy(update={"is_public": is_public}) if a.id == artifact_id else a
            for a in self.artifacts
        ]


class FakeSessionStore:
    def __init__(self, token=None):
        self.token = token
        self.clear_calls = 0

    async def get(self):
        return self.token

    async def set(self, token):
        self.token = token

    async def clear(self):
        self.clear_calls += 1
        self.token = None


class ScriptedOperator:
    """Operator with canned answers, keyed by prompt title."""

    def __init__(self, *, answers=None, pick=None, confirm=True):
        self.answers = dict(answers or {})
        self.pick = pick
        self.confirm_answer = confirm
        self.prompts: list[str] = []
        self.picks: list[list[str]] = []
        self.confirmations: list[tuple[str, str]] = []
        self.infos: list[str] = []
        self.warnings: list[str] = []
        self.revealed = []

    async def prompt_text(self, *, title, default=""):
        self.prompts.append(title)
        return self.answers.get(title, default)

    async def pick_binary(self, binaries, *, title):
        self.picks.append([b.name for b in binaries])
        for binary in binaries:
            if binary.name == self.pick:
                return binary
        return None

    async def confirm(self, message, *, action):
        self.confirmations.append((message, action))
        return self.confirm_answer

    def info(self, message):
        self.infos.append(message)

    def warn(self, message):
        self.warnings.append(message)

    async def reveal_path(self, path):
        self.revealed.append(path)


class FakeBuilder:
    """Pretends to run cargo by writing an ELF where cargo would."""

    def __init__(self, *, target: str = DEFAULT_ARTIFACT_TARGET, write_output: bool = True):
        self.target = target
        self.write_output = write_output
        self.builds: list[str] = []
        self.fail: Exception | None = None
        self.output = ELF_BYTES

    def output_path(self, root, name):
        return artifact_output_path(root, name, self.target)

    async def build(self, root, name):
        self.builds.append(name)
        if self.fail is not None:
            raise self.fail
        path = self.output_path(root, name)
        if self.write_output:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(self.output)
        return path


CARGO_TOML = """\
[package]
name = "bots"
version = "0.1.0"
edition = "2021"
"""


@pytest.fixture
def bot_workspace(tmp_path) -> Path:
    """A Cargo workspace with two binaries: car and truck."""
    root = tmp_path / "bots"
    bin_dir = root / "src" / "bin"
    bin_dir.mkdir(parents=True)
    (root / "Cargo.toml").write_text(CARGO_TOML, encoding="utf-8")
    (bin_dir / "car.rs").write_text("fn main() {}\n", encoding="utf-8")
    (bin_dir / "truck.rs").write_text("fn main() {}\n", encoding="utf-8")
    return root


@pytest.fixture
def make_artifact():
    def _make(artifact_id, name, *, owned=True, public=False, owner=None):
        return ArtifactSummary(
            id=artifact_id,
            name=name,
            owner_username=owner or ("me" if owned else "rival"),
            is_public=public,
            owned_by_me=owned,
        )
    return _make


@pytest.fixture
def registry():
    return FakeRegistry()


@pytest.fixture
def session_store():
    return FakeSessionStore(token="tok-1")


@pytest.fixture
def operator():
    return ScriptedOperator()


@pytest.fixture
def builder():
    return FakeBuilder()


@pytest.fixture
def engine(bot_workspace, registry, session_store, operator, builder):
    return ReconciliationEngine(
        registry=registry,
        session_store=session_store,
        inspector=WorkspaceInspector(),
        builder=builder,
        operator=operator,
        workspace_root_provider=lambda: bot_workspace,
    )


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point user config and session files at tmp_path and clear env overrides."""
    config_path = tmp_path / "config" / "config.json"
    session_path = tmp_path / "config" / "session.json"
    monkeypatch.setenv("BOTRACERS_USER_CONFIG_PATH", str(config_path))
    monkeypatch.setenv("BOTRACERS_SESSION_PATH", str(session_path))
    for name in ("BOTRACERS_URL", "BOTRACERS_ARTIFACT_TARGET", "BOTRACERS_WORKSPACE"):
        monkeypatch.delenv(name, raising=False)
    return config_path


@pytest.fixture
def make_operator():
    return ScriptedOperator


@pytest.fixture
def elf_bytes():
    return ELF_BYTES
