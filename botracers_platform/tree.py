"""Host-agnostic tree projection of an engine snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from contracts.v1.schemas import ArtifactSummary

from .engine import EngineSnapshot
from .view_state import ViewState
from .workspace import LocalBinary


NO_ARTIFACTS_MESSAGE = "No artifacts found"


class NodeKind(str, Enum):
    LOCAL_ROOT = "localRoot"
    REMOTE_ROOT = "remoteRoot"
    LOCAL_BIN = "localBin"
    REMOTE_ARTIFACT = "remoteArtifact"
    MESSAGE = "message"


@dataclass(frozen=True)
class TreeNode:
    kind: NodeKind
    label: str
    context_value: str
    icon: str
    description: str | None = None
    tooltip: str | None = None
    collapsible: bool = False
    binary: LocalBinary | None = None
    artifact: ArtifactSummary | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "kind": self.kind.value,
            "label": self.label,
            "context_value": self.context_value,
            "icon": self.icon,
            "description": self.description,
            "tooltip": self.tooltip,
            "collapsible": self.collapsible,
        }
        if self.binary is not None:
            payload["binary"] = self.binary.name
        if self.artifact is not None:
            payload["artifact_id"] = self.artifact.id
        return payload


def local_root_node() -> TreeNode:
    return TreeNode(
        kind=NodeKind.LOCAL_ROOT,
        label="Local Binaries",
        context_value=NodeKind.LOCAL_ROOT.value,
        icon="list-tree",
        collapsible=True,
    )


def remote_root_node() -> TreeNode:
    return TreeNode(
        kind=NodeKind.REMOTE_ROOT,
        label="Remote Artifacts",
        context_value=NodeKind.REMOTE_ROOT.value,
        icon="list-tree",
        collapsible=True,
    )


def binary_node(binary: LocalBinary) -> TreeNode:
    return TreeNode(
        kind=NodeKind.LOCAL_BIN,
        label=binary.name,
        context_value=NodeKind.LOCAL_BIN.value,
        icon="symbol-method",
        description=binary.root_path,
        tooltip=f"{binary.name} ({binary.root_path})",
        binary=binary,
    )


def artifact_node(artifact: ArtifactSummary) -> TreeNode:
    visibility = "public" if artifact.is_public else "private"
    context_value = "remoteArtifactOwned" if artifact.owned_by_me else "remoteArtifact"
    return TreeNode(
        kind=NodeKind.REMOTE_ARTIFACT,
        label=artifact.name,
        context_value=context_value,
        icon="package",
        description=f"{artifact.owner_username} · {visibility}",
        tooltip=f"{artifact.name} (#{artifact.id})",
        artifact=artifact,
    )


def message_node(message: str) -> TreeNode:
    return TreeNode(
        kind=NodeKind.MESSAGE,
        label=message,
        context_value=NodeKind.MESSAGE.value,
        icon="info",
        tooltip=message,
    )


def root_nodes(snapshot: EngineSnapshot) -> list[TreeNode]:
    """Top-level nodes; hosts show their own welcome content when empty."""
    if snapshot.state is not ViewState.READY:
        return []
    return [local_root_node(), remote_root_node()]


def child_nodes(snapshot: EngineSnapshot, node: TreeNode) -> list[TreeNode]:
    if node.kind is NodeKind.LOCAL_ROOT:
        return [binary_node(b) for b in snapshot.local_binaries]

    if node.kind is NodeKind.REMOTE_ROOT:
        if not snapshot.artifacts:
            return [message_node(NO_ARTIFACTS_MESSAGE)]
        return [artifact_node(a) for a in snapshot.artifacts]

    return []


def render_tree(snapshot: EngineSnapshot) -> list[dict[str, Any]]:
    """Expand the whole tree into nested dicts."""
    rendered = []
    for root in root_nodes(snapshot):
        entry = root.to_dict()
        entry["children"] = [child.to_dict() for child in child_nodes(snapshot, root)]
        rendered.append(entry)
    return rendered
