"""
Console operator and printing helpers for the botracers CLI.
"""

import asyncio
import getpass
from pathlib import Path
from typing import Sequence

from botracers_platform.engine import EngineSnapshot
from botracers_platform.tree import child_nodes, root_nodes
from botracers_platform.view_state import LoggedOutReason, ViewState, WorkspaceIssue
from botracers_platform.workspace import LocalBinary


STATUS_HINTS = {
    LoggedOutReason.NOT_LOGGED_IN.value: "Not logged in. Run 'botracers login'.",
    LoggedOutReason.SESSION_EXPIRED.value: "Session expired. Run 'botracers login' again.",
    LoggedOutReason.REQUEST_ERROR.value: (
        "Could not reach the registry. Check 'botracers configure --server-url'."
    ),
    WorkspaceIssue.WORKSPACE_MISSING.value: (
        "No Cargo.toml found. Open a bot workspace or set --workspace."
    ),
    WorkspaceIssue.NO_BINARIES.value: "Cargo.toml declares no binaries (add src/bin/*.rs).",
}


async def _ask(prompt: str) -> str | None:
    try:
        return await asyncio.to_thread(input, prompt)
    except (EOFError, KeyboardInterrupt):
        return None


class ConsoleOperator:
    """Operator port backed by stdin/stdout."""

    def __init__(self, *, assume_yes: bool = False):
        self.assume_yes = assume_yes

    async def prompt_text(self, *, title: str, default: str = "") -> str | None:
        suffix = f" [{default}]" if default else ""
        answer = await _ask(f"{title}{suffix}: ")
        if answer is None:
            return None
        return answer.strip() or default

    async def prompt_secret(self, *, title: str) -> str | None:
        try:
            return await asyncio.to_thread(getpass.getpass, f"{title}: ")
        except (EOFError, KeyboardInterrupt):
            return None

    async def pick_binary(
        self,
        binaries: Sequence[LocalBinary],
        *,
        title: str,
    ) -> LocalBinary | None:
        print(f"\n{title}")
        for i, binary in enumerate(binaries, 1):
            print(f"  {i}. {binary.name}  ({binary.source_path or binary.root_path})")
        answer = await _ask("Select a binary (number or name, empty to cancel): ")
        if not answer or not answer.strip():
            return None

        choice = answer.strip()
        if choice.isdigit() and 1 <= int(choice) <= len(binaries):
            return binaries[int(choice) - 1]
        for binary in binaries:
            if binary.name == choice:
                return binary
        print(f"  Unknown selection '{choice}'.")
        return None

    async def confirm(self, message: str, *, action: str) -> bool:
        if self.assume_yes:
            return True
        answer = await _ask(f"{message} Type '{action}' to confirm: ")
        return (answer or "").strip().lower() == action.lower()

    def info(self, message: str) -> None:
        print(f"✓ {message}")

    def warn(self, message: str) -> None:
        print(f"⚠ {message}")

    async def reveal_path(self, path: Path) -> None:
        print(str(path))


def print_snapshot(snapshot: EngineSnapshot) -> None:
    """Print the view status followed by the tree, or a hint when not ready."""
    print(f"State: {snapshot.state.value} ({snapshot.detail})")
    if snapshot.workspace is not None and snapshot.workspace.root is not None:
        print(f"Workspace: {snapshot.workspace.root}")

    if snapshot.state is not ViewState.READY:
        hint = STATUS_HINTS.get(snapshot.detail)
        if hint:
            print(f"  {hint}")
        return

    for root in root_nodes(snapshot):
        print(f"\n{root.label}")
        for child in child_nodes(snapshot, root):
            line = f"  • {child.label}"
            if child.artifact is not None:
                line = f"  • #{child.artifact.id} {child.label}"
            if child.description:
                line += f"  ({child.description})"
            print(line)
