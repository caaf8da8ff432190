"""
Operator that answers engine prompts from a JSON request payload.

The browser collects names, notes and confirmations up front and sends them
with the action; this operator replays those answers and records the
messages the engine emits so the route can return them.
"""

from pathlib import Path
from typing import Optional, Sequence

from botracers_platform.engine import NAME_PROMPT, NOTE_PROMPT
from botracers_platform.workspace import LocalBinary


class RequestOperator:
    """Answers prompts from request fields; collects info/warning messages."""

    def __init__(
        self,
        *,
        name: Optional[str] = None,
        note: Optional[str] = None,
        binary: Optional[str] = None,
        confirmed: bool = False,
    ):
        self.name = name
        self.note = note
        self.binary = binary
        self.confirmed = confirmed
        self.messages: list[str] = []
        self.warnings: list[str] = []
        self.revealed: Optional[Path] = None

    async def prompt_text(self, *, title: str, default: str = "") -> Optional[str]:
        if title == NAME_PROMPT:
            return default if self.name is None else self.name
        if title == NOTE_PROMPT:
            return self.note or ""
        return default

    async def pick_binary(
        self,
        binaries: Sequence[LocalBinary],
        *,
        title: str,
    ) -> Optional[LocalBinary]:
        for binary in binaries:
            if binary.name == self.binary:
                return binary
        return None

    async def confirm(self, message: str, *, action: str) -> bool:
        return self.confirmed

    def info(self, message: str) -> None:
        self.messages.append(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    async def reveal_path(self, path: Path) -> None:
        self.revealed = path

    def to_dict(self) -> dict:
        return {"messages": list(self.messages), "warnings": list(self.warnings)}
