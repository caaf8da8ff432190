"""Workbench exception hierarchy for workflow and workspace failures."""

from __future__ import annotations

from pathlib import Path


class WorkbenchError(Exception):
    """Base exception for workbench failures surfaced to the operator."""


class PreconditionError(WorkbenchError):
    """Raised when a workflow cannot start; nothing local or remote changed."""


class BuildOutputMissingError(PreconditionError):
    """Raised when the expected ELF for a binary is not on disk."""

    def __init__(self, path: Path, message: str | None = None):
        super().__init__(message or f"ELF not found: {path}. Build the binary first.")
        self.path = path


class BuildError(WorkbenchError):
    """Raised when the cargo build for a binary fails."""

    def __init__(self, name: str, returncode: int | None, output: str = ""):
        detail = output.strip().splitlines()[-1] if output.strip() else "no output"
        if returncode is None:
            message = f"Build of '{name}' could not start: {detail}"
        else:
            message = f"Build of '{name}' failed with exit code {returncode}: {detail}"
        super().__init__(message)
        self.name = name
        self.returncode = returncode
        self.output = output


class WorkspaceManifestError(WorkbenchError):
    """Raised when a workspace manifest cannot be read or parsed."""

    def __init__(self, path: Path, message: str):
        super().__init__(f"Invalid manifest {path}: {message}")
        self.path = path
        self.message = message
