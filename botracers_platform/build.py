"""Cargo build invocation for bot binaries."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from .errors import BuildError
from .workspace import DEFAULT_ARTIFACT_TARGET, artifact_output_path

logger = logging.getLogger(__name__)


class CargoBuildInvoker:
    """Runs ``cargo build --release`` for one binary of a bot workspace."""

    def __init__(self, *, target: str = DEFAULT_ARTIFACT_TARGET, cargo: str = "cargo"):
        self.target = target
        self.cargo = cargo

    def command(self, name: str) -> list[str]:
        return [
            self.cargo,
            "build",
            "--release",
            "--bin",
            name,
            "--target",
            self.target,
        ]

    def output_path(self, root: Path | str, name: str) -> Path:
        return artifact_output_path(root, name, self.target)

    async def build(self, root: Path | str, name: str) -> Path:
        """Build ``name`` and return its output path; raise ``BuildError`` on failure."""
        cmd = self.command(name)
        logger.info("Building '%s' in %s: %s", name, root, " ".join(cmd))
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(root),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise BuildError(name, None, str(e)) from e

        stdout, _ = await proc.communicate()
        output = stdout.decode("utf-8", errors="replace") if stdout else ""
        if proc.returncode != 0:
            logger.warning("Build of '%s' failed (exit %s)", name, proc.returncode)
            raise BuildError(name, proc.returncode, output)

        logger.info("Built '%s'", name)
        return self.output_path(root, name)
