"""Bot workspace inspection: manifest detection and local binary discovery.

A bot workspace is a Cargo project. Binaries come from two places:

- ``[[bin]]`` tables in ``Cargo.toml`` (``name`` plus an optional ``path``)
- convention discovery under ``src/bin``: ``src/bin/NAME.rs`` and
  ``src/bin/NAME/main.rs``, unless ``[package] autobins = false``

The sync functions are the canonical rules; ``WorkspaceInspector`` runs them off
the event loop for the engine.
"""

from __future__ import annotations

import asyncio
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import WorkspaceManifestError


MANIFEST_FILENAME = "Cargo.toml"
BINARIES_DIR = Path("src") / "bin"
DEFAULT_ARTIFACT_TARGET = "riscv32imafc-unknown-none-elf"


@dataclass(frozen=True)
class LocalBinary:
    name: str
    root_path: str
    source_path: str | None = None


@dataclass(frozen=True)
class WorkspaceContext:
    root: Path | None
    manifest_valid: bool


def manifest_path(root: Path | str) -> Path:
    return Path(root) / MANIFEST_FILENAME


def load_manifest(root: Path | str) -> dict[str, Any]:
    """Read and parse ``Cargo.toml`` under ``root``."""
    path = manifest_path(root)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise WorkspaceManifestError(path, "file not found") from e
    except OSError as e:
        raise WorkspaceManifestError(path, f"unable to read file: {e}") from e

    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise WorkspaceManifestError(path, str(e)) from e


def has_manifest(root: Path | str | None) -> bool:
    """Return True when ``root`` holds a readable, parseable ``Cargo.toml``."""
    if root is None:
        return False
    try:
        load_manifest(root)
    except WorkspaceManifestError:
        return False
    return True


def _declared_binaries(root: Path, manifest: dict[str, Any]) -> list[LocalBinary]:
    declared: list[LocalBinary] = []
    entries = manifest.get("bin", [])
    if not isinstance(entries, list):
        return declared

    for entry in entries:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            continue
        name = name.strip()

        raw_path = entry.get("path")
        if isinstance(raw_path, str) and raw_path.strip():
            source = root / raw_path.strip()
        else:
            source = root / BINARIES_DIR / f"{name}.rs"
            if not source.exists():
                nested = root / BINARIES_DIR / name / "main.rs"
                source = nested if nested.exists() else source

        declared.append(
            LocalBinary(
                name=name,
                root_path=str(root),
                source_path=os.path.normpath(str(source)) if source.exists() else None,
            )
        )
    return declared


def _discovered_binaries(root: Path) -> list[LocalBinary]:
    bin_dir = root / BINARIES_DIR
    if not bin_dir.is_dir():
        return []

    discovered: list[LocalBinary] = []
    for child in sorted(bin_dir.iterdir(), key=lambda p: p.name):
        if child.is_file() and child.suffix == ".rs":
            discovered.append(
                LocalBinary(
                    name=child.stem,
                    root_path=str(root),
                    source_path=os.path.normpath(str(child)),
                )
            )
        elif child.is_dir() and (child / "main.rs").is_file():
            discovered.append(
                LocalBinary(
                    name=child.name,
                    root_path=str(root),
                    source_path=os.path.normpath(str(child / "main.rs")),
                )
            )
    return discovered


def _autobins_enabled(manifest: dict[str, Any]) -> bool:
    package = manifest.get("package")
    if isinstance(package, dict) and package.get("autobins") is False:
        return False
    return True


def list_local_binaries(root: Path | str) -> list[LocalBinary]:
    """List buildable binaries: manifest declarations first, then discovered ones."""
    root = Path(root)
    manifest = load_manifest(root)

    binaries = _declared_binaries(root, manifest)
    seen = {b.name for b in binaries}
    if _autobins_enabled(manifest):
        for binary in _discovered_binaries(root):
            if binary.name not in seen:
                seen.add(binary.name)
                binaries.append(binary)
    return binaries


def artifact_output_path(
    root: Path | str,
    name: str,
    target: str = DEFAULT_ARTIFACT_TARGET,
) -> Path:
    """Return where ``cargo build --release`` leaves the ELF for ``name``."""
    return Path(root) / "target" / target / "release" / name


class WorkspaceInspector:
    """Async facade over the workspace rules."""

    async def has_manifest(self, root: Path | str | None) -> bool:
        return await asyncio.to_thread(has_manifest, root)

    async def list_local_binaries(self, root: Path | str) -> list[LocalBinary]:
        return await asyncio.to_thread(list_local_binaries, root)
