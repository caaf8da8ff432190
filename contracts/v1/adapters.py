"""Helpers that turn local values into v1 registry contracts and back."""

from __future__ import annotations

import base64
from typing import Any

from .schemas import ArtifactSummary, UploadArtifactRequest


def normalize_note(note: str | None) -> str | None:
    """Return a trimmed note, or ``None`` when nothing meaningful was entered."""
    if note is None:
        return None
    trimmed = note.strip()
    return trimmed or None


def build_upload_request(
    *,
    name: str,
    note: str | None,
    target: str,
    elf_bytes: bytes,
) -> UploadArtifactRequest:
    """Encode an ELF payload into the upload contract."""
    return UploadArtifactRequest(
        name=name.strip(),
        note=normalize_note(note),
        target=target,
        elf_base64=base64.b64encode(elf_bytes).decode("ascii"),
    )


def parse_artifact_list(data: Any) -> list[ArtifactSummary]:
    """Validate an artifact listing payload, preserving server order."""
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of artifacts, got {type(data).__name__}")
    return [ArtifactSummary.model_validate(item) for item in data]
