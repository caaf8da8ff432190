"""v1 registry contract schemas and adapters."""

__version__ = "1.0.0"

from .adapters import build_upload_request, normalize_note, parse_artifact_list
from .schemas import (
    ArtifactSummary,
    LoginRequest,
    LoginResponse,
    ServerCapabilities,
    UpdateArtifactVisibilityRequest,
    UploadArtifactRequest,
    UploadArtifactResponse,
)

__all__ = [
    "__version__",
    "ArtifactSummary",
    "LoginRequest",
    "LoginResponse",
    "ServerCapabilities",
    "UpdateArtifactVisibilityRequest",
    "UploadArtifactRequest",
    "UploadArtifactResponse",
    "build_upload_request",
    "normalize_note",
    "parse_artifact_list",
]
