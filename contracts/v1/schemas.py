"""Pydantic contracts for the v1 BotRacers registry API."""

from pydantic import BaseModel, ConfigDict, Field


class _StrictModel(BaseModel):
    """Base model that rejects unknown fields."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class _ResponseModel(BaseModel):
    """Base model for server payloads; newer servers may add fields."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ServerCapabilities(_ResponseModel):
    auth_required: bool = False


class LoginRequest(_StrictModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginResponse(_ResponseModel):
    token: str = Field(min_length=1)
    username: str | None = None


class ArtifactSummary(_ResponseModel):
    id: int
    name: str
    owner_username: str = ""
    is_public: bool = False
    owned_by_me: bool = False
    target: str | None = None
    note: str | None = None
    created_at: str | None = None

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class UploadArtifactRequest(_StrictModel):
    name: str = Field(min_length=1)
    note: str | None = None
    target: str = Field(min_length=1)
    elf_base64: str = Field(min_length=1)


class UploadArtifactResponse(_ResponseModel):
    artifact_id: int


class UpdateArtifactVisibilityRequest(_StrictModel):
    is_public: bool
