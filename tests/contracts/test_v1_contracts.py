"""Contract validation tests for contracts.v1."""

import base64

import pytest
from pydantic import ValidationError

from contracts.v1.adapters import build_upload_request, normalize_note, parse_artifact_list
from contracts.v1.schemas import (
    ArtifactSummary,
    LoginResponse,
    ServerCapabilities,
    UpdateArtifactVisibilityRequest,
    UploadArtifactRequest,
    UploadArtifactResponse,
)


class TestSchemaValidation:
    def test_capabilities_defaults_to_no_auth(self):
        caps = ServerCapabilities.model_validate({})
        assert caps.auth_required is False

    def test_capabilities_ignores_unknown_server_fields(self):
        caps = ServerCapabilities.model_validate({"auth_required": True, "registration": False})
        assert caps.auth_required is True

    def test_artifact_summary_parses_server_shape(self):
        artifact = ArtifactSummary.model_validate(
            {
                "id": 7,
                "name": "car",
                "owner_username": "alice",
                "is_public": True,
                "owned_by_me": False,
                "size_bytes": 1024,
            }
        )
        assert artifact.id == 7
        assert artifact.owner_username == "alice"
        assert artifact.owned_by_me is False

    def test_artifact_summary_is_immutable(self):
        artifact = ArtifactSummary(id=1, name="car")
        with pytest.raises(ValidationError):
            artifact.name = "other"

    def test_upload_request_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            UploadArtifactRequest.model_validate(
                {
                    "name": "car",
                    "target": "riscv32imafc-unknown-none-elf",
                    "elf_base64": "AA==",
                    "extra": 1,
                }
            )

    def test_upload_request_requires_name(self):
        with pytest.raises(ValidationError):
            UploadArtifactRequest(name="", target="t", elf_base64="AA==")

    def test_upload_response_requires_artifact_id(self):
        with pytest.raises(ValidationError):
            UploadArtifactResponse.model_validate({})
        assert UploadArtifactResponse.model_validate({"artifact_id": 42}).artifact_id == 42

    def test_visibility_request_dump(self):
        assert UpdateArtifactVisibilityRequest(is_public=True).model_dump() == {"is_public": True}

    def test_login_response_requires_token(self):
        with pytest.raises(ValidationError):
            LoginResponse.model_validate({"token": ""})


class TestAdapters:
    def test_normalize_note_blank_is_absent(self):
        assert normalize_note(None) is None
        assert normalize_note("   ") is None
        assert normalize_note("  fast lap ") == "fast lap"

    def test_build_upload_request_encodes_payload(self):
        req = build_upload_request(
            name=" car ",
            note="",
            target="riscv32imafc-unknown-none-elf",
            elf_bytes=b"\x7fELF",
        )
        assert req.name == "car"
        assert req.note is None
        assert base64.b64decode(req.elf_base64) == b"\x7fELF"

    def test_parse_artifact_list_preserves_order(self):
        artifacts = parse_artifact_list(
            [
                {"id": 3, "name": "b"},
                {"id": 1, "name": "a"},
            ]
        )
        assert [a.id for a in artifacts] == [3, 1]

    def test_parse_artifact_list_rejects_non_list(self):
        with pytest.raises(ValueError):
            parse_artifact_list({"items": []})
