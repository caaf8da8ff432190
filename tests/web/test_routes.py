"""
Tests for the botracers web host.
"""

import pytest

from fastapi.testclient import TestClient

from botracers_platform.errors import BuildError
from botracers_platform.registry_client import RegistryClientHTTPError
from botracers_platform.user_config import resolve_workspace_root
from web.app import app
from web.routes import engine_host


@pytest.fixture
def client(engine):
    """FastAPI test client bound to the fake-backed engine."""
    engine_host.engine = engine
    yield TestClient(app)
    engine_host.engine = None


class TestIndex:

    def test_index_points_at_view(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["view"] == "/api/view"


class TestView:

    def test_view_refreshes_on_first_use(self, client, registry, make_artifact):
        registry.artifacts = [make_artifact(42, "fast-car")]

        data = client.get("/api/view").json()

        assert data["state"] == "ready"
        assert data["detail"] == "none"
        assert data["generation"] == 1
        assert [b["name"] for b in data["local_binaries"]] == ["car", "truck"]
        assert data["tree"][1]["children"][0]["artifact_id"] == 42

    def test_view_does_not_refresh_again(self, client, registry):
        client.get("/api/view")
        client.get("/api/view")

        assert registry.call_names().count("capabilities") == 1

    def test_tree(self, client):
        data = client.get("/api/tree").json()
        assert [entry["label"] for entry in data["tree"]] == ["Local Binaries", "Remote Artifacts"]

    def test_refresh(self, client):
        client.get("/api/view")
        data = client.post("/api/refresh").json()
        assert data["generation"] == 2

    def test_logged_out_view(self, client, session_store):
        session_store.token = None

        data = client.get("/api/view").json()

        assert data["state"] == "loggedOut"
        assert data["detail"] == "notLoggedIn"
        assert data["tree"] == []


class TestBinaries:

    def test_upload(self, client, registry):
        response = client.post("/api/binaries/car/upload", json={"name": "Fast", "note": "tuned"})

        assert response.status_code == 200
        data = response.json()
        assert data["cancelled"] is False
        assert data["artifact_id"] == 100
        assert data["name"] == "Fast"
        assert "Artifact uploaded: #100 from 'car'" in data["messages"]
        assert registry.uploads[0].note == "tuned"
        assert data["view"]["artifacts"][0]["name"] == "Fast"

    def test_upload_default_name(self, client, registry):
        data = client.post("/api/binaries/truck/upload", json={}).json()

        assert data["name"] == "truck"
        assert registry.uploads[0].note is None

    def test_upload_blank_name_cancels(self, client, registry):
        data = client.post("/api/binaries/car/upload", json={"name": "  "}).json()

        assert data["cancelled"] is True
        assert registry.mutating_calls() == []

    def test_unknown_binary(self, client):
        response = client.post("/api/binaries/nope/upload", json={})
        assert response.status_code == 404

    def test_build_failure(self, client, builder):
        builder.fail = BuildError("car", 101, "error: could not compile")

        response = client.post("/api/binaries/car/build")

        assert response.status_code == 500
        assert response.json()["detail"]["code"] == "build_failed"
        assert "could not compile" in response.json()["detail"]["output"]

    def test_output_missing(self, client):
        response = client.get("/api/binaries/car/output")

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "build_output_missing"

    def test_build_then_output(self, client):
        built = client.post("/api/binaries/car/build").json()

        response = client.get("/api/binaries/car/output")

        assert response.status_code == 200
        assert response.json()["path"] == built["output_path"]


class TestArtifacts:

    def test_replace(self, client, registry, make_artifact):
        registry.artifacts = [make_artifact(42, "fast-car")]

        response = client.post("/api/artifacts/42/replace", json={"binary": "car"})

        assert response.status_code == 200
        data = response.json()
        assert data["new_artifact_id"] == 100
        assert data["old_deleted"] is True
        assert data["warnings"] == []
        assert registry.mutating_calls() == [
            ("upload_artifact", "fast-car", "tok-1"),
            ("delete_artifact", 42, "tok-1"),
        ]

    def test_replace_with_failed_delete(self, client, registry, make_artifact):
        registry.artifacts = [make_artifact(42, "fast-car")]
        registry.fail["delete_artifact"] = RegistryClientHTTPError(500, "db locked")

        data = client.post("/api/artifacts/42/replace", json={"binary": "car"}).json()

        assert data["old_deleted"] is False
        assert data["warnings"][0].startswith(
            "Uploaded replacement, but failed to delete old artifact #42:"
        )

    def test_replace_foreign(self, client, registry, make_artifact):
        registry.artifacts = [make_artifact(42, "rival-car", owned=False)]

        response = client.post("/api/artifacts/42/replace", json={"binary": "car"})

        assert response.status_code == 409
        assert response.json()["detail"]["message"] == "You can only replace artifacts you own."
        assert registry.mutating_calls() == []

    def test_replace_unknown_binary(self, client, registry, make_artifact):
        registry.artifacts = [make_artifact(42, "fast-car")]

        response = client.post("/api/artifacts/42/replace", json={"binary": "bike"})

        assert response.status_code == 404
        assert registry.mutating_calls() == []

    def test_unknown_artifact(self, client):
        response = client.post("/api/artifacts/7/visibility")
        assert response.status_code == 404

    def test_delete_requires_confirm(self, client, registry, make_artifact):
        registry.artifacts = [make_artifact(42, "fast-car")]

        data = client.post("/api/artifacts/42/delete", json={}).json()

        assert data["deleted"] is False
        assert registry.mutating_calls() == []

    def test_delete_confirmed(self, client, registry, make_artifact):
        registry.artifacts = [make_artifact(42, "fast-car")]

        data = client.post("/api/artifacts/42/delete", json={"confirm": True}).json()

        assert data["deleted"] is True
        assert data["view"]["artifacts"] == []

    def test_delete_unauthorized(self, client, registry, make_artifact):
        registry.artifacts = [make_artifact(42, "fast-car")]
        registry.fail["delete_artifact"] = RegistryClientHTTPError(401, "expired")

        response = client.post("/api/artifacts/42/delete", json={"confirm": True})

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "unauthorized"

    def test_visibility(self, client, registry, make_artifact):
        registry.artifacts = [make_artifact(42, "fast-car")]

        data = client.post("/api/artifacts/42/visibility").json()

        assert data["is_public"] is True
        assert data["messages"] == ["Artifact 'fast-car' is now public"]

    def test_visibility_registry_error(self, client, registry, make_artifact):
        registry.artifacts = [make_artifact(42, "fast-car")]
        registry.fail["set_visibility"] = RegistryClientHTTPError(500, "boom")

        response = client.post("/api/artifacts/42/visibility")

        assert response.status_code == 502
        assert response.json()["detail"]["code"] == "registry_error"


class TestSession:

    def test_login_with_password(self, client, session_store):
        session_store.token = None

        data = client.post("/api/login", json={"username": "alice", "password": "pw"}).json()

        assert session_store.token == "token-alice"
        assert data["messages"] == ["Logged in as 'alice'"]
        assert data["view"]["state"] == "ready"

    def test_login_with_token(self, client, session_store):
        session_store.token = None

        response = client.post("/api/login", json={"token": "pasted"})

        assert response.status_code == 200
        assert session_store.token == "pasted"

    def test_login_requires_credentials(self, client):
        response = client.post("/api/login", json={"username": "alice"})
        assert response.status_code == 400

    def test_login_rejected(self, client, registry):
        registry.fail["login"] = RegistryClientHTTPError(401, "bad credentials")

        response = client.post("/api/login", json={"username": "alice", "password": "x"})

        assert response.status_code == 401

    def test_logout(self, client, session_store):
        data = client.post("/api/logout").json()

        assert session_store.token is None
        assert data["messages"] == ["Logged out"]
        assert data["view"]["detail"] == "notLoggedIn"


class TestConfig:

    def test_get_config(self, client, isolated_config):
        data = client.get("/api/config").json()

        assert data["server_url"] == "http://127.0.0.1:8787"
        assert data["artifact_target"] == "riscv32imafc-unknown-none-elf"
        assert data["config_path"] == str(isolated_config)

    def test_update_config(self, client, isolated_config, monkeypatch):
        reconfigured = []
        monkeypatch.setattr("web.routes.reconfigure_engine", reconfigured.append)

        data = client.post("/api/config", json={"server_url": "https://race.example/"}).json()

        assert data["server_url"] == "https://race.example"
        assert len(reconfigured) == 1
        assert data["view"]["state"] == "ready"


class TestWorkspaceInit:

    def test_init_directory_becomes_workspace(self, client, engine, isolated_config, tmp_path, monkeypatch):
        monkeypatch.setattr(engine, "workspace_root_provider", resolve_workspace_root)
        target = tmp_path / "new-bots"

        response = client.post("/api/workspace/init", json={"directory": str(target)})

        assert response.status_code == 200
        data = response.json()
        assert data["workspace_root"] == str(target.resolve())
        assert data["view"]["state"] == "ready"
        assert [b["name"] for b in data["view"]["local_binaries"]] == ["car"]
        assert data["messages"][0].startswith("Bot project created in")

    def test_init_existing_project_conflicts(self, client):
        response = client.post("/api/workspace/init")

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "precondition_failed"
