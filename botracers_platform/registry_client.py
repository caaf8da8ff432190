"""Registry HTTP client adapter with retry/timeout/error mapping."""

from __future__ import annotations

import asyncio
import json
import socket
import time
from typing import Any
from urllib import error, request

from contracts.v1.adapters import parse_artifact_list
from contracts.v1.schemas import (
    ArtifactSummary,
    LoginRequest,
    LoginResponse,
    ServerCapabilities,
    UpdateArtifactVisibilityRequest,
    UploadArtifactRequest,
    UploadArtifactResponse,
)


IDEMPOTENT_METHODS = frozenset({"GET", "DELETE", "PATCH"})


class RegistryClientError(Exception):
    """Base exception for registry client failures."""


class RegistryClientHTTPError(RegistryClientError):
    """Raised for non-success HTTP responses from the registry."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(f"Registry API error {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401


class RegistryClient:
    """HTTP adapter for the BotRacers artifact registry.

    Public methods are coroutines; each request runs in a worker thread so the
    event loop is never blocked on the network.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = 30.0,
        retry_attempts: int = 2,
        retry_backoff_seconds: float = 0.25,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.retry_attempts = max(1, retry_attempts)
        self.retry_backoff_seconds = max(0.0, retry_backoff_seconds)

    async def capabilities(self) -> ServerCapabilities:
        """Call ``GET /api/v1/capabilities``."""
        data = await self._request("GET", "/api/v1/capabilities")
        try:
            return ServerCapabilities.model_validate(data)
        except ValueError as e:
            raise RegistryClientError(f"invalid capabilities response: {e}") from e

    async def login(self, username: str, password: str) -> LoginResponse:
        """Exchange credentials for a session token."""
        payload = LoginRequest(username=username, password=password).model_dump()
        data = await self._request("POST", "/api/v1/auth/login", payload)
        try:
            return LoginResponse.model_validate(data)
        except ValueError as e:
            raise RegistryClientError(f"invalid login response: {e}") from e

    async def list_artifacts(self, token: str | None = None) -> list[ArtifactSummary]:
        """Call ``GET /api/v1/artifacts``; order is preserved."""
        data = await self._request("GET", "/api/v1/artifacts", token=token)
        try:
            return parse_artifact_list(data)
        except ValueError as e:
            raise RegistryClientError(f"invalid artifacts response: {e}") from e

    async def upload_artifact(
        self,
        req: UploadArtifactRequest,
        token: str | None = None,
    ) -> UploadArtifactResponse:
        """Call ``POST /api/v1/artifacts`` and validate the response contract."""
        data = await self._request("POST", "/api/v1/artifacts", req.model_dump(), token=token)
        try:
            return UploadArtifactResponse.model_validate(data)
        except ValueError as e:
            raise RegistryClientError(f"invalid upload response: {e}") from e

    async def delete_artifact(self, artifact_id: int, token: str | None = None) -> None:
        await self._request("DELETE", f"/api/v1/artifacts/{artifact_id}", token=token)

    async def set_visibility(
        self,
        artifact_id: int,
        is_public: bool,
        token: str | None = None,
    ) -> None:
        payload = UpdateArtifactVisibilityRequest(is_public=is_public).model_dump()
        await self._request(
            "PATCH",
            f"/api/v1/artifacts/{artifact_id}/visibility",
            payload,
            token=token,
        )

    async def _request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        *,
        token: str | None = None,
    ) -> Any:
        return await asyncio.to_thread(self._request_json, method, path, payload, token)

    def _request_json(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        token: str | None = None,
    ) -> Any:
        """Send a JSON request with retry and normalized error handling."""
        url = f"{self.base_url}{path}"
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        attempts = self.retry_attempts if method in IDEMPOTENT_METHODS else 1

        for attempt in range(1, attempts + 1):
            req = request.Request(url, data=data, headers=headers, method=method)
            try:
                with request.urlopen(req, timeout=self.timeout_seconds) as resp:
                    raw = resp.read().decode("utf-8")
                    if not raw:
                        return {}
                    return json.loads(raw)
            except error.HTTPError as e:
                detail = self._read_http_error_detail(e)
                if e.code >= 500 and attempt < attempts:
                    self._sleep_before_retry(attempt)
                    continue
                raise RegistryClientHTTPError(e.code, detail) from e
            except (error.URLError, TimeoutError, socket.timeout) as e:
                if attempt < attempts:
                    self._sleep_before_retry(attempt)
                    continue
                raise RegistryClientError(f"Registry request failed: {e}") from e
            except json.JSONDecodeError as e:
                raise RegistryClientError(f"Registry returned invalid JSON: {e}") from e

        raise RegistryClientError("Registry request failed")

    @staticmethod
    def _read_http_error_detail(exc: error.HTTPError) -> str:
        try:
            body = exc.read().decode("utf-8") if exc.fp is not None else ""
            if not body:
                return exc.reason or "HTTP error"
            try:
                payload = json.loads(body)
                if isinstance(payload, dict):
                    for key in ("detail", "error", "message"):
                        if key in payload:
                            return str(payload[key])
            except json.JSONDecodeError:
                pass
            return body.strip()
        except Exception:
            return str(exc.reason or "HTTP error")

    def _sleep_before_retry(self, attempt: int) -> None:
        if self.retry_backoff_seconds <= 0:
            return
        time.sleep(self.retry_backoff_seconds * attempt)
