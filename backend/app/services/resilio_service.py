from __future__ import annotations

import json
from typing import Any, Optional

import httpx
import structlog

from app.config.settings import Settings

log = structlog.get_logger()

AGENTS_PATH = "/api/v2/agents"
INFO_PATH = "/api/v2/info"
JOBS_PATH = "/api/v2/jobs"


def job_path(job_id: str | int) -> str:
    return f"{JOBS_PATH}/{job_id}"


# -------------------------
# Errors
# -------------------------

class ResilioServiceError(Exception):
    pass


class UpstreamNotConfiguredError(ResilioServiceError):
    pass


class UpstreamConnectionError(ResilioServiceError):
    pass


class UpstreamStatusError(ResilioServiceError):
    def __init__(
        self,
        message: str,
        status_code: int,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class UpstreamPayloadError(ResilioServiceError):
    pass


# -------------------------
# Helpers
# -------------------------

def _snippet(resp: httpx.Response, limit: int = 300) -> str:
    return (resp.text or "")[:limit]


def _extract_error(resp: httpx.Response) -> tuple[str, Any]:
    """
    Best-effort error message for a failed mutation.

    Prefers the body's "message", then "error"; falls back to the reason
    phrase and finally to a generic status line.
    """
    fallback = f"HTTP error! status: {resp.status_code}"
    try:
        payload = resp.json()
    except ValueError:
        return (resp.reason_phrase or fallback), None

    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("error")
        if isinstance(message, str) and message:
            return message, payload
        if isinstance(message, dict) and message.get("message"):
            return str(message["message"]), payload
    return (resp.reason_phrase or fallback), payload


# -------------------------
# Client
# -------------------------

class ResilioService:
    """Thin async client for the upstream Resilio management API."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.base_url = settings.resilio_api_base_url
        self.token = settings.resilio_api_token
        self.verify_tls = settings.upstream_verify_tls
        self.timeout = settings.upstream_timeout_seconds
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        if not self.base_url:
            raise UpstreamNotConfiguredError("Upstream Resilio API base URL is not configured.")
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=httpx.Timeout(self.timeout),
            verify=self.verify_tls,
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, *, body: Any = None) -> httpx.Response:
        try:
            async with self._client() as client:
                if body is None:
                    return await client.request(method, path)
                return await client.request(method, path, json=body)
        except httpx.RequestError as exc:
            raise UpstreamConnectionError(f"Unable to reach the Resilio API: {exc}") from exc

    async def get_json(self, path: str) -> Any:
        resp = await self._request("GET", path)

        if resp.status_code >= 400:
            raise UpstreamStatusError(
                f"Resilio API request failed with status {resp.status_code}.",
                status_code=resp.status_code,
                details=_snippet(resp),
            )

        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamPayloadError(
                f"Resilio API returned invalid JSON. snippet={_snippet(resp)!r}"
            ) from exc

    async def list_agents(self) -> Any:
        return await self.get_json(AGENTS_PATH)

    async def get_info(self) -> Any:
        return await self.get_json(INFO_PATH)

    async def list_jobs(self) -> Any:
        return await self.get_json(JOBS_PATH)

    async def get_job(self, job_id: str | int) -> Any:
        return await self.get_json(job_path(job_id))

    async def create_job(self, body: dict[str, Any]) -> Any:
        resp = await self._request("POST", JOBS_PATH, body=body)

        if resp.status_code >= 400:
            message, details = _extract_error(resp)
            log.error(
                "upstream_create_job_failed",
                status=resp.status_code,
                reason=resp.reason_phrase,
                message=message,
                details=details,
            )
            raise UpstreamStatusError(message, status_code=resp.status_code, details=details)

        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamPayloadError(
                f"Resilio API returned invalid JSON for created job. snippet={_snippet(resp)!r}"
            ) from exc

    async def delete_job(self, job_id: str | int) -> Any:
        """
        Delete a job upstream.

        The upstream answers deletes with an empty body, a non-JSON body or
        JSON depending on its version. Anything but a JSON object/array
        counts as a plain success.
        """
        resp = await self._request("DELETE", job_path(job_id))

        if resp.status_code >= 400:
            raise UpstreamStatusError(
                f"Resilio API delete failed with status {resp.status_code}.",
                status_code=resp.status_code,
                details=_snippet(resp),
            )

        deleted = {"id": job_id, "deleted": True}
        content_type = (resp.headers.get("content-type") or "").lower()
        if "application/json" not in content_type:
            return deleted

        text = resp.text or ""
        if not text.strip():
            return deleted

        try:
            return json.loads(text)
        except ValueError:
            log.warning("upstream_delete_unparseable_body", job_id=job_id, snippet=text[:200])
            return deleted
