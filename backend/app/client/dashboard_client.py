"""HTTP client for the dashboard backend routes."""

from __future__ import annotations

from typing import Any, Optional, Union

import httpx

from app.models.job import CreateJobRequest


class DashboardRequestError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, details: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


def _error_from_response(resp: httpx.Response, default: str) -> DashboardRequestError:
    try:
        payload = resp.json()
    except ValueError:
        return DashboardRequestError(resp.reason_phrase or default, resp.status_code)

    message = default
    if isinstance(payload, dict):
        error = payload.get("error")
        detail = payload.get("detail")
        if isinstance(error, str) and error:
            message = error
        elif isinstance(detail, str) and detail:
            message = detail
    return DashboardRequestError(message, resp.status_code, payload)


class DashboardClient:
    """
    Client for the dashboard backend.

    Used by the read cache and the job request builder; every method maps
    to one backend route.
    """

    def __init__(
        self,
        base_url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _get(self, path: str, error: str) -> Any:
        resp = await self.client.get(path)
        if resp.status_code >= 400:
            raise DashboardRequestError(error, resp.status_code)
        return resp.json()

    async def fetch_agents(self) -> Any:
        return await self._get("/agents", "Failed to fetch agents")

    async def fetch_jobs(self) -> Any:
        return await self._get("/jobs", "Failed to fetch jobs")

    async def fetch_info(self) -> Any:
        return await self._get("/info", "Failed to fetch system info")

    async def fetch_dashboard(self) -> Any:
        return await self._get("/dashboard", "Failed to fetch dashboard summary")

    async def create_job(self, draft: Union[CreateJobRequest, dict[str, Any]]) -> Any:
        body = draft.to_upstream() if isinstance(draft, CreateJobRequest) else draft
        resp = await self.client.post("/jobs", json=body)
        if resp.status_code >= 400:
            raise _error_from_response(resp, "Failed to create job")
        return resp.json()

    async def delete_job(self, job_id: str) -> Any:
        resp = await self.client.delete(f"/jobs/{job_id}")
        if resp.status_code >= 400:
            raise DashboardRequestError("Failed to delete job", resp.status_code)
        return resp.json()
