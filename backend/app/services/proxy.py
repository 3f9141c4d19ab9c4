from __future__ import annotations

from typing import Any, Awaitable, Callable

import structlog

from app.config.settings import Settings
from app.db.mock_store import MockStore
from app.models.job import CreateJobRequest
from app.services import normalizer
from app.services.normalizer import UnrecognizedPayloadError, envelope
from app.services.resilio_service import (
    AGENTS_PATH,
    INFO_PATH,
    JOBS_PATH,
    ResilioService,
    ResilioServiceError,
    UpstreamStatusError,
    job_path,
)

log = structlog.get_logger()


class ProxyError(Exception):
    """Raised when a request must be answered with an error status."""

    def __init__(self, status_code: int, payload: dict[str, Any]) -> None:
        super().__init__(payload.get("error") or f"status {status_code}")
        self.status_code = status_code
        self.payload = payload


def _dump(model: Any) -> dict[str, Any]:
    return model.model_dump(mode="json", exclude_none=True)


class ResilioProxy:
    """
    Backend-for-frontend operations over the upstream Resilio API.

    ``mock_mode`` answers everything from the store. Otherwise reads go
    upstream; when they fail they either fall back to the store
    (``fallback_to_mock``) or surface as 502. Mutations never fall back.
    """

    def __init__(self, settings: Settings, service: ResilioService, store: MockStore) -> None:
        self.settings = settings
        self.service = service
        self.store = store

    @property
    def mock_mode(self) -> bool:
        return self.settings.mock_mode

    # -------------------------
    # Mock answers
    # -------------------------

    def _mock_agents(self) -> dict[str, Any]:
        return envelope({"agents": [_dump(a) for a in self.store.list_agents()]}, AGENTS_PATH)

    def _mock_info(self) -> dict[str, Any]:
        return envelope(_dump(self.store.system_info()), INFO_PATH)

    def _mock_jobs(self) -> dict[str, Any]:
        return envelope({"jobs": [_dump(j) for j in self.store.list_jobs()]}, JOBS_PATH)

    def _mock_job(self, job_id: str) -> dict[str, Any]:
        job = self.store.get_job(job_id)
        if job is None:
            raise ProxyError(404, {"error": "Job not found"})
        return envelope({"job": _dump(job)}, job_path(job_id))

    # -------------------------
    # Reads
    # -------------------------

    async def _read(
        self,
        resource: str,
        fetch: Callable[[], Awaitable[Any]],
        normalize: Callable[[Any], dict[str, Any]],
        mock: Callable[[], dict[str, Any]],
    ) -> dict[str, Any]:
        if self.mock_mode:
            return mock()

        try:
            payload = await fetch()
            return normalize(payload)
        except (ResilioServiceError, UnrecognizedPayloadError) as exc:
            if not self.settings.fallback_to_mock:
                log.error("upstream_read_failed", resource=resource, error=str(exc))
                raise ProxyError(502, {"error": str(exc), "status": 502}) from exc

            log.warning(
                "upstream_fallback",
                resource=resource,
                reason=type(exc).__name__,
                error=str(exc),
            )
            return mock()

    async def list_agents(self) -> dict[str, Any]:
        return await self._read(
            "agents",
            self.service.list_agents,
            lambda payload: normalizer.normalize_agents(payload, AGENTS_PATH),
            self._mock_agents,
        )

    async def get_info(self) -> dict[str, Any]:
        return await self._read(
            "info",
            self.service.get_info,
            lambda payload: normalizer.normalize_system_info(payload, INFO_PATH),
            self._mock_info,
        )

    async def list_jobs(self) -> dict[str, Any]:
        return await self._read(
            "jobs",
            self.service.list_jobs,
            lambda payload: normalizer.normalize_jobs(payload, JOBS_PATH),
            self._mock_jobs,
        )

    async def get_job(self, job_id: str) -> dict[str, Any]:
        if not self.mock_mode:
            try:
                payload = await self.service.get_job(job_id)
                return normalizer.normalize_job(payload, job_path(job_id))
            except UpstreamStatusError as exc:
                if exc.status_code == 404:
                    raise ProxyError(404, {"error": "Job not found"}) from exc
                if not self.settings.fallback_to_mock:
                    raise ProxyError(502, {"error": str(exc), "status": 502}) from exc
                log.warning("upstream_fallback", resource="job", job_id=job_id, error=str(exc))
            except (ResilioServiceError, UnrecognizedPayloadError) as exc:
                if not self.settings.fallback_to_mock:
                    raise ProxyError(502, {"error": str(exc), "status": 502}) from exc
                log.warning("upstream_fallback", resource="job", job_id=job_id, error=str(exc))

        return self._mock_job(job_id)

    # -------------------------
    # Mutations
    # -------------------------

    async def create_job(self, request: CreateJobRequest) -> tuple[int, dict[str, Any]]:
        """Returns the HTTP status to answer with and the body."""
        if self.mock_mode:
            job = self.store.add_job(request)
            log.info("mock_job_created", job_id=job.id, name=job.name)
            return 201, envelope({"job": _dump(job)}, JOBS_PATH, method="POST", status=201)

        try:
            created = await self.service.create_job(request.to_upstream())
        except UpstreamStatusError as exc:
            raise ProxyError(
                exc.status_code,
                {"error": str(exc), "details": exc.details, "status": exc.status_code},
            ) from exc
        except ResilioServiceError as exc:
            log.error("create_job_failed", error=str(exc))
            raise ProxyError(500, {"error": str(exc) or "Failed to create job", "details": None}) from exc

        log.info("job_created", name=request.name)
        return 200, created

    async def delete_job(self, job_id: str) -> dict[str, Any]:
        path = job_path(job_id)

        if self.mock_mode:
            job = self.store.remove_job(job_id)
            if job is None:
                raise ProxyError(404, {"error": "Job not found"})
            log.info("mock_job_deleted", job_id=job_id)
            return envelope({"job": _dump(job)}, path, method="DELETE")

        try:
            data = await self.service.delete_job(job_id)
        except ResilioServiceError as exc:
            log.error("delete_job_failed", job_id=job_id, error=str(exc))
            raise ProxyError(500, {"error": "Failed to delete job"}) from exc

        log.info("job_deleted", job_id=job_id)
        return envelope(data, path, method="DELETE")
