"""
Polling read cache for the dashboard resources.

Each resource (agents, jobs, info) has its own entry, polling interval and
lock. Fetches of one resource never overlap: a poll that starts while a
manual refresh is in flight waits for it, so the cached value always comes
from the most recently started fetch.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

import httpx
import structlog

from app.client.dashboard_client import DashboardClient, DashboardRequestError

log = structlog.get_logger()

AGENTS = "agents"
JOBS = "jobs"
INFO = "info"

DEFAULT_INTERVALS: dict[str, float] = {
    AGENTS: 30.0,
    JOBS: 10.0,
    INFO: 60.0,
}


@dataclass
class CacheEntry:
    interval: float
    value: Any = None
    fetched_at: Optional[float] = None
    stale: bool = True
    error: Optional[Exception] = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    reset: asyncio.Event = field(default_factory=asyncio.Event)


class ReadCache:
    def __init__(
        self,
        client: DashboardClient,
        intervals: Optional[dict[str, float]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.clock = clock
        intervals = {**DEFAULT_INTERVALS, **(intervals or {})}
        self._fetchers: dict[str, Callable[[], Awaitable[Any]]] = {
            AGENTS: client.fetch_agents,
            JOBS: client.fetch_jobs,
            INFO: client.fetch_info,
        }
        self._entries = {name: CacheEntry(interval=intervals[name]) for name in self._fetchers}
        self._tasks: dict[str, asyncio.Task] = {}

    def entry(self, resource: str) -> CacheEntry:
        try:
            return self._entries[resource]
        except KeyError:
            raise KeyError(f"Unknown resource: {resource}") from None

    def is_fresh(self, resource: str) -> bool:
        entry = self.entry(resource)
        if entry.stale or entry.fetched_at is None:
            return False
        return self.clock() - entry.fetched_at < entry.interval

    # -------------------------
    # Reads
    # -------------------------

    async def fetch(self, resource: str) -> Any:
        entry = self.entry(resource)
        async with entry.lock:
            try:
                value = await self._fetchers[resource]()
            except (DashboardRequestError, httpx.HTTPError) as exc:
                entry.error = exc
                log.warning("cache_fetch_failed", resource=resource, error=str(exc))
                raise
            entry.value = value
            entry.fetched_at = self.clock()
            entry.stale = False
            entry.error = None
            return value

    async def get(self, resource: str) -> Any:
        if self.is_fresh(resource):
            return self.entry(resource).value
        return await self.fetch(resource)

    def invalidate(self, resource: str) -> None:
        self.entry(resource).stale = True

    async def refresh(self) -> None:
        """Refetch agents and jobs now and restart their poll intervals."""
        results = await asyncio.gather(
            self._refresh_one(AGENTS),
            self._refresh_one(JOBS),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

    async def _refresh_one(self, resource: str) -> Any:
        value = await self.fetch(resource)
        self._entries[resource].reset.set()
        return value

    # -------------------------
    # Mutations
    # -------------------------

    async def create_job(self, draft: Any) -> Any:
        created = await self.client.create_job(draft)
        self.invalidate(JOBS)
        return created

    async def delete_job(self, job_id: str) -> Any:
        deleted = await self.client.delete_job(job_id)
        self.invalidate(JOBS)
        return deleted

    # -------------------------
    # Polling
    # -------------------------

    async def _poll(self, resource: str) -> None:
        entry = self._entries[resource]
        while True:
            try:
                await self.fetch(resource)
            except (DashboardRequestError, httpx.HTTPError):
                pass  # already recorded on the entry and logged

            while True:
                try:
                    await asyncio.wait_for(entry.reset.wait(), timeout=entry.interval)
                except asyncio.TimeoutError:
                    break
                # A manual refresh just fetched; wait a full interval again.
                entry.reset.clear()

    def start(self) -> None:
        for name in self._entries:
            task = self._tasks.get(name)
            if task is None or task.done():
                self._tasks[name] = asyncio.create_task(self._poll(name))

    async def stop(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
