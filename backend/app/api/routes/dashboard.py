from __future__ import annotations

import asyncio
from collections import Counter
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.api.deps import get_proxy
from app.models.job import JOB_STATUSES
from app.services.proxy import ResilioProxy

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


class AgentSummary(BaseModel):
    total: int = 0
    online: int = 0


class JobSummary(BaseModel):
    total: int = 0
    byStatus: dict[str, int] = Field(default_factory=dict)


class DashboardSummary(BaseModel):
    title: str
    mockMode: bool
    agents: AgentSummary
    jobs: JobSummary
    systemInfo: Optional[dict[str, Any]] = None


def summarize_agents(agents: list[dict[str, Any]]) -> AgentSummary:
    return AgentSummary(
        total=len(agents),
        online=sum(1 for agent in agents if agent.get("status") == "online"),
    )


def summarize_jobs(jobs: list[dict[str, Any]]) -> JobSummary:
    counts = Counter(str(job.get("status") or "unknown") for job in jobs)
    by_status = {name: counts.get(name, 0) for name in JOB_STATUSES}
    # Statuses outside the known set still show up so nothing is hidden.
    by_status.update({name: count for name, count in counts.items() if name not in by_status})
    return JobSummary(total=len(jobs), byStatus=by_status)


@router.get("", response_model=DashboardSummary)
async def get_dashboard(proxy: ResilioProxy = Depends(get_proxy)) -> Any:
    agents_env, jobs_env, info_env = await asyncio.gather(
        proxy.list_agents(),
        proxy.list_jobs(),
        proxy.get_info(),
    )

    agents = (agents_env.get("data") or {}).get("agents") or []
    jobs = (jobs_env.get("data") or {}).get("jobs") or []

    return DashboardSummary(
        title=proxy.settings.dashboard_title,
        mockMode=proxy.mock_mode,
        agents=summarize_agents(agents),
        jobs=summarize_jobs(jobs),
        systemInfo=info_env.get("data"),
    )
