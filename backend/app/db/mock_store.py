from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from app.models.agent import ResilioAgent
from app.models.job import CreateJobRequest, JobAgent, JobGroup, JobPath, ResilioJob
from app.models.system_info import ResilioSystemInfo


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


# -------------------------
# Fixtures
# -------------------------

def _seed_agents(now: datetime) -> list[ResilioAgent]:
    return [
        ResilioAgent(
            id="agent-1",
            name="Main Server",
            status="online",
            lastSeen=now,
            version="2.7.3",
            os="macOS 14.6",
            ip="192.168.1.100",
            port=8888,
            isLocal=True,
            folders=5,
            peers=12,
        ),
        ResilioAgent(
            id="agent-2",
            name="Backup Server",
            status="online",
            lastSeen=now - timedelta(minutes=5),
            version="2.7.2",
            os="Ubuntu 22.04",
            ip="192.168.1.101",
            port=8888,
            folders=3,
            peers=8,
        ),
        ResilioAgent(
            id="agent-3",
            name="Mobile Device",
            status="offline",
            lastSeen=now - timedelta(hours=1),
            version="2.7.1",
            os="iOS 17.0",
            ip="192.168.1.102",
            port=8888,
            folders=2,
            peers=0,
        ),
    ]


def _seed_jobs(now: datetime) -> list[ResilioJob]:
    return [
        ResilioJob(
            id="job-1",
            name="Daily Backup",
            type="consolidation",
            status="running",
            progress=65,
            startTime=now - timedelta(minutes=30),
            agents=[
                JobAgent(id=1, permission="ro", path=JobPath(osx="/Users/nick/Documents")),
                JobAgent(id=2, permission="rw", path=JobPath(linux="/backup/documents")),
            ],
            filesProcessed=1250,
            totalFiles=1920,
            bytesTransferred=1024000000,
            totalBytes=1572864000,
        ),
        ResilioJob(
            id="job-2",
            name="Photo Sync",
            type="sync",
            status="completed",
            progress=100,
            startTime=now - timedelta(hours=2),
            endTime=now - timedelta(hours=1),
            groups=[JobGroup(id=10, permission="rw", path=JobPath(macro="%FOLDERS_STORAGE%"))],
            agents=[JobAgent(id=2, permission="rw", path=JobPath(linux="/shared/photos"))],
            filesProcessed=450,
            totalFiles=450,
            bytesTransferred=2048000000,
            totalBytes=2048000000,
        ),
        ResilioJob(
            id="job-3",
            name="Archive Transfer",
            type="storage_tiering_and_archival",
            status="failed",
            progress=30,
            startTime=now - timedelta(minutes=15),
            endTime=now - timedelta(minutes=10),
            agents=[
                JobAgent(id=1, permission="sro", path=JobPath(osx="/Users/nick/Archive")),
                JobAgent(id=2, permission="srw", path=JobPath(linux="/archive/old-files")),
            ],
            filesProcessed=150,
            totalFiles=500,
            bytesTransferred=512000000,
            totalBytes=1700000000,
            errorMessage="Connection timeout to destination server",
        ),
        ResilioJob(
            id="job-4",
            name="Weekly Transfer",
            type="distribution",
            status="queued",
            progress=0,
            startTime=now,
            agents=[
                JobAgent(id=2, permission="ro", path=JobPath(linux="/shared/downloads")),
                JobAgent(id=3, permission="rw", path=JobPath(macro="%DOWNLOADS%")),
            ],
            totalFiles=75,
            totalBytes=256000000,
        ),
    ]


def _seed_system_info() -> ResilioSystemInfo:
    return ResilioSystemInfo(
        version="2.7.3",
        os="macOS 14.6.0",
        build="2024.09.15",
        uptime=86400,
        totalAgents=3,
        activeJobs=2,
    )


# -------------------------
# Store
# -------------------------

class MockStore:
    """In-memory fixtures served in mock mode and as the fallback dataset.

    One instance is owned by the proxy. It is not locked: every request is
    handled on the same event loop.
    """

    def __init__(
        self,
        agents: Optional[list[ResilioAgent]] = None,
        jobs: Optional[list[ResilioJob]] = None,
        system_info: Optional[ResilioSystemInfo] = None,
    ) -> None:
        now = _utc_now()
        self._agents = list(agents) if agents is not None else _seed_agents(now)
        self._jobs = list(jobs) if jobs is not None else _seed_jobs(now)
        self._system_info = system_info or _seed_system_info()

    def list_agents(self) -> list[ResilioAgent]:
        return list(self._agents)

    def list_jobs(self) -> list[ResilioJob]:
        return list(self._jobs)

    def system_info(self) -> ResilioSystemInfo:
        return self._system_info

    def get_job(self, job_id: Union[str, int]) -> ResilioJob | None:
        return next((job for job in self._jobs if str(job.id) == str(job_id)), None)

    def add_job(self, request: CreateJobRequest) -> ResilioJob:
        now = _utc_now()
        job_id = f"job-{int(now.timestamp() * 1000)}"
        suffix = 1
        while self.get_job(job_id) is not None:
            job_id = f"job-{int(now.timestamp() * 1000)}-{suffix}"
            suffix += 1

        job = ResilioJob(
            id=job_id,
            name=request.name,
            type=request.type,
            status="queued",
            progress=0,
            startTime=now,
            description=request.description,
            groups=list(request.groups),
            agents=list(request.agents),
            filesProcessed=0,
            totalFiles=0,
            bytesTransferred=0,
            totalBytes=0,
        )
        self._jobs.append(job)
        return job

    def remove_job(self, job_id: Union[str, int]) -> ResilioJob | None:
        for index, job in enumerate(self._jobs):
            if str(job.id) == str(job_id):
                return self._jobs.pop(index)
        return None
