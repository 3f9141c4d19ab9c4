from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ResilioSystemInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    version: str
    os: str
    build: Optional[str] = None
    uptime: int = 0  # seconds
    totalAgents: int = 0
    activeJobs: int = 0
    lastUpdate: Optional[datetime] = None
    startTime: Optional[datetime] = None
