from __future__ import annotations

from datetime import datetime
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict

AgentStatus = Literal["online", "offline", "connecting"]


class ResilioAgent(BaseModel):
    # Upstream sends extra bookkeeping fields we don't model; keep them.
    model_config = ConfigDict(extra="allow")

    id: Union[str, int]
    name: str
    status: AgentStatus
    lastSeen: datetime
    version: str
    os: str
    ip: str
    port: int
    isLocal: bool = False
    folders: int = 0
    peers: int = 0
