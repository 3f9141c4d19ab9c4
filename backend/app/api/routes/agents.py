from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from app.api.deps import get_proxy
from app.services.proxy import ResilioProxy

router = APIRouter(prefix="/agents", tags=["agents"])


@router.get("")
async def list_agents(proxy: ResilioProxy = Depends(get_proxy)) -> Any:
    return await proxy.list_agents()
