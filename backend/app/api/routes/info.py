from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from app.api.deps import get_proxy
from app.services.proxy import ResilioProxy

router = APIRouter(prefix="/info", tags=["info"])


@router.get("")
async def get_system_info(proxy: ResilioProxy = Depends(get_proxy)) -> Any:
    return await proxy.get_info()
