from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.api.deps import get_proxy
from app.models.job import CreateJobRequest
from app.services.proxy import ResilioProxy

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("")
async def list_jobs(proxy: ResilioProxy = Depends(get_proxy)) -> Any:
    return await proxy.list_jobs()


@router.get("/{job_id}")
async def get_job(job_id: str, proxy: ResilioProxy = Depends(get_proxy)) -> Any:
    return await proxy.get_job(job_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_job(payload: CreateJobRequest, proxy: ResilioProxy = Depends(get_proxy)) -> JSONResponse:
    # 201 for mock creates, 200 with the upstream body otherwise.
    status_code, body = await proxy.create_job(payload)
    return JSONResponse(status_code=status_code, content=body)


@router.delete("/{job_id}")
async def delete_job(job_id: str, proxy: ResilioProxy = Depends(get_proxy)) -> Any:
    return await proxy.delete_job(job_id)
