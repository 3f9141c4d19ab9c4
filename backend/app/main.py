from __future__ import annotations

from typing import Optional

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import agents, dashboard, info, jobs
from app.config.settings import Settings, get_settings
from app.db.mock_store import MockStore
from app.observability.logging import configure_logging
from app.services.proxy import ProxyError, ResilioProxy
from app.services.resilio_service import ResilioService

log = structlog.get_logger()


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[MockStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(title=settings.dashboard_title)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.proxy = ResilioProxy(
        settings=settings,
        service=ResilioService(settings, transport=transport),
        store=store or MockStore(),
    )

    @app.on_event("startup")
    def on_startup() -> None:
        configure_logging(
            level=settings.log_level,
            json_output=settings.log_json,
            service_name=settings.service_name,
        )
        if not settings.upstream_verify_tls:
            log.warning("upstream_tls_verification_disabled", base_url=settings.resilio_api_base_url)
        if not settings.mock_mode and not settings.upstream_configured:
            log.warning("upstream_not_configured", fallback_to_mock=settings.fallback_to_mock)
        log.info(
            "dashboard_started",
            mock_mode=settings.mock_mode,
            fallback_to_mock=settings.fallback_to_mock,
            upstream=settings.resilio_api_base_url,
        )

    @app.exception_handler(ProxyError)
    async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.payload)

    @app.get("/health", tags=["health"])
    def health() -> dict:
        return {"status": "ok", "mockMode": settings.mock_mode}

    app.include_router(agents.router)
    app.include_router(info.router)
    app.include_router(jobs.router)
    app.include_router(dashboard.router)

    return app


app = create_app()
