from __future__ import annotations

from fastapi import Request

from app.services.proxy import ResilioProxy


def get_proxy(request: Request) -> ResilioProxy:
    return request.app.state.proxy
