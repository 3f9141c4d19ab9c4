"""Shared test helpers."""

from collections.abc import Callable

import httpx

from app.config.settings import Settings

UPSTREAM_URL = "https://resilio.test:8443"


def make_settings(**overrides) -> Settings:
    values = {
        "resilio_api_base_url": None,
        "resilio_api_token": None,
        "mock_mode": False,
        "fallback_to_mock": True,
        "log_json": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class UpstreamRecorder:
    """Records upstream requests and answers them with a configurable handler."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(404)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)
