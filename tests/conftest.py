from __future__ import annotations

import json
from typing import Callable, List

import httpx
import pytest
from fastapi.testclient import TestClient

from weather_proxy.core.config import Settings
from weather_proxy.main import create_app

API_KEY = "test-key-abcd1234"


class Upstream:
    """Fake OpenWeatherMap: records requests and answers with a canned response."""

    def __init__(self) -> None:
        self.calls: List[httpx.Request] = []
        self.responder: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, json={"weather": [{"main": "Clear"}], "main": {"temp": 20}}
        )

    def reply(self, status: int = 200, body=None, raw: bytes | None = None) -> None:
        if raw is not None:
            self.responder = lambda request: httpx.Response(status, content=raw)
        else:
            content = json.dumps(body).encode()
            self.responder = lambda request: httpx.Response(status, content=content)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        return self.responder(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key=API_KEY, base_url="https://owm.test")


@pytest.fixture
def client(settings: Settings, upstream: Upstream) -> TestClient:
    app = create_app(settings, transport=upstream.transport)
    return TestClient(app, raise_server_exceptions=False)
