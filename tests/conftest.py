from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from todoview.api_client import TodoApiClient

BASE_URL = "http://todo.test/api"


class FakeApi:
    """In-memory stand-in for the TODO REST API, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], tuple[int, Any]] = {}
        self.requests: list[httpx.Request] = []
        self.down = False

    def route(self, method: str, path: str, status: int = 200, body: Any = None) -> None:
        self.routes[(method, f"/api{path}")] = (status, body)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == f"/api{path}"]

    def json_body(self, request: httpx.Request) -> Any:
        return json.loads(request.content)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.down:
            raise httpx.ConnectError("connection refused", request=request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, text="404 page not found")
        status, body = self.routes[key]
        if status == 204:
            return httpx.Response(204)
        if isinstance(body, bytes):
            return httpx.Response(status, content=body)
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    def client(self) -> TodoApiClient:
        return TodoApiClient(BASE_URL, transport=httpx.MockTransport(self.handler))


@pytest.fixture()
def fake_api() -> FakeApi:
    api = FakeApi()
    api.route("GET", "/tasks", body=[])
    api.route("GET", "/categories", body=[])
    return api
