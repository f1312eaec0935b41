from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator

import httpx
import pytest

import gptcompare.serve.openai_service as service_mod

API_URL = "https://api.test/v1/responses"


class FakeTransport:
    """Stands in for httpx.Client; records every POST and answers via ``handler``."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.timeouts: list[float | None] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda req: httpx.Response(200, json={"output": []}, request=req)

    def client(self, timeout: float | None = None) -> "_FakeClient":
        self.timeouts.append(timeout)
        return _FakeClient(self)


class _FakeClient:
    def __init__(self, transport: FakeTransport) -> None:
        self._transport = transport

    def __enter__(self) -> "_FakeClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        return None

    @contextmanager
    def stream(self, method: str, url: str, headers: dict[str, str] | None = None, json: dict[str, Any] | None = None) -> Iterator[httpx.Response]:  # noqa: A002
        self._transport.calls.append({"method": method, "url": url, "headers": headers, "json": json})
        response = self._transport.handler(httpx.Request(method, url, headers=headers, json=json))
        try:
            yield response
        finally:
            response.close()


@pytest.fixture()
def fake_transport(monkeypatch: pytest.MonkeyPatch) -> FakeTransport:
    transport = FakeTransport()
    monkeypatch.setattr(service_mod.httpx, "Client", transport.client)
    return transport


@pytest.fixture()
def service() -> service_mod.OpenAIService:
    return service_mod.OpenAIService(
        api_key="test-api-key",
        api_url=API_URL,
        default_model="gpt-4.1-mini",
    )
