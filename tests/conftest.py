"""Shared fixtures: a fake Zoom upstream behind httpx.MockTransport."""

from collections.abc import Callable
from urllib.parse import parse_qs

import httpx
import pytest

from zoombridge.config import (
    S2SOAuthConfig,
    SdkConfig,
    ServerConfig,
    Settings,
    StoreConfig,
    UserOAuthConfig,
    WebhookConfig,
)


class FakeZoom:
    """Records every outbound request and answers with ``handler``."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json={})
        )
        self.client = httpx.AsyncClient(transport=httpx.MockTransport(self._dispatch))

    def _dispatch(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def reply(self, status: int, json=None, text: str | None = None) -> None:
        if text is not None:
            self.handler = lambda request: httpx.Response(status, text=text)
        else:
            self.handler = lambda request: httpx.Response(status, json=json)

    def fail_transport(self, message: str = "connection refused") -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError(message, request=request)

        self.handler = handler

    @staticmethod
    def form(request: httpx.Request) -> dict[str, str]:
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


@pytest.fixture
async def zoom():
    fake = FakeZoom()
    yield fake
    await fake.client.aclose()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        server=ServerConfig(port=0),
        webhook=WebhookConfig(secret_token="wh-secret"),
        s2s=S2SOAuthConfig(client_id="s2s-id", client_secret="s2s-secret", account_id="acct-1"),
        oauth=UserOAuthConfig(
            client_id="user-id",
            client_secret="user-secret",
            redirect_uri="https://example.com/redirecturlforoauth",
        ),
        sdk=SdkConfig(key="sdk-key", secret="sdk-secret"),
        store=StoreConfig(data_dir=str(tmp_path)),
    )
