"""Tests for the OAuth token broker and its endpoints."""

import base64

import httpx
import pytest
from aiohttp.test_utils import TestClient, TestServer

from zoombridge.config import S2SOAuthConfig, UserOAuthConfig, ZoomConfig
from zoombridge.errors import ConfigurationError, UpstreamError
from zoombridge.oauth import OAuthBroker, basic_auth_header
from zoombridge.server import BridgeServer
from zoombridge.store import LAST_OAUTH_TOKEN, MemorySnapshotStore

TOKEN = {
    "access_token": "eyJ.access",
    "token_type": "bearer",
    "refresh_token": "eyJ.refresh",
    "expires_in": 3599,
    "scope": "user:read",
}


@pytest.fixture
def broker(settings, zoom):
    return OAuthBroker(settings.s2s, settings.oauth, settings.zoom, zoom.client)


class TestBasicAuthHeader:
    def test_encoding(self):
        header = basic_auth_header("id", "secret")
        assert header == "Basic " + base64.b64encode(b"id:secret").decode()


class TestOAuthBroker:
    async def test_server_to_server(self, broker, zoom):
        zoom.reply(200, json=TOKEN)
        token = await broker.server_to_server_token()
        assert token == TOKEN

        assert len(zoom.requests) == 1
        request = zoom.requests[0]
        assert request.method == "POST"
        assert request.url.host == "zoom.us"
        assert request.url.path == "/oauth/token"
        assert request.url.params["grant_type"] == "account_credentials"
        assert request.url.params["account_id"] == "acct-1"
        assert request.headers["Authorization"] == basic_auth_header("s2s-id", "s2s-secret")
        assert request.content == b""

    async def test_exchange_code(self, broker, zoom):
        zoom.reply(200, json=TOKEN)
        await broker.exchange_code("auth-code")

        request = zoom.requests[0]
        assert request.headers["Authorization"] == basic_auth_header("user-id", "user-secret")
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert zoom.form(request) == {
            "code": "auth-code",
            "grant_type": "authorization_code",
            "redirect_uri": "https://example.com/redirecturlforoauth",
        }

    async def test_refresh(self, broker, zoom):
        zoom.reply(200, json=TOKEN)
        await broker.refresh("eyJ.refresh")
        assert zoom.form(zoom.requests[0]) == {
            "refresh_token": "eyJ.refresh",
            "grant_type": "refresh_token",
        }

    async def test_upstream_error_carries_body(self, broker, zoom):
        zoom.reply(400, json={"reason": "Invalid authorization code", "error": "invalid_request"})
        with pytest.raises(UpstreamError) as exc_info:
            await broker.exchange_code("bad")
        assert exc_info.value.status == 400
        assert exc_info.value.detail == {"reason": "Invalid authorization code", "error": "invalid_request"}
        assert len(zoom.requests) == 1

    async def test_transport_error(self, broker, zoom):
        zoom.fail_transport("connection refused")
        with pytest.raises(UpstreamError) as exc_info:
            await broker.refresh("r")
        assert exc_info.value.status is None
        assert exc_info.value.detail == "connection refused"

    async def test_custom_base_url(self, zoom):
        broker = OAuthBroker(
            S2SOAuthConfig(client_id="a", client_secret="b", account_id="c"),
            UserOAuthConfig(),
            ZoomConfig(oauth_base_url="https://zoom.example.test/"),
            zoom.client,
        )
        assert broker.token_url == "https://zoom.example.test/oauth/token"

    async def test_unconfigured_s2s(self, zoom):
        broker = OAuthBroker(S2SOAuthConfig(), UserOAuthConfig(), ZoomConfig(), zoom.client)
        with pytest.raises(ConfigurationError):
            await broker.server_to_server_token()
        with pytest.raises(ConfigurationError):
            await broker.refresh("r")
        assert zoom.requests == []


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

@pytest.fixture
def store():
    return MemorySnapshotStore()


@pytest.fixture
async def client(settings, store, zoom):
    app = BridgeServer(settings, store=store, http_client=zoom.client)._build_app()
    async with TestClient(TestServer(app)) as c:
        yield c


class TestS2SEndpoint:
    async def test_success(self, client, zoom):
        zoom.reply(200, json=TOKEN)
        resp = await client.get("/s2soauth")
        assert resp.status == 200
        assert await resp.json() == TOKEN

    async def test_upstream_failure_is_500(self, client, zoom):
        zoom.reply(401, json={"reason": "Invalid client_id or client_secret"})
        resp = await client.get("/s2soauth")
        assert resp.status == 500
        assert await resp.json() == {"error": "Request failed with status code 401"}

    async def test_not_configured_is_500(self, settings, zoom):
        settings.s2s.account_id = ""
        app = BridgeServer(settings, store=MemorySnapshotStore(), http_client=zoom.client)._build_app()
        async with TestClient(TestServer(app)) as c:
            resp = await c.get("/s2soauth")
            assert resp.status == 500
            assert "error" in await resp.json()
        assert zoom.requests == []


class TestRedirectEndpoint:
    async def test_no_code_and_no_saved_token(self, client, zoom):
        resp = await client.get("/redirecturlforoauth")
        assert resp.status == 200
        data = await resp.json()
        assert "No OAuth data" in data["message"]
        assert zoom.requests == []

    async def test_exchange_persists_token(self, client, store, zoom):
        zoom.reply(200, json=TOKEN)
        resp = await client.get("/redirecturlforoauth", params={"code": "abc"})
        assert resp.status == 200
        assert await resp.json() == TOKEN
        assert await store.read(LAST_OAUTH_TOKEN) == TOKEN

        resp = await client.get("/redirecturlforoauth")
        assert await resp.json() == TOKEN
        assert len(zoom.requests) == 1

    async def test_upstream_failure_returns_body(self, client, store, zoom):
        zoom.reply(400, json={"reason": "Invalid authorization code"})
        resp = await client.get("/redirecturlforoauth", params={"code": "expired"})
        assert resp.status == 500
        assert await resp.json() == {"error": {"reason": "Invalid authorization code"}}
        assert await store.read(LAST_OAUTH_TOKEN) is None

    async def test_transport_failure_returns_message(self, client, zoom):
        zoom.fail_transport("name resolution failed")
        resp = await client.get("/redirecturlforoauth", params={"code": "abc"})
        assert resp.status == 500
        assert await resp.json() == {"error": "name resolution failed"}


class TestRefreshEndpoint:
    async def test_missing_code_is_400(self, client, zoom):
        resp = await client.get("/oauthrefreshtoken")
        assert resp.status == 400
        data = await resp.json()
        assert data["error"] == "Missing ?code=refresh_token parameter"
        assert zoom.requests == []

    async def test_single_refresh_call(self, client, zoom):
        zoom.reply(200, json=TOKEN)
        resp = await client.get("/oauthrefreshtoken", params={"code": "eyJ.refresh"})
        assert resp.status == 200
        assert await resp.json() == TOKEN
        assert len(zoom.requests) == 1
        assert zoom.form(zoom.requests[0])["grant_type"] == "refresh_token"

    async def test_refresh_does_not_persist(self, client, store, zoom):
        zoom.reply(200, json=TOKEN)
        await client.get("/oauthrefreshtoken", params={"code": "r"})
        assert await store.read(LAST_OAUTH_TOKEN) is None

    async def test_upstream_failure_is_500(self, client, zoom):
        zoom.reply(401, json={"reason": "Invalid Token!", "error": "invalid_request"})
        resp = await client.get("/oauthrefreshtoken", params={"code": "stale"})
        assert resp.status == 500
        assert (await resp.json())["error"]["reason"] == "Invalid Token!"

    async def test_non_json_upstream_error(self, client, zoom):
        zoom.reply(502, text="Bad Gateway")
        resp = await client.get("/oauthrefreshtoken", params={"code": "r"})
        assert resp.status == 500
        assert await resp.json() == {"error": "Bad Gateway"}


class TestNonObjectTokenBody:
    @pytest.mark.parametrize("body", [["a", "b"], "just a string", 42])
    async def test_broker_rejects(self, broker, zoom, body):
        zoom.reply(200, json=body)
        with pytest.raises(UpstreamError) as exc_info:
            await broker.refresh("r")
        assert exc_info.value.message == "Token endpoint returned a non-JSON response"
        assert exc_info.value.status == 200

    async def test_endpoint_returns_500(self, client, zoom):
        zoom.reply(200, json=["not", "a", "token"])
        resp = await client.get("/oauthrefreshtoken", params={"code": "r"})
        assert resp.status == 500
        assert "error" in await resp.json()
