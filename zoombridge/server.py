"""HTTP front door using aiohttp."""

from __future__ import annotations

import hmac
import json
from typing import Any

import httpx
from aiohttp import web

from zoombridge.api import ApiProxy, is_usable_token
from zoombridge.config import Settings
from zoombridge.errors import ConfigurationError, InvalidRequestError, UpstreamError
from zoombridge.oauth import OAuthBroker
from zoombridge.sdk import SdkSigner
from zoombridge.store import LAST_OAUTH_TOKEN, SnapshotStore, create_store
from zoombridge.upstream import create_http_client
from zoombridge.utils.logging import get_logger
from zoombridge.webhooks.receiver import WebhookReceiver

log = get_logger(__name__)

# Reachable without a bearer token even when require_auth is on; Zoom
# cannot authenticate its webhook deliveries to us.
PUBLIC_PATHS = frozenset({"/", "/webhook"})

CORS_ALLOW_METHODS = "GET,HEAD,PUT,PATCH,POST,DELETE"


def _snapshot_response(value: Any, empty_message: str) -> web.Response:
    if value is None:
        return web.json_response({"message": empty_message})
    if isinstance(value, str):
        return web.Response(text=value)
    return web.json_response(value)


def _error(detail: Any, status: int) -> web.Response:
    return web.json_response({"error": detail}, status=status)


class BridgeServer:
    """Routes inbound requests to the webhook, OAuth, SDK and API components."""

    def __init__(
        self,
        settings: Settings,
        store: SnapshotStore | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._config = settings.server
        self._store = store or create_store(settings.store)
        self._owns_client = http_client is None
        self._client = http_client or create_http_client(settings.zoom)
        self._runner: web.AppRunner | None = None

        self.webhooks = WebhookReceiver(settings.webhook, self._store)
        self.oauth = OAuthBroker(settings.s2s, settings.oauth, settings.zoom, self._client)
        self.signer = SdkSigner(settings.sdk)
        self.api = ApiProxy(settings.zoom, self._client)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        self._warn_unconfigured()
        app = self._build_app()
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.bind, self._config.port)
        await site.start()
        log.info(
            "server_started",
            bind=self._config.bind,
            port=self._config.port,
            require_auth=self._config.require_auth,
        )

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        if self._owns_client:
            await self._client.aclose()
        log.info("server_stopped")

    def _warn_unconfigured(self) -> None:
        s = self._settings
        checks = {
            "webhook": bool(s.webhook.secret_token),
            "s2s": bool(s.s2s.client_id and s.s2s.client_secret and s.s2s.account_id),
            "oauth": bool(s.oauth.client_id and s.oauth.client_secret),
            "sdk": bool(s.sdk.key and s.sdk.secret),
        }
        for section, configured in checks.items():
            if not configured:
                log.warning("section_not_configured", section=section)
        if self._config.require_auth and not self._config.auth_token:
            log.warning(
                "auth_token_missing",
                msg="require_auth is on but no auth_token is set; all protected requests will be rejected.",
            )

    # ------------------------------------------------------------------
    # App construction
    # ------------------------------------------------------------------

    def _build_app(self) -> web.Application:
        app = web.Application(
            middlewares=[self._cors_middleware, self._auth_middleware, self._error_middleware]
        )
        app.router.add_get("/", self._handle_index)
        app.router.add_post("/webhook", self._handle_webhook)
        app.router.add_get("/webhook", self._handle_last_webhook)
        app.router.add_get("/s2soauth", self._handle_s2s_oauth)
        app.router.add_get("/redirecturlforoauth", self._handle_oauth_redirect)
        app.router.add_get("/oauthrefreshtoken", self._handle_oauth_refresh)
        app.router.add_get("/meetingsdktoken", self._handle_sdk_usage)
        app.router.add_post("/meetingsdktoken", self._handle_sdk_sign)
        app.router.add_get("/callapi", self._handle_call_api)
        return app

    # ------------------------------------------------------------------
    # Middleware
    # ------------------------------------------------------------------

    def _origin_allowed(self, origin: str) -> bool:
        allowed = self._config.allowed_origins
        return "*" in allowed or origin in allowed

    def _apply_cors(self, request: web.Request, headers: Any) -> None:
        origin = request.headers.get("Origin")
        if origin is None:
            if "*" in self._config.allowed_origins:
                headers["Access-Control-Allow-Origin"] = "*"
            return
        if not self._origin_allowed(origin):
            return
        headers["Access-Control-Allow-Origin"] = origin
        headers["Vary"] = "Origin"

    @web.middleware
    async def _cors_middleware(self, request: web.Request, handler: Any) -> web.StreamResponse:
        # Pre-flight is answered for every path, routed or not
        if request.method == "OPTIONS":
            response = web.Response(status=204)
            self._apply_cors(request, response.headers)
            response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
            requested = request.headers.get("Access-Control-Request-Headers")
            if requested:
                response.headers["Access-Control-Allow-Headers"] = requested
            return response

        try:
            response = await handler(request)
        except web.HTTPException as e:
            self._apply_cors(request, e.headers)
            raise
        self._apply_cors(request, response.headers)
        return response

    @web.middleware
    async def _auth_middleware(self, request: web.Request, handler: Any) -> web.StreamResponse:
        if not self._config.require_auth or request.path in PUBLIC_PATHS:
            return await handler(request)

        provided = request.headers.get("Authorization", "").removeprefix("Bearer ").strip()
        expected = self._config.auth_token
        if not expected or not provided or not hmac.compare_digest(provided, expected):
            log.warning("request_unauthorized", path=request.path)
            return _error("Unauthorized", 401)
        return await handler(request)

    @web.middleware
    async def _error_middleware(self, request: web.Request, handler: Any) -> web.StreamResponse:
        try:
            return await handler(request)
        except InvalidRequestError as e:
            return _error(str(e), 400)
        except ConfigurationError as e:
            log.error("endpoint_not_configured", path=request.path, error=str(e))
            return _error(str(e), 500)

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def _read_json(self, request: web.Request) -> Any:
        raw = await request.read()
        try:
            text = raw.decode("utf-8")
            if not text.strip():
                return {}
            return json.loads(text)
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise InvalidRequestError("Invalid JSON body") from None

    async def _handle_index(self, request: web.Request) -> web.StreamResponse:
        return web.FileResponse(self._config.get_static_dir() / "index.html")

    async def _handle_webhook(self, request: web.Request) -> web.Response:
        body = await self._read_json(request)
        validation = await self.webhooks.handle(body)
        if validation is not None:
            return web.json_response(validation)
        return web.Response(status=200)

    async def _handle_last_webhook(self, request: web.Request) -> web.Response:
        event = await self.webhooks.last_event()
        return _snapshot_response(event, "No webhook data yet")

    async def _handle_s2s_oauth(self, request: web.Request) -> web.Response:
        try:
            token = await self.oauth.server_to_server_token()
        except UpstreamError as e:
            return _error(e.message, 500)
        return web.json_response(token)

    async def _handle_oauth_redirect(self, request: web.Request) -> web.Response:
        code = request.query.get("code")
        if not code:
            saved = await self._store.read(LAST_OAUTH_TOKEN)
            return _snapshot_response(
                saved, "No OAuth data. Add ?code=xxx to exchange authorization code."
            )

        try:
            token = await self.oauth.exchange_code(code)
        except UpstreamError as e:
            return _error(e.detail, 500)

        try:
            await self._store.write(LAST_OAUTH_TOKEN, token)
        except OSError as e:
            log.error("snapshot_write_failed", key=LAST_OAUTH_TOKEN, error=str(e))
        return web.json_response(token)

    async def _handle_oauth_refresh(self, request: web.Request) -> web.Response:
        refresh_token = request.query.get("code")
        if not refresh_token:
            raise InvalidRequestError("Missing ?code=refresh_token parameter")
        try:
            token = await self.oauth.refresh(refresh_token)
        except UpstreamError as e:
            return _error(e.detail, 500)
        return web.json_response(token)

    async def _handle_sdk_usage(self, request: web.Request) -> web.Response:
        return web.json_response({
            "message": "POST to this endpoint with { meetingNumber, role } to get a signature",
            "sdkKey": self.signer.sdk_key,
        })

    async def _handle_sdk_sign(self, request: web.Request) -> web.Response:
        body = await self._read_json(request)
        if not isinstance(body, dict):
            raise InvalidRequestError("Expected a JSON object with meetingNumber and role")
        signature = self.signer.sign(body.get("meetingNumber"), body.get("role"))
        return web.json_response({"signature": signature, "sdkKey": self.signer.sdk_key})

    async def _handle_call_api(self, request: web.Request) -> web.Response:
        access_token = request.query.get("accesstoken")
        if not is_usable_token(access_token):
            return web.json_response({
                "message": "Add ?accesstoken=your_token to call the API",
                "example": "/callapi?accesstoken=eyJ...",
            })

        try:
            status, body = await self.api.get_current_user(access_token)
        except UpstreamError as e:
            return _error(e.detail, e.status or 500)
        return web.json_response(body, status=status)
