"""OAuth token exchanges against Zoom's token endpoint."""

from __future__ import annotations

import base64
from typing import Any

import httpx

from zoombridge.config import S2SOAuthConfig, UserOAuthConfig, ZoomConfig
from zoombridge.errors import ConfigurationError, UpstreamError
from zoombridge.upstream import send
from zoombridge.utils.logging import get_logger

log = get_logger(__name__)


def basic_auth_header(client_id: str, client_secret: str) -> str:
    credentials = base64.b64encode(f"{client_id}:{client_secret}".encode()).decode()
    return f"Basic {credentials}"


class OAuthBroker:
    """Server-to-server and user-level token flows.

    Tokens are returned as Zoom sends them. Expiry tracking and refresh
    scheduling are left to the caller.
    """

    def __init__(
        self,
        s2s: S2SOAuthConfig,
        oauth: UserOAuthConfig,
        zoom: ZoomConfig,
        client: httpx.AsyncClient,
    ) -> None:
        self._s2s = s2s
        self._oauth = oauth
        self._client = client
        self._token_url = f"{zoom.oauth_base_url.rstrip('/')}/oauth/token"

    @property
    def token_url(self) -> str:
        return self._token_url

    async def server_to_server_token(self) -> dict[str, Any]:
        """account_credentials grant for the configured S2S app."""
        if not (self._s2s.client_id and self._s2s.client_secret and self._s2s.account_id):
            raise ConfigurationError("Server-to-server OAuth credentials are not configured")
        return await self._request_token(
            "account_credentials",
            self._s2s.client_id,
            self._s2s.client_secret,
            params={
                "grant_type": "account_credentials",
                "account_id": self._s2s.account_id,
            },
        )

    async def exchange_code(self, code: str) -> dict[str, Any]:
        """authorization_code grant; ``redirect_uri`` must match the app registration."""
        self._require_user_credentials()
        return await self._request_token(
            "authorization_code",
            self._oauth.client_id,
            self._oauth.client_secret,
            data={
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": self._oauth.redirect_uri,
            },
        )

    async def refresh(self, refresh_token: str) -> dict[str, Any]:
        self._require_user_credentials()
        return await self._request_token(
            "refresh_token",
            self._oauth.client_id,
            self._oauth.client_secret,
            data={
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            },
        )

    def _require_user_credentials(self) -> None:
        if not (self._oauth.client_id and self._oauth.client_secret):
            raise ConfigurationError("User-level OAuth credentials are not configured")

    async def _request_token(
        self,
        grant_type: str,
        client_id: str,
        client_secret: str,
        *,
        params: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        headers = {
            "Authorization": basic_auth_header(client_id, client_secret),
            "Content-Type": "application/x-www-form-urlencoded",
        }
        try:
            response = await send(
                self._client, "POST", self._token_url,
                params=params, data=data, headers=headers,
            )
        except UpstreamError as e:
            log.warning("oauth_exchange_failed", grant_type=grant_type, status=e.status, error=e.message)
            log.debug("oauth_exchange_error_body", grant_type=grant_type, body=e.body)
            raise

        try:
            token = response.json()
        except ValueError:
            token = None
        if not isinstance(token, dict):
            raise UpstreamError(
                "Token endpoint returned a non-JSON response",
                status=response.status_code,
                body=response.text,
            )

        log.info(
            "oauth_token_obtained",
            grant_type=grant_type,
            expires_in=token.get("expires_in"),
            scope=token.get("scope"),
        )
        return token
