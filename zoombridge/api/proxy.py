"""Bearer-token passthrough to the Zoom REST API."""

from __future__ import annotations

from typing import Any

import httpx

from zoombridge.config import ZoomConfig
from zoombridge.errors import UpstreamError
from zoombridge.upstream import response_body, send
from zoombridge.utils.logging import get_logger

log = get_logger(__name__)

PLACEHOLDER_TOKEN = "xxxx"


def is_usable_token(access_token: str | None) -> bool:
    return bool(access_token) and access_token != PLACEHOLDER_TOKEN


class ApiProxy:
    def __init__(self, zoom: ZoomConfig, client: httpx.AsyncClient) -> None:
        self._client = client
        self._base_url = zoom.api_base_url.rstrip("/")

    async def get_current_user(self, access_token: str) -> tuple[int, Any]:
        """GET /users/me with the caller's token. Returns (status, body)."""
        try:
            response = await send(
                self._client, "GET", f"{self._base_url}/users/me",
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json",
                },
            )
        except UpstreamError as e:
            log.warning("api_call_failed", path="/users/me", status=e.status, error=e.message)
            raise
        log.info("api_call_ok", path="/users/me", status=response.status_code)
        return response.status_code, response_body(response)
