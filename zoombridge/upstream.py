"""Shared httpx plumbing for calls to Zoom."""

from __future__ import annotations

from typing import Any

import httpx

from zoombridge import __version__
from zoombridge.config import ZoomConfig
from zoombridge.errors import UpstreamError


def create_http_client(config: ZoomConfig, **kwargs: Any) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=config.timeout,
        headers={"User-Agent": f"zoombridge/{__version__}"},
        **kwargs,
    )


def response_body(response: httpx.Response) -> Any:
    """Parsed JSON body, the raw text if it isn't JSON, or ``None`` if empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


async def send(client: httpx.AsyncClient, method: str, url: str, **kwargs: Any) -> httpx.Response:
    """Issue one request and translate failures into ``UpstreamError``.

    No retries: one call, one outcome.
    """
    try:
        response = await client.request(method, url, **kwargs)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        raise UpstreamError(
            f"Request failed with status code {status}",
            status=status,
            body=response_body(e.response),
        ) from e
    except httpx.HTTPError as e:
        raise UpstreamError(str(e) or type(e).__name__) from e
    return response
