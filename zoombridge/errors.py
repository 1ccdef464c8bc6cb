"""Exception types shared by the upstream clients and the HTTP layer."""

from __future__ import annotations

from typing import Any


class BridgeError(Exception):
    """Base class for request-scoped failures."""


class ConfigurationError(BridgeError):
    """A credential needed by the requested endpoint is not configured."""


class InvalidRequestError(BridgeError):
    """The caller omitted or malformed a required input."""


class UpstreamError(BridgeError):
    """A call to Zoom failed.

    ``status`` and ``body`` are set when Zoom answered with a 4xx/5xx;
    both are ``None`` for transport failures (DNS, connect, timeout).
    """

    def __init__(self, message: str, status: int | None = None, body: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.body = body

    @property
    def detail(self) -> Any:
        if self.body is not None:
            return self.body
        return self.message
