"""Webhook event models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

URL_VALIDATION_EVENT = "endpoint.url_validation"


@dataclass
class WebhookEvent:
    event: str
    payload: dict[str, Any] = field(default_factory=dict)
    raw: Any = None

    @classmethod
    def from_body(cls, body: Any) -> WebhookEvent:
        if not isinstance(body, dict):
            return cls(event="", raw=body)
        payload = body.get("payload")
        return cls(
            event=str(body.get("event", "")),
            payload=payload if isinstance(payload, dict) else {},
            raw=body,
        )

    @property
    def is_validation(self) -> bool:
        return self.event == URL_VALIDATION_EVENT
