"""Receives Zoom webhook deliveries and keeps the latest one on disk."""

from __future__ import annotations

from typing import Any

from zoombridge.config import WebhookConfig
from zoombridge.errors import ConfigurationError, InvalidRequestError
from zoombridge.store import LAST_WEBHOOK_EVENT, SnapshotStore
from zoombridge.utils.logging import get_logger
from zoombridge.webhooks.handlers import build_validation_response
from zoombridge.webhooks.models import WebhookEvent

log = get_logger(__name__)


class WebhookReceiver:
    def __init__(self, config: WebhookConfig, store: SnapshotStore) -> None:
        self._config = config
        self._store = store

    async def handle(self, body: Any) -> dict[str, str] | None:
        """Answer a validation challenge, or archive the event.

        Returns the challenge response, or ``None`` when the event was
        archived and the caller should send an empty acknowledgment.
        A failed archive write is logged and otherwise ignored so that
        delivery is always acknowledged.
        """
        event = WebhookEvent.from_body(body)

        if event.is_validation:
            plain_token = event.payload.get("plainToken")
            if not isinstance(plain_token, str):
                raise InvalidRequestError("Missing payload.plainToken in validation request")
            if not self._config.secret_token:
                raise ConfigurationError("Webhook secret token is not configured")
            log.info("webhook_url_validation")
            return build_validation_response(plain_token, self._config.secret_token)

        try:
            await self._store.write(LAST_WEBHOOK_EVENT, event.raw)
        except OSError as e:
            log.error("snapshot_write_failed", key=LAST_WEBHOOK_EVENT, error=str(e))

        log.info("webhook_received", zoom_event=event.event or "unknown")
        return None

    async def last_event(self) -> Any | None:
        return await self._store.read(LAST_WEBHOOK_EVENT)
