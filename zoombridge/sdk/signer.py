"""Meeting SDK signature generation."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Any

import jwt

from zoombridge.config import SdkConfig
from zoombridge.errors import ConfigurationError, InvalidRequestError
from zoombridge.utils.logging import get_logger

log = get_logger(__name__)

ALGORITHM = "HS256"
ATTENDEE = 0
HOST = 1


@dataclass
class SdkSignaturePayload:
    sdkKey: str
    appKey: str
    mn: str
    role: int
    iat: int
    exp: int
    tokenExp: int

    def to_claims(self) -> dict[str, Any]:
        return asdict(self)


def normalize_meeting_number(value: Any) -> str:
    if isinstance(value, bool) or value is None:
        raise InvalidRequestError("meetingNumber is required")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    raise InvalidRequestError("meetingNumber is required")


def normalize_role(value: Any) -> int:
    if value is None or value == "":
        return ATTENDEE
    if isinstance(value, bool):
        raise InvalidRequestError("role must be 0 (attendee) or 1 (host)")
    try:
        role = int(value)
    except (TypeError, ValueError):
        raise InvalidRequestError("role must be 0 (attendee) or 1 (host)") from None
    if role not in (ATTENDEE, HOST):
        raise InvalidRequestError("role must be 0 (attendee) or 1 (host)")
    return role


class SdkSigner:
    def __init__(self, config: SdkConfig, clock: Callable[[], float] = time.time) -> None:
        self._config = config
        self._clock = clock

    @property
    def sdk_key(self) -> str:
        return self._config.key

    def build_payload(self, meeting_number: Any, role: Any = None) -> SdkSignaturePayload:
        mn = normalize_meeting_number(meeting_number)
        normalized_role = normalize_role(role)

        # Back-dated to tolerate client clock skew
        iat = int(self._clock()) - self._config.clock_skew_seconds
        exp = iat + self._config.token_ttl_seconds
        return SdkSignaturePayload(
            sdkKey=self._config.key,
            appKey=self._config.key,
            mn=mn,
            role=normalized_role,
            iat=iat,
            exp=exp,
            tokenExp=exp,
        )

    def sign(self, meeting_number: Any, role: Any = None) -> str:
        if not (self._config.key and self._config.secret):
            raise ConfigurationError("Meeting SDK key/secret are not configured")
        payload = self.build_payload(meeting_number, role)
        log.info("sdk_signature_issued", mn=payload.mn, role=payload.role, exp=payload.exp)
        return jwt.encode(payload.to_claims(), self._config.secret, algorithm=ALGORITHM)
