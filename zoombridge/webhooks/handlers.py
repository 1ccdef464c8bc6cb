"""Zoom endpoint URL validation."""

from __future__ import annotations

import hashlib
import hmac


def compute_validation_token(plain_token: str, secret: str) -> str:
    """Hex HMAC-SHA256 of ``plain_token`` keyed with the webhook secret token."""
    return hmac.new(
        secret.encode(), plain_token.encode(), hashlib.sha256
    ).hexdigest()


def build_validation_response(plain_token: str, secret: str) -> dict[str, str]:
    return {
        "plainToken": plain_token,
        "encryptedToken": compute_validation_token(plain_token, secret),
    }
