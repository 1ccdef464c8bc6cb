"""Zoom OAuth token flows."""

from .broker import OAuthBroker, basic_auth_header

__all__ = ["OAuthBroker", "basic_auth_header"]
