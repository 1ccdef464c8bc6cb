"""Zoom REST API passthrough."""

from .proxy import ApiProxy, is_usable_token

__all__ = ["ApiProxy", "is_usable_token"]
