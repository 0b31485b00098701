"""HTTP serving layer."""

from .app import GATEWAY_KEY, create_app

__all__ = ["GATEWAY_KEY", "create_app"]
