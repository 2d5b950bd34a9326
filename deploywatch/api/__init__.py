"""HTTP surface of deploywatch (liveness and metrics)."""

from deploywatch.api.app import create_app

__all__ = ["create_app"]
