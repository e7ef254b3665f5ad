"""HTTP gateway."""

from aegis_core.gateway.app import create_app

__all__ = ["create_app"]
