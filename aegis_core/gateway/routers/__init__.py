"""Gateway routers."""

from aegis_core.gateway.routers import health, stage_gates, validation

__all__ = ["health", "stage_gates", "validation"]
