"""
Health router - liveness and readiness probes.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from aegis_core.logging import get_current_logger

router = APIRouter()

SERVICE_NAME = "aegis-gateway"


@router.get("/health")
async def health() -> JSONResponse:
    """Liveness probe. Always 200 while the process is alive."""
    return JSONResponse({"status": "healthy", "service": SERVICE_NAME})


@router.get("/ready")
async def ready(request: Request) -> JSONResponse:
    """Readiness probe: context wired and LLM transport reachable."""
    ctx = getattr(request.app.state, "context", None)
    checks = {"context": "initialized" if ctx is not None else "not_initialized", "llm": "unknown"}

    if ctx is not None:
        try:
            checks["llm"] = "healthy" if await ctx.llm.health_check() else "unhealthy"
        except Exception as e:
            get_current_logger().warning("readiness_llm_check_failed", error=str(e))
            checks["llm"] = "unhealthy"

    if checks["context"] == "initialized" and checks["llm"] == "healthy":
        return JSONResponse({"status": "ready", **checks})
    return JSONResponse(status_code=503, content={"status": "not_ready", **checks})
