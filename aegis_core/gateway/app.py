"""
AEGIS Gateway - FastAPI application.

Endpoints:
- REST: /api/v1/validations, /api/v1/stage-gates
- Health: /health, /ready
- Metrics: /metrics (Prometheus)

The gateway is pure transport: every decision is made by the services
on the AppContext.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from aegis_core import __version__
from aegis_core.context import AppContext
from aegis_core.errors import (
    AegisError,
    InvalidRequestError,
    JudgmentFailureError,
    NotFoundError,
    ValidationBlockedError,
)
from aegis_core.logging import get_current_logger
from aegis_core.settings import get_settings
from aegis_core.validation import blocked_response

STATUS_BY_ERROR = {
    NotFoundError: 404,
    InvalidRequestError: 400,
    JudgmentFailureError: 502,
}


def status_for(error: AegisError) -> int:
    for error_type, status_code in STATUS_BY_ERROR.items():
        if isinstance(error, error_type):
            return status_code
    return 500


# =============================================================================
# Application Lifecycle
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Builds the AppContext unless one was injected."""
    _logger = get_current_logger()
    _logger.info("gateway_startup_initiated")

    if getattr(app.state, "context", None) is None:
        from aegis_core.bootstrap import create_app_context
        app.state.context = create_app_context()

    _logger.info("gateway_startup_complete", status="READY")
    try:
        yield
    finally:
        _logger.info("gateway_shutdown_complete")


# =============================================================================
# Exception Handlers
# =============================================================================

async def _blocked_handler(request: Request, exc: ValidationBlockedError) -> JSONResponse:
    return JSONResponse(status_code=403, content=blocked_response(exc))


async def _aegis_error_handler(request: Request, exc: AegisError) -> JSONResponse:
    status_code = status_for(exc)
    log = get_current_logger()
    if status_code >= 500:
        log.error("request_failed", error_code=exc.code, error=exc.message, path=request.url.path)
    else:
        log.info("request_rejected", error_code=exc.code, error=exc.message, path=request.url.path)
    return JSONResponse(status_code=status_code, content={"success": False, **exc.to_dict()})


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = InvalidRequestError(
        "Request is missing required fields or has invalid values",
        details={"errors": [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()
        ]},
    )
    return JSONResponse(status_code=400, content={"success": False, **error.to_dict()})


async def _unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
    get_current_logger().error("request_crashed", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "INTERNAL", "details": str(exc)},
    )


# =============================================================================
# FastAPI Application
# =============================================================================

def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """Build the gateway.

    Args:
        context: Pre-built AppContext (tests). Built by the lifespan if None.
    """
    app = FastAPI(
        title="AEGIS Gateway",
        description="Multi-layer validation and stage-gate engine",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.context = context

    cors_origins = context.settings.cors_origins if context is not None else get_settings().cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials="*" not in cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValidationBlockedError, _blocked_handler)
    app.add_exception_handler(AegisError, _aegis_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_handler)

    from aegis_core.gateway.routers import health, stage_gates, validation

    app.include_router(health.router, tags=["health"])
    app.include_router(validation.router, prefix="/api/v1", tags=["validation"])
    app.include_router(stage_gates.router, prefix="/api/v1", tags=["stage-gates"])

    app.mount("/metrics", make_asgi_app())
    return app
