"""Request-level dependencies shared by the routers."""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, Request, status

from aegis_core.context import AppContext
from aegis_core.protocols import Actor


def get_app_context(request: Request) -> AppContext:
    ctx = getattr(request.app.state, "context", None)
    if ctx is None:
        raise HTTPException(status_code=503, detail="Application context not configured")
    return ctx


def get_actor(
    x_actor_email: Optional[str] = Header(default=None),
    x_actor_role: Optional[str] = Header(default=None),
) -> Actor:
    """Actor from the headers set by the upstream auth proxy."""
    if not x_actor_email or not x_actor_email.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return Actor(email=x_actor_email.strip(), role=(x_actor_role or "user").strip().lower())
