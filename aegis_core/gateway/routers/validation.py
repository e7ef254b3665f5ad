"""
Validation router - five-layer validation runs.

Provides:
- POST /validations - Validate a stored or inline target
"""

from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, Request
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from aegis_core.gateway.dependencies import get_actor, get_app_context
from aegis_core.logging import request_scope
from aegis_core.protocols import Actor, RequestContext
from aegis_core.validation import success_response

router = APIRouter()


# =============================================================================
# Request Models
# =============================================================================

class ValidationRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    target_kind: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("target_kind", "entity_type"),
    )
    target_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("target_id", "entity_id"),
    )
    inline_target: Optional[Dict[str, Any]] = Field(
        default=None,
        validation_alias=AliasChoices("inline_target", "entity_data"),
    )
    enforce_hard_stops: bool = True


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/validations")
async def create_validation(
    body: ValidationRequest,
    request: Request,
    actor: Actor = Depends(get_actor),
) -> Dict[str, Any]:
    """Run a validation.

    Blocked runs are persisted and then surface as a 403 rejection with
    the resolution checklist (see the app's exception handlers).
    """
    ctx = get_app_context(request)
    request_ctx = RequestContext(
        request_id=request.headers.get("x-request-id") or str(uuid4()),
        operation="validation",
        actor_email=actor.email,
    )
    with request_scope(request_ctx, ctx.logger.bind(request_id=request_ctx.request_id)):
        record = await ctx.validation_service.validate(
            body.target_kind,
            actor,
            target_id=body.target_id,
            inline_target=body.inline_target,
            enforce_hard_stops=body.enforce_hard_stops,
        )
    return success_response(record, ctx.validation_policy)
