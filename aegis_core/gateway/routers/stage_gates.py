"""
Stage gate router - Gate 0 / 1 / 2 evaluations.

Provides:
- POST /stage-gates - Evaluate one gate for one project
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, Request
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt

from aegis_core.gateway.dependencies import get_actor, get_app_context
from aegis_core.logging import request_scope
from aegis_core.protocols import Actor, Deliverable, RequestContext

router = APIRouter()


class DeliverableIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str = Field(..., min_length=1, validation_alias=AliasChoices("code", "deliverable_code"))
    content: Any = None
    confidence_score: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("confidence_score", "crv_score"),
    )

    def to_domain(self) -> Deliverable:
        return Deliverable(code=self.code, content=self.content, confidence_score=self.confidence_score)


class StageGateRequest(BaseModel):
    gate_number: StrictInt
    project_id: str = Field(..., min_length=1)
    deliverables: List[DeliverableIn] = Field(default_factory=list)


@router.post("/stage-gates")
async def evaluate_stage_gate(
    body: StageGateRequest,
    request: Request,
    actor: Actor = Depends(get_actor),
) -> Dict[str, Any]:
    ctx = get_app_context(request)
    request_ctx = RequestContext(
        request_id=request.headers.get("x-request-id") or str(uuid4()),
        operation="stage_gate",
        actor_email=actor.email,
        tags={"gate_number": str(body.gate_number)},
    )
    with request_scope(request_ctx, ctx.logger.bind(request_id=request_ctx.request_id)):
        result = await ctx.stage_gate_evaluator.evaluate(
            body.gate_number,
            body.project_id,
            [d.to_domain() for d in body.deliverables],
        )
    return {
        "success": True,
        "gate_number": body.gate_number,
        "result": result.to_dict(),
    }
