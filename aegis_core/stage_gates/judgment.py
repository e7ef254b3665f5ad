"""Judgment collaborator contract and the LLM-backed implementation.

Whatever the collaborator is, its answer is validated here before the
evaluator looks at it: a missing criterion, an out-of-range score or an
unparseable body is a JudgmentFailureError, never a partial result.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from aegis_core.errors import JudgmentFailureError
from aegis_core.logging import get_component_logger
from aegis_core.protocols import (
    JudgmentResponse,
    LLMProviderProtocol,
    LoggerProtocol,
    RubricRequest,
)
from aegis_core.stage_gates.prompts import render_rubric_prompt
from aegis_core.utils.json_repair import JSONRepairKit
from aegis_core.utils.scoring import round_half_up


class JudgmentPayload(BaseModel):
    """Wire shape of a judgment answer."""

    model_config = ConfigDict(extra="ignore")

    score_breakdown: Dict[str, float]
    overall_score: float = Field(ge=0, le=100)
    passed: bool
    gate_name: Optional[str] = None
    critical_issues: List[str] = Field(default_factory=list)
    blockers: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    required_actions: List[str] = Field(default_factory=list)
    recommendation: Optional[str] = None
    confidence_assessment: Optional[Dict[str, Any]] = None
    comparisons_with_similar_strategies: List[str] = Field(default_factory=list)
    unmitigated_critical_risks: List[str] = Field(default_factory=list)

    @field_validator("score_breakdown")
    @classmethod
    def _scores_in_range(cls, value: Dict[str, float]) -> Dict[str, float]:
        for key, score in value.items():
            if not 0 <= score <= 100:
                raise ValueError(f"score_breakdown.{key}={score} outside [0, 100]")
        return value


def _normalise(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Lift overall_score out of score_breakdown when it was nested there."""
    data = dict(data)
    breakdown = data.get("score_breakdown")
    if isinstance(breakdown, Mapping):
        breakdown = dict(breakdown)
        nested_overall = breakdown.pop("overall_score", None)
        if data.get("overall_score") is None and nested_overall is not None:
            data["overall_score"] = nested_overall
        data["score_breakdown"] = breakdown
    return data


def parse_judgment(data: Any, rubric: RubricRequest) -> JudgmentResponse:
    """Validate a decoded judgment answer against the rubric.

    Raises:
        JudgmentFailureError: not an object, schema violation, or a
            rubric criterion missing from score_breakdown
    """
    if not isinstance(data, Mapping):
        raise JudgmentFailureError(
            "Judgment response is not a JSON object",
            details={"gate_number": rubric.gate_number},
        )
    try:
        payload = JudgmentPayload.model_validate(_normalise(data))
    except ValidationError as e:
        raise JudgmentFailureError(
            "Judgment response failed schema validation",
            details={"gate_number": rubric.gate_number, "errors": e.errors(include_url=False)},
        ) from e

    missing = [key for key in rubric.criterion_keys if key not in payload.score_breakdown]
    if missing:
        raise JudgmentFailureError(
            "Judgment response is missing rubric criteria",
            details={"gate_number": rubric.gate_number, "missing": missing},
        )

    return JudgmentResponse(
        score_breakdown={key: round_half_up(payload.score_breakdown[key]) for key in rubric.criterion_keys},
        overall_score=round_half_up(payload.overall_score),
        passed=payload.passed,
        gate_name=payload.gate_name,
        critical_issues=tuple(payload.critical_issues),
        blockers=tuple(payload.blockers),
        warnings=tuple(payload.warnings),
        required_actions=tuple(payload.required_actions),
        recommendation=payload.recommendation,
        confidence_assessment=payload.confidence_assessment,
        comparisons_with_similar_strategies=tuple(payload.comparisons_with_similar_strategies),
        unmitigated_critical_risks=tuple(payload.unmitigated_critical_risks),
    )


def validate_response(response: JudgmentResponse, rubric: RubricRequest) -> JudgmentResponse:
    """Check a typed response from any collaborator against the rubric."""
    if not isinstance(response, JudgmentResponse):
        raise JudgmentFailureError(
            f"Judgment collaborator returned {type(response).__name__}, expected JudgmentResponse",
            details={"gate_number": rubric.gate_number},
        )
    missing = [key for key in rubric.criterion_keys if key not in response.score_breakdown]
    if missing:
        raise JudgmentFailureError(
            "Judgment response is missing rubric criteria",
            details={"gate_number": rubric.gate_number, "missing": missing},
        )
    scores = dict(response.score_breakdown)
    scores["overall_score"] = response.overall_score
    out_of_range = {key: value for key, value in scores.items() if not 0 <= value <= 100}
    if out_of_range:
        raise JudgmentFailureError(
            "Judgment response has scores outside [0, 100]",
            details={"gate_number": rubric.gate_number, "scores": out_of_range},
        )
    return response


class LLMJudgmentProvider:
    """JudgmentProviderProtocol backed by an LLM provider.

    Renders the rubric prompt, calls the provider and parses the answer
    leniently (code fences, trailing commas) before schema validation.
    """

    def __init__(
        self,
        llm: LLMProviderProtocol,
        model: str = "",
        options: Optional[Dict[str, Any]] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._llm = llm
        self._model = model
        self._options = options if options is not None else {"temperature": 0.2}
        self._logger = get_component_logger("LLMJudgmentProvider", logger)

    async def judge(self, rubric: RubricRequest) -> JudgmentResponse:
        prompt = render_rubric_prompt(rubric)
        try:
            text = await self._llm.generate(self._model, prompt, self._options)
        except Exception as e:
            self._logger.error(
                "judgment_llm_call_failed",
                gate_number=rubric.gate_number,
                error=str(e),
            )
            raise JudgmentFailureError(
                "Judgment collaborator call failed",
                details={"gate_number": rubric.gate_number, "error": str(e)},
            ) from e

        data = JSONRepairKit.parse_object(text or "")
        if data is None:
            self._logger.error(
                "judgment_unparseable",
                gate_number=rubric.gate_number,
                response_length=len(text or ""),
            )
            raise JudgmentFailureError(
                "Judgment response is not valid JSON",
                details={"gate_number": rubric.gate_number},
            )
        return parse_judgment(data, rubric)
