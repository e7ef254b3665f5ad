"""Stage gate evaluator and its judgment collaborator."""

from aegis_core.stage_gates.evaluator import StageGateEvaluator, coerce_deliverable
from aegis_core.stage_gates.judgment import (
    JudgmentPayload,
    LLMJudgmentProvider,
    parse_judgment,
    validate_response,
)
from aegis_core.stage_gates.prompts import render_rubric_prompt

__all__ = [
    "JudgmentPayload",
    "LLMJudgmentProvider",
    "StageGateEvaluator",
    "coerce_deliverable",
    "parse_judgment",
    "render_rubric_prompt",
    "validate_response",
]
