"""Rubric prompt rendering for the LLM-backed judgment collaborator."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from aegis_core.protocols import RubricRequest

NO_COMPARISONS = "No comparative data available"

EXTRA_OUTPUT_SCHEMAS: Dict[str, Any] = {
    "confidence_assessment": {
        "overall_crv": "number",
        "data_quality": "number",
        "reasoning": "string",
    },
    "comparisons_with_similar_strategies": ["string"],
    "unmitigated_critical_risks": ["string"],
}


def _as_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def output_schema(rubric: RubricRequest) -> Dict[str, Any]:
    """JSON shape the collaborator must answer with."""
    schema: Dict[str, Any] = {
        "passed": "boolean",
        "gate_name": rubric.gate_name,
        "score_breakdown": {key: "number (0-100)" for key in rubric.criterion_keys},
        "overall_score": "number (0-100)",
        "critical_issues": ["string"],
        "blockers": ["string"],
        "warnings": ["string"],
        "required_actions": ["string"],
        "recommendation": "string",
    }
    for name in rubric.extra_output_fields:
        schema[name] = EXTRA_OUTPUT_SCHEMAS[name]
    return schema


def render_rubric_prompt(rubric: RubricRequest) -> str:
    """Render a RubricRequest as a single prompt string."""
    project = rubric.project
    lines: List[str] = [
        f"You are Gate Keeper {rubric.gate_number} - {rubric.gate_name}.",
        "",
        f"**MISSION:** {rubric.mission}",
        "",
        "**PROJECT:**",
        f"- Title: {project.get('title') or 'Not provided'}",
        f"- Mode: {project.get('mode') or 'Not provided'}",
        f"- Brief: {project.get('project_brief') or 'Not provided'}",
        "",
        f"**{rubric.artifact_code} ({rubric.artifact_label}):**",
        _as_json(rubric.artifact_content),
        "",
        f"**CRV Score {rubric.artifact_code}:** "
        + (f"{rubric.artifact_confidence}%" if rubric.artifact_confidence is not None else "not declared"),
        "",
    ]

    if "comparisons_with_similar_strategies" in rubric.extra_output_fields:
        lines.append("**MARKET CONTEXT (knowledge graph):**")
        lines.append(_as_json(list(rubric.comparisons)) if rubric.comparisons else NO_COMPARISONS)
        lines.append("")

    lines.append(f"**APPROVAL CRITERIA (Gate {rubric.gate_number}):**")
    lines.append("")
    for index, criterion in enumerate(rubric.criteria, start=1):
        lines.append(f"{index}. **{criterion.label}** ({criterion.weight}%) -> score_breakdown.{criterion.key}")
        lines.extend(f"   - {question}" for question in criterion.questions)
        lines.append("")

    lines.extend([
        "**DECISION:**",
        f"- PASS: {rubric.pass_rule}",
        "- FAIL: otherwise",
        "",
        "**OUTPUT (JSON only, no prose):**",
        _as_json(output_schema(rubric)),
    ])
    return "\n".join(lines)
