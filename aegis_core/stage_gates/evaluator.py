"""Stage gate evaluator (Gate 0 / 1 / 2).

Each gate requires one upstream artifact. Without it the gate fails with
fixed feedback and the judgment collaborator is never called. With it,
a rubric is submitted for judgment and the gate's own numeric rule
decides the outcome; the collaborator's pass flag is informational only.
The latest result per gate number overwrites the previous one on the
project record.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from aegis_core.errors import AegisError, InvalidRequestError, JudgmentFailureError, NotFoundError
from aegis_core.logging import get_component_logger
from aegis_core.observability import (
    record_degraded_lookup,
    record_judgment_latency,
    record_stage_gate,
)
from aegis_core.protocols import (
    ClockProtocol,
    Deliverable,
    EntityStoreProtocol,
    JudgmentProviderProtocol,
    JudgmentResponse,
    KnowledgeLookupProtocol,
    LoggerProtocol,
    ResultSinkProtocol,
    RubricRequest,
    StageGateResult,
)
from aegis_core.stage_gates.judgment import validate_response
from aegis_core.thresholds import (
    DEFAULT_STAGE_GATE_POLICY,
    StageGateDefinition,
    StageGatePolicy,
)

PROJECTS_COLLECTION = "projects"
MISSING_ARTIFACT_REASONING = "Deliverable ausente"


def coerce_deliverable(item: Any) -> Deliverable:
    """Accept a Deliverable or a mapping using current or legacy keys."""
    if isinstance(item, Deliverable):
        return item
    if not isinstance(item, Mapping):
        raise InvalidRequestError("deliverables must be objects")
    code = item.get("code") or item.get("deliverable_code")
    if not code:
        raise InvalidRequestError("every deliverable needs a code")
    confidence = item.get("confidence_score", item.get("crv_score"))
    try:
        confidence = float(confidence) if confidence is not None else None
    except (TypeError, ValueError):
        raise InvalidRequestError(f"deliverable {code} has a non-numeric confidence_score")
    return Deliverable(code=str(code), content=item.get("content"), confidence_score=confidence)


def find_artifact(deliverables: Iterable[Deliverable], code: str) -> Optional[Deliverable]:
    for deliverable in deliverables:
        if deliverable.code == code:
            return deliverable
    return None


class StageGateEvaluator:
    """Evaluates one stage gate for one project.

    Usage:
        evaluator = StageGateEvaluator(store, judgment, sink, clock)
        result = await evaluator.evaluate(1, "p-1", [{"code": "D5", ...}])
    """

    def __init__(
        self,
        store: EntityStoreProtocol,
        judgment: JudgmentProviderProtocol,
        sink: ResultSinkProtocol,
        clock: ClockProtocol,
        knowledge: Optional[KnowledgeLookupProtocol] = None,
        policy: StageGatePolicy = DEFAULT_STAGE_GATE_POLICY,
        judgment_timeout: float = 180.0,
        lookup_timeout: float = 5.0,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._store = store
        self._judgment = judgment
        self._sink = sink
        self._clock = clock
        self._knowledge = knowledge
        self._policy = policy
        self._judgment_timeout = judgment_timeout
        self._lookup_timeout = lookup_timeout
        self._logger = get_component_logger("StageGateEvaluator", logger)

    async def evaluate(
        self,
        gate_number: int,
        project_id: str,
        deliverables: Sequence[Any] = (),
    ) -> StageGateResult:
        """Evaluate a gate and persist the result on the project.

        Raises:
            InvalidRequestError: unknown gate number or malformed deliverables
            NotFoundError: project does not exist
            JudgmentFailureError: judgment errored, timed out or was malformed
                (nothing is persisted)
        """
        if isinstance(gate_number, bool) or gate_number not in self._policy.gates:
            raise InvalidRequestError(
                "Invalid gate number",
                details={"gate_number": gate_number, "allowed": list(self._policy.gate_numbers)},
            )
        if not project_id:
            raise InvalidRequestError("project_id is required")

        items = [coerce_deliverable(item) for item in deliverables or ()]
        project = await self._store.get(PROJECTS_COLLECTION, project_id)
        if project is None:
            raise NotFoundError("Project not found", details={"project_id": project_id})

        definition = self._policy.definition(gate_number)
        log = self._logger.bind(gate_number=gate_number, project_id=project_id)
        log.info("stage_gate_started", gate_name=definition.gate_name)

        artifact = find_artifact(items, definition.artifact_code)
        if artifact is None or not artifact.has_content:
            log.info("stage_gate_artifact_missing", artifact=definition.artifact_code)
            result = self.missing_artifact_result(definition)
            outcome = "missing_artifact"
        else:
            comparisons = await self._comparisons(definition, project, artifact)
            rubric = self.build_rubric(definition, project, artifact, comparisons)
            response = await self._judge(rubric)
            result = self.apply_rule(definition, artifact, response)
            outcome = result.status

        result.evaluated_at = self._clock.utcnow()
        await self._sink.upsert_stage_gate_result(project_id, result)
        record_stage_gate(gate_number, outcome)

        log.info(
            "stage_gate_completed",
            passed=result.passed,
            overall_score=result.overall_score,
            outcome=outcome,
        )
        return result

    # =========================================================================
    # RESULT BUILDERS
    # =========================================================================

    @staticmethod
    def missing_artifact_result(definition: StageGateDefinition) -> StageGateResult:
        feedback = definition.missing_artifact
        confidence = None
        if feedback.include_confidence_assessment:
            confidence = {"overall_crv": 0, "data_quality": 0, "reasoning": MISSING_ARTIFACT_REASONING}
        return StageGateResult(
            gate_number=definition.gate_number,
            passed=False,
            gate_name=definition.gate_name,
            critical_issues=[feedback.critical_issue],
            blockers=[feedback.blocker],
            required_actions=[feedback.required_action],
            confidence_assessment=confidence,
        )

    def build_rubric(
        self,
        definition: StageGateDefinition,
        project: Mapping[str, Any],
        artifact: Deliverable,
        comparisons: Sequence[Any] = (),
    ) -> RubricRequest:
        extra = []
        if definition.gate_number == 0:
            extra.append("confidence_assessment")
        if definition.uses_knowledge_lookup:
            extra.append("comparisons_with_similar_strategies")
        if definition.require_no_unmitigated_risks:
            extra.append("unmitigated_critical_risks")
        return RubricRequest(
            gate_number=definition.gate_number,
            gate_name=definition.gate_name,
            mission=definition.mission,
            artifact_code=definition.artifact_code,
            artifact_label=definition.artifact_label,
            criteria=definition.criteria,
            pass_rule=definition.pass_rule,
            project={key: project.get(key) for key in ("id", "title", "mode", "project_brief")},
            artifact_content=artifact.content,
            artifact_confidence=artifact.confidence_score,
            comparisons=tuple(comparisons),
            extra_output_fields=tuple(extra),
        )

    @staticmethod
    def unmet_criteria(
        definition: StageGateDefinition,
        artifact: Deliverable,
        response: JudgmentResponse,
    ) -> List[str]:
        """The gate's own acceptance rule; empty means passed."""
        unmet = []
        if response.overall_score < definition.min_overall_score:
            unmet.append(
                f"Overall score {response.overall_score}% below minimum {definition.min_overall_score}%"
            )
        if definition.min_confidence is not None:
            confidence = artifact.confidence_score
            if confidence is None:
                unmet.append(
                    f"{definition.artifact_code} CRV not declared (minimum {definition.min_confidence}%)"
                )
            elif confidence < definition.min_confidence:
                unmet.append(
                    f"{definition.artifact_code} CRV {confidence:g}% below minimum {definition.min_confidence}%"
                )
        if definition.require_no_blockers and response.blockers:
            unmet.append(f"{len(response.blockers)} critical blocker(s) present (maximum 0)")
        if definition.require_no_unmitigated_risks and response.unmitigated_critical_risks:
            unmet.append(
                f"{len(response.unmitigated_critical_risks)} critical risk(s) without mitigation (maximum 0): "
                + "; ".join(response.unmitigated_critical_risks)
            )
        return unmet

    def apply_rule(
        self,
        definition: StageGateDefinition,
        artifact: Deliverable,
        response: JudgmentResponse,
    ) -> StageGateResult:
        unmet = self.unmet_criteria(definition, artifact, response)
        return StageGateResult(
            gate_number=definition.gate_number,
            passed=not unmet,
            gate_name=definition.gate_name,
            score_breakdown=dict(response.score_breakdown),
            critical_issues=list(response.critical_issues) + unmet,
            blockers=list(response.blockers),
            warnings=list(response.warnings),
            required_actions=list(response.required_actions),
            recommendation=response.recommendation,
            overall_score=response.overall_score,
            judgment_passed=response.passed,
            confidence_assessment=dict(response.confidence_assessment) if response.confidence_assessment else None,
            comparisons_with_similar_strategies=list(response.comparisons_with_similar_strategies),
        )

    # =========================================================================
    # COLLABORATORS
    # =========================================================================

    async def _comparisons(
        self,
        definition: StageGateDefinition,
        project: Mapping[str, Any],
        artifact: Deliverable,
    ) -> List[Any]:
        """Comparison set for the rubric; any failure yields an empty set."""
        if not definition.uses_knowledge_lookup or self._knowledge is None:
            return []

        industry = None
        if isinstance(artifact.content, Mapping):
            detailed = artifact.content.get("detailed_analysis")
            if isinstance(detailed, Mapping):
                industry = detailed.get("industry")
        industry = industry or project.get("title") or ""

        limit = self._policy.comparison_limit
        try:
            found = await asyncio.wait_for(
                self._knowledge.find_similar(industry, limit=limit),
                timeout=self._lookup_timeout,
            )
        except Exception as e:
            self._logger.warning(
                "stage_gate_knowledge_lookup_failed",
                gate_number=definition.gate_number,
                industry=industry,
                error=str(e) or type(e).__name__,
            )
            record_degraded_lookup(f"stage_gate_{definition.gate_number}", "knowledge")
            return []
        return list(found or [])[:limit]

    async def _judge(self, rubric: RubricRequest) -> JudgmentResponse:
        started = time.perf_counter()
        try:
            response = await asyncio.wait_for(self._judgment.judge(rubric), timeout=self._judgment_timeout)
            return validate_response(response, rubric)
        except asyncio.TimeoutError as e:
            error = JudgmentFailureError(
                "Judgment collaborator timed out",
                details={"gate_number": rubric.gate_number, "timeout_seconds": self._judgment_timeout},
            )
            self._judgment_failed(rubric, error)
            raise error from e
        except AegisError as e:
            self._judgment_failed(rubric, e)
            raise
        except Exception as e:
            error = JudgmentFailureError(
                "Judgment collaborator failed",
                details={"gate_number": rubric.gate_number, "error": str(e)},
            )
            self._judgment_failed(rubric, error)
            raise error from e
        finally:
            record_judgment_latency(rubric.gate_number, time.perf_counter() - started)

    def _judgment_failed(self, rubric: RubricRequest, error: AegisError) -> None:
        self._logger.error(
            "stage_gate_judgment_failed",
            gate_number=rubric.gate_number,
            error=error.message,
            details=error.details,
        )
        record_stage_gate(rubric.gate_number, "judgment_failure")
