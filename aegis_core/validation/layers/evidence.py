"""Evidence layer: declared sources and their tier distribution."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Sequence

from aegis_core.protocols import Actor, EntitySnapshot, LayerResult, Severity
from aegis_core.thresholds import LAYER_EVIDENCE
from aegis_core.validation.layers.base import BASELINE_SCORE, LayerEvaluator, check

TIERS = ("tier_1", "tier_2", "tier_3", "tier_4")
LOWEST_TIER = TIERS[-1]


def source_tier(source: Mapping[str, Any]) -> str:
    """Tier bucket of a source; untiered or unknown tiers count as the lowest."""
    tier = source.get("tier")
    if isinstance(tier, str):
        tier = tier.strip().lower().replace("tier_", "").replace("tier", "").strip()
    try:
        bucket = f"tier_{int(tier)}"
    except (TypeError, ValueError):
        return LOWEST_TIER
    return bucket if bucket in TIERS else LOWEST_TIER


def tier_percentages(counts: Mapping[str, int], total: int) -> Dict[str, int]:
    """Integer percentages that sum to exactly 100 (largest remainder)."""
    if total <= 0:
        return {tier: 0 for tier in TIERS}

    exact = {tier: counts.get(tier, 0) * 100 / total for tier in TIERS}
    floors = {tier: int(value) for tier, value in exact.items()}
    remaining = 100 - sum(floors.values())
    # Ties resolve in tier order so the result is deterministic
    by_remainder = sorted(TIERS, key=lambda t: (-(exact[t] - floors[t]), TIERS.index(t)))
    for tier in by_remainder[:remaining]:
        floors[tier] += 1
    return floors


class EvidenceLayer(LayerEvaluator):
    name = LAYER_EVIDENCE

    @staticmethod
    def sources_of(snapshot: EntitySnapshot) -> Sequence[Mapping[str, Any]]:
        """Declared data sources, or attached deliverables when there are none."""
        if snapshot.data_sources:
            return snapshot.data_sources
        if snapshot.deliverables:
            return snapshot.deliverables
        return ()

    async def evaluate(self, snapshot: EntitySnapshot, actor: Actor) -> LayerResult:
        score = BASELINE_SCORE
        sources = self.sources_of(snapshot)
        total = len(sources)

        counts = {tier: 0 for tier in TIERS}
        for source in sources:
            counts[source_tier(source)] += 1

        diagnostics = [check(
            "sources_declared",
            total > 0,
            failed_severity=Severity.HIGH,
            detail=f"{total} sources",
        )]
        if total == 0:
            score -= self._deductions.no_sources
        else:
            has_tier_one = counts["tier_1"] > 0
            diagnostics.append(check("tier_1_source", has_tier_one))
            if not has_tier_one:
                score -= self._deductions.no_tier_one_source

        return self.result(
            score,
            diagnostics,
            sources_validated=total,
            data_tier_breakdown=tier_percentages(counts, total),
        )
