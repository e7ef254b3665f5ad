"""Unit tests for the five layer evaluators.

Each evaluator starts at 100 and applies fixed deductions; these tests
pin the deductions, the derived fields and the degraded-lookup paths.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from aegis_core.protocols import Actor, Severity
from aegis_core.validation.layers import (
    AuthenticityLayer,
    EvidenceLayer,
    GovernanceLayer,
    IntegrityLayer,
    SecurityLayer,
)
from aegis_core.validation.layers.evidence import source_tier, tier_percentages
from aegis_core.validation.loader import ProjectAdapter


def _snapshot(record):
    return ProjectAdapter().build(record)


def _diagnostic(result, name):
    return next(d for d in result.diagnostics if d.check_name == name)


# =============================================================================
# Authenticity
# =============================================================================

class TestAuthenticityLayer:

    @pytest.mark.asyncio
    async def test_healthy_record_scores_full(self, mock_logger, project_record, owner):
        result = await AuthenticityLayer(logger=mock_logger).evaluate(_snapshot(project_record()), owner)

        assert result.score == 100
        assert result.derived("creator_verified") is True
        assert result.derived("timestamp_valid") is True
        assert result.derived("source_traceable") is True

    @pytest.mark.asyncio
    async def test_missing_creator_deducts_15(self, mock_logger, project_record, owner):
        record = project_record(created_by=None)
        result = await AuthenticityLayer(logger=mock_logger).evaluate(_snapshot(record), owner)

        assert result.score == 85
        assert result.derived("creator_verified") is False

    @pytest.mark.asyncio
    async def test_updated_before_created_deducts_25(self, mock_logger, project_record, owner):
        record = project_record(created_date="2025-03-01T00:00:00Z", updated_date="2025-01-01T00:00:00Z")
        result = await AuthenticityLayer(logger=mock_logger).evaluate(_snapshot(record), owner)

        assert result.score == 75
        assert result.derived("timestamp_valid") is False
        assert _diagnostic(result, "timestamp_coherence").severity == Severity.HIGH

    @pytest.mark.asyncio
    async def test_single_timestamp_is_not_compared(self, mock_logger, project_record, owner):
        record = project_record(updated_date=None)
        result = await AuthenticityLayer(logger=mock_logger).evaluate(_snapshot(record), owner)

        assert result.score == 100
        assert all(d.check_name != "timestamp_coherence" for d in result.diagnostics)

    @pytest.mark.asyncio
    async def test_no_provenance_deducts_20(self, mock_logger, owner):
        record = {"id": "x", "title": "Bare", "created_by": "a@example.com"}
        result = await AuthenticityLayer(logger=mock_logger).evaluate(_snapshot(record), owner)

        assert result.score == 80
        assert result.derived("source_traceable") is False

    @pytest.mark.asyncio
    async def test_analysis_results_count_as_provenance(self, mock_logger, owner):
        record = {"id": "x", "created_by": "a@example.com", "analysis_results": {"tam": 10}}
        result = await AuthenticityLayer(logger=mock_logger).evaluate(_snapshot(record), owner)

        assert result.derived("source_traceable") is True


# =============================================================================
# Evidence
# =============================================================================

class TestSourceTier:

    @pytest.mark.parametrize("raw,expected", [
        (1, "tier_1"),
        ("2", "tier_2"),
        ("tier_3", "tier_3"),
        ("Tier 1", "tier_1"),
        (None, "tier_4"),
        ("unknown", "tier_4"),
        (9, "tier_4"),
    ])
    def test_buckets(self, raw, expected):
        assert source_tier({"tier": raw}) == expected


class TestTierPercentages:

    def test_sum_is_exactly_100(self):
        result = tier_percentages({"tier_1": 1, "tier_2": 1, "tier_3": 1}, 3)

        assert sum(result.values()) == 100
        assert result == {"tier_1": 34, "tier_2": 33, "tier_3": 33, "tier_4": 0}

    def test_largest_remainder_wins(self):
        # 2/7 = 28.57, 5/7 = 71.43
        result = tier_percentages({"tier_1": 2, "tier_4": 5}, 7)

        assert result == {"tier_1": 29, "tier_2": 0, "tier_3": 0, "tier_4": 71}

    def test_no_sources_is_all_zero(self):
        assert tier_percentages({}, 0) == {"tier_1": 0, "tier_2": 0, "tier_3": 0, "tier_4": 0}


class TestEvidenceLayer:

    @pytest.mark.asyncio
    async def test_tier_one_source_scores_full(self, mock_logger, project_record, owner):
        result = await EvidenceLayer(logger=mock_logger).evaluate(_snapshot(project_record()), owner)

        assert result.score == 100
        assert result.derived("sources_validated") == 2
        assert result.derived("data_tier_breakdown") == {"tier_1": 50, "tier_2": 50, "tier_3": 0, "tier_4": 0}

    @pytest.mark.asyncio
    async def test_no_sources_deducts_30(self, mock_logger, owner):
        result = await EvidenceLayer(logger=mock_logger).evaluate(_snapshot({"id": "x"}), owner)

        assert result.score == 70
        assert result.derived("sources_validated") == 0
        assert _diagnostic(result, "sources_declared").passed is False

    @pytest.mark.asyncio
    async def test_sources_without_tier_one_deduct_20(self, mock_logger, owner):
        record = {"id": "x", "data_sources": [{"tier": 2}, {"tier": 3}, {"name": "blog"}]}
        result = await EvidenceLayer(logger=mock_logger).evaluate(_snapshot(record), owner)

        assert result.score == 80
        assert result.derived("data_tier_breakdown")["tier_4"] == 33

    @pytest.mark.asyncio
    async def test_falls_back_to_deliverables(self, mock_logger, owner):
        record = {"id": "x", "data_sources": [], "deliverables": [{"code": "D1", "tier": 1}]}
        result = await EvidenceLayer(logger=mock_logger).evaluate(_snapshot(record), owner)

        assert result.score == 100
        assert result.derived("sources_validated") == 1

    @pytest.mark.asyncio
    async def test_string_source_counts_once(self, mock_logger, owner):
        record = {"id": "x", "data_sources": "Central bank"}
        result = await EvidenceLayer(logger=mock_logger).evaluate(_snapshot(record), owner)

        assert result.score == 80
        assert result.derived("sources_validated") == 1
        assert result.derived("data_tier_breakdown") == {"tier_1": 0, "tier_2": 0, "tier_3": 0, "tier_4": 100}


# =============================================================================
# Governance
# =============================================================================

class TestGovernanceLayer:

    @pytest.mark.asyncio
    async def test_all_present_scores_full(self, mock_logger, store, project_record, owner):
        from aegis_core.adapters import StoreAssessmentLookup

        layer = GovernanceLayer(StoreAssessmentLookup(store), logger=mock_logger)
        result = await layer.evaluate(_snapshot(project_record()), owner)

        assert result.derived("methodology_adherence") == 100
        assert result.derived("cross_validation") is True
        assert result.derived("contextual_assessment") is True
        assert result.score == 100

    @pytest.mark.asyncio
    async def test_no_collaborator_counts_as_not_found(self, mock_logger, project_record, owner):
        result = await GovernanceLayer(logger=mock_logger).evaluate(_snapshot(project_record()), owner)

        assert result.derived("methodology_adherence") == 70
        assert result.score == 49
        assert result.degraded_checks == []

    @pytest.mark.asyncio
    async def test_blend_rounds_half_up(self, mock_logger, project_record, owner):
        assessments = AsyncMock()
        assessments.list_by_target = AsyncMock(
            side_effect=lambda category, target_id: [{"id": "cv"}] if category == "cross_validation" else []
        )
        layer = GovernanceLayer(assessments, logger=mock_logger)

        result = await layer.evaluate(_snapshot(project_record()), owner)

        # 0.7 * 85 + 15 = 74.5
        assert result.derived("methodology_adherence") == 85
        assert result.score == 75

    @pytest.mark.asyncio
    async def test_everything_missing(self, mock_logger, owner):
        result = await GovernanceLayer(logger=mock_logger).evaluate(_snapshot({"id": "x"}), owner)

        assert result.derived("methodology_adherence") == 40
        assert result.score == 28

    @pytest.mark.asyncio
    async def test_zero_confidence_counts_as_present(self, mock_logger, project_record, owner):
        record = project_record(crv_score=0)
        result = await GovernanceLayer(logger=mock_logger).evaluate(_snapshot(record), owner)

        assert _diagnostic(result, "confidence_score_present").passed is True

    @pytest.mark.asyncio
    async def test_failing_lookup_is_degraded_not_raised(self, mock_logger, project_record, owner):
        assessments = AsyncMock()
        assessments.list_by_target = AsyncMock(side_effect=ConnectionError("assessment store down"))
        layer = GovernanceLayer(assessments, logger=mock_logger)

        result = await layer.evaluate(_snapshot(project_record()), owner)

        assert result.derived("cross_validation") is False
        assert result.derived("methodology_adherence") == 70
        assert result.degraded_checks == ["cross_validation_linked", "contextual_assessment_linked"]
        assert _diagnostic(result, "cross_validation_linked").detail == "assessment store down"
        mock_logger.warning.assert_any_call(
            "layer_lookup_degraded",
            layer="governance",
            lookup="cross_validation",
            error="assessment store down",
        )

    @pytest.mark.asyncio
    async def test_slow_lookup_times_out_as_degraded(self, mock_logger, project_record, owner):
        async def slow(category, target_id):
            await asyncio.sleep(1)
            return [{"id": "late"}]

        assessments = AsyncMock()
        assessments.list_by_target = slow
        layer = GovernanceLayer(assessments, lookup_timeout=0.01, logger=mock_logger)

        result = await layer.evaluate(_snapshot(project_record()), owner)

        assert result.derived("cross_validation") is False
        assert len(result.degraded_checks) == 2


# =============================================================================
# Integrity
# =============================================================================

class TestIntegrityLayer:

    @pytest.mark.asyncio
    async def test_healthy_record_scores_full(self, mock_logger, project_record, owner):
        result = await IntegrityLayer(logger=mock_logger).evaluate(_snapshot(project_record()), owner)

        assert result.score == 100
        assert result.derived("consistency_score") == 100
        assert result.derived("temporal_coherence") is True
        assert result.derived("logical_coherence") is True

    @pytest.mark.asyncio
    async def test_milestones_out_of_order_deduct_25(self, mock_logger, project_record, owner):
        record = project_record(milestones=[
            {"name": "Pilot", "target_date": "2025-05-01"},
            {"name": "No date"},
            {"name": "Discovery", "target_date": "2025-03-01"},
        ])
        result = await IntegrityLayer(logger=mock_logger).evaluate(_snapshot(record), owner)

        assert result.score == 75
        assert result.derived("temporal_coherence") is False
        assert _diagnostic(result, "milestone_order").severity == Severity.HIGH

    @pytest.mark.asyncio
    async def test_missing_narrative_and_fields(self, mock_logger, owner):
        result = await IntegrityLayer(logger=mock_logger).evaluate(_snapshot({"id": "x"}), owner)

        # -20 narrative, -10 title, -10 status
        assert result.score == 60
        assert result.derived("logical_coherence") is False
        assert _diagnostic(result, "critical_field:title").passed is False

    @pytest.mark.asyncio
    async def test_layer_score_floored_but_consistency_unclamped(self, mock_logger, owner):
        from aegis_core.thresholds import LayerDeductions, ValidationPolicy

        policy = ValidationPolicy(deductions=LayerDeductions(missing_narrative=90, missing_critical_field=30))
        result = await IntegrityLayer(policy=policy, logger=mock_logger).evaluate(_snapshot({"id": "x"}), owner)

        assert result.score == 0
        assert result.derived("consistency_score") == -50


# =============================================================================
# Security
# =============================================================================

class TestSecurityLayer:

    @pytest.mark.asyncio
    async def test_owner_is_not_checked(self, mock_logger, project_record, owner):
        permissions = AsyncMock()
        permissions.check = AsyncMock(return_value=False)

        result = await SecurityLayer(permissions, logger=mock_logger).evaluate(_snapshot(project_record()), owner)

        assert result.score == 100
        permissions.check.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_admin_is_not_checked(self, mock_logger, project_record):
        permissions = AsyncMock()
        permissions.check = AsyncMock(return_value=False)
        admin = Actor(email="root@example.com", role="admin")

        result = await SecurityLayer(permissions, logger=mock_logger).evaluate(_snapshot(project_record()), admin)

        assert result.derived("rbac_compliance") is True
        permissions.check.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_denied_access_deducts_40(self, mock_logger, project_record):
        permissions = AsyncMock()
        permissions.check = AsyncMock(return_value=False)
        other = Actor(email="analyst@example.com")

        result = await SecurityLayer(permissions, logger=mock_logger).evaluate(_snapshot(project_record()), other)

        assert result.score == 60
        assert result.derived("rbac_compliance") is False
        permissions.check.assert_awaited_once_with(other, "project", "read", "p-1")

    @pytest.mark.asyncio
    async def test_failing_check_defaults_to_allow(self, mock_logger, project_record):
        permissions = AsyncMock()
        permissions.check = AsyncMock(side_effect=RuntimeError("permission service down"))
        other = Actor(email="analyst@example.com")

        result = await SecurityLayer(permissions, logger=mock_logger).evaluate(_snapshot(project_record()), other)

        assert result.score == 100
        assert result.derived("rbac_compliance") is True
        assert result.derived("rbac_degraded") is True
        assert result.degraded_checks == ["rbac_compliance"]

    @pytest.mark.asyncio
    async def test_slow_check_times_out_to_allow(self, mock_logger, project_record):
        async def slow(actor, resource, action, entity_id=None):
            await asyncio.sleep(1)
            return False

        permissions = AsyncMock()
        permissions.check = slow
        layer = SecurityLayer(permissions, permission_timeout=0.01, logger=mock_logger)

        result = await layer.evaluate(_snapshot(project_record()), Actor(email="analyst@example.com"))

        assert result.derived("rbac_compliance") is True
        assert result.derived("rbac_degraded") is True

    @pytest.mark.asyncio
    async def test_missing_stamps_deduct(self, mock_logger, owner):
        result = await SecurityLayer(logger=mock_logger).evaluate(_snapshot({"id": "x"}), owner)

        assert result.score == 50
        assert result.derived("data_provenance") is False
        assert result.derived("audit_trail") is False
