"""Shared fixtures for the aegis-core test suite.

Key Principles:
- Every collaborator is injected: fixed clock, in-memory store, stub judgment
- Each test gets a fresh store
- Records are plain dicts shaped like the stored entities
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock

import pytest

from aegis_core.adapters import (
    EntityStoreResultSink,
    InMemoryEntityStore,
    StoreAssessmentLookup,
)
from aegis_core.protocols import Actor, JudgmentResponse
from aegis_core.validation import EntitySnapshotLoader, ValidationService
from aegis_core.validation.layers import (
    AuthenticityLayer,
    EvidenceLayer,
    GovernanceLayer,
    IntegrityLayer,
    SecurityLayer,
)

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
OWNER_EMAIL = "owner@example.com"


class FixedClock:
    """ClockProtocol returning the same instant on every call."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def utcnow(self) -> datetime:
        return self.now


# =============================================================================
# RECORDS
# =============================================================================

def healthy_project(**overrides: Any) -> Dict[str, Any]:
    """Project record that clears every layer check."""
    record = {
        "id": "p-1",
        "title": "Market entry Brazil",
        "status": "active",
        "mode": "express",
        "project_brief": "Assess entry into the Brazilian B2B payments market.",
        "created_by": OWNER_EMAIL,
        "updated_by": OWNER_EMAIL,
        "created_date": "2025-01-10T09:00:00Z",
        "updated_date": "2025-02-10T09:00:00Z",
        "data_sources": [
            {"name": "Central bank statistics", "tier": 1},
            {"name": "Industry association report", "tier": 2},
        ],
        "milestones": [
            {"name": "Discovery", "target_date": "2025-03-01"},
            {"name": "Pilot", "target_date": "2025-05-01"},
        ],
        "crv_score": 82,
        "gate_0_status": "passed",
    }
    record.update(overrides)
    return record


def assessment_records(target_id: str = "p-1") -> Dict[str, Any]:
    return {
        "cross_validations": [{"id": f"cv-{target_id}", "target_entity_id": target_id}],
        "contextual_assessments": [{"id": f"ca-{target_id}", "target_entity_id": target_id}],
    }


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def owner():
    return Actor(email=OWNER_EMAIL, role="user")


@pytest.fixture
def store():
    """Store seeded with one healthy project and its assessments."""
    return InMemoryEntityStore(seed={"projects": [healthy_project()], **assessment_records()})


@pytest.fixture
def build_layers(mock_logger):
    """Factory for the five evaluators with optional collaborators."""

    def _build(store: Optional[Any] = None, permissions: Optional[Any] = None, **kwargs: Any):
        assessments = StoreAssessmentLookup(store) if store is not None else None
        return [
            AuthenticityLayer(logger=mock_logger),
            EvidenceLayer(logger=mock_logger),
            GovernanceLayer(assessments, logger=mock_logger, **kwargs),
            IntegrityLayer(logger=mock_logger),
            SecurityLayer(permissions, logger=mock_logger),
        ]

    return _build


@pytest.fixture
def build_service(store, clock, build_layers, mock_logger):
    """Factory for a ValidationService over the shared store."""

    def _build(layers=None, id_factory=None, permissions=None):
        kwargs = {}
        if id_factory is not None:
            kwargs["id_factory"] = id_factory
        return ValidationService(
            loader=EntitySnapshotLoader(store, logger=mock_logger),
            layers=layers if layers is not None else build_layers(store, permissions=permissions),
            sink=EntityStoreResultSink(store, logger=mock_logger),
            clock=clock,
            logger=mock_logger,
            **kwargs,
        )

    return _build


# =============================================================================
# JUDGMENT
# =============================================================================

def judgment_response(scores: Dict[str, int], overall: int, **overrides: Any) -> JudgmentResponse:
    data: Dict[str, Any] = {
        "score_breakdown": scores,
        "overall_score": overall,
        "passed": True,
        "recommendation": "Proceed",
    }
    data.update(overrides)
    return JudgmentResponse(**data)


@pytest.fixture
def stub_judgment():
    """Judgment collaborator whose answer each test sets."""
    judgment = AsyncMock()
    judgment.judge = AsyncMock()
    return judgment


@pytest.fixture
def project_record():
    """Factory for healthy project records with overrides."""
    return healthy_project


@pytest.fixture
def make_judgment():
    """Factory for JudgmentResponse values."""
    return judgment_response
