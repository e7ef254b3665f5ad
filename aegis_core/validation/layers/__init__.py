"""The five independent layer evaluators."""

from aegis_core.validation.layers.authenticity import AuthenticityLayer
from aegis_core.validation.layers.base import LayerEvaluator
from aegis_core.validation.layers.evidence import EvidenceLayer, tier_percentages
from aegis_core.validation.layers.governance import GovernanceLayer
from aegis_core.validation.layers.integrity import IntegrityLayer
from aegis_core.validation.layers.security import SecurityLayer

__all__ = [
    "LayerEvaluator",
    "AuthenticityLayer",
    "EvidenceLayer",
    "GovernanceLayer",
    "IntegrityLayer",
    "SecurityLayer",
    "tier_percentages",
]
