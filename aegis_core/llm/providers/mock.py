"""Mock LLM provider for tests and local runs without a model server."""

import json
import re
from typing import Any, Dict, List, Optional

from aegis_core.llm.providers.base import LLMProvider

_GATE_HEADER = re.compile(r"Gate Keeper (\d+) - (.+?)\.\s*$", re.MULTILINE)
_CRITERION_KEY = re.compile(r"score_breakdown\.([a-z_]+)")


class MockProvider(LLMProvider):
    """Deterministic provider.

    For rubric prompts it answers with every criterion scored at
    ``score``; anything else gets a fixed text response.
    """

    def __init__(self, score: int = 80):
        self.score = score
        self.call_count = 0
        self.call_history: List[Dict[str, Any]] = []

    async def generate(
        self,
        model: str,
        prompt: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> str:
        self.call_count += 1
        self.call_history.append({
            "method": "generate",
            "model": model,
            "prompt": prompt,
            "options": options,
        })

        keys = _CRITERION_KEY.findall(prompt)
        if keys:
            return self._mock_rubric_response(prompt, keys)

        return "Mock response"

    def _mock_rubric_response(self, prompt: str, keys: List[str]) -> str:
        header = _GATE_HEADER.search(prompt)
        answer: Dict[str, Any] = {
            "passed": True,
            "gate_name": header.group(2) if header else None,
            "score_breakdown": dict.fromkeys(keys, self.score),
            "overall_score": self.score,
            "critical_issues": [],
            "blockers": [],
            "warnings": [],
            "required_actions": [],
            "recommendation": "Proceed",
        }
        if '"confidence_assessment"' in prompt:
            answer["confidence_assessment"] = {
                "overall_crv": self.score,
                "data_quality": self.score,
                "reasoning": "Mock assessment",
            }
        if '"comparisons_with_similar_strategies"' in prompt:
            answer["comparisons_with_similar_strategies"] = []
        if '"unmitigated_critical_risks"' in prompt:
            answer["unmitigated_critical_risks"] = []
        return "```json\n" + json.dumps(answer, indent=2) + "\n```"

    async def health_check(self) -> bool:
        """Mock provider is always healthy."""
        return True
