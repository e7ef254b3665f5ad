"""LLM provider base class."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    All providers implement ``generate`` which takes a model name, prompt
    and options dict and returns the generated text asynchronously.
    """

    @abstractmethod
    async def generate(
        self,
        model: str,
        prompt: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Generate text from a prompt.

        Args:
            model: Model identifier (e.g., "gpt-4o-mini")
            prompt: Input prompt text
            options: Provider-specific options (temperature, max_tokens, etc.)

        Raises:
            Exception: If generation fails
        """

    async def health_check(self) -> bool:
        """Check provider availability. Providers override when they can probe."""
        return True
