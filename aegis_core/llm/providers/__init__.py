"""LLM providers.

Use create_llm_provider() from aegis_core.llm.factory to get providers.
"""

from aegis_core.llm.providers.base import LLMProvider
from aegis_core.llm.providers.mock import MockProvider
from aegis_core.llm.providers.openai_http_provider import OpenAIHTTPProvider

__all__ = [
    "LLMProvider",
    "MockProvider",
    "OpenAIHTTPProvider",
]
