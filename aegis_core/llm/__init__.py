"""LLM transport used by the judgment collaborator."""

from aegis_core.llm.factory import create_llm_provider, get_available_adapters
from aegis_core.llm.providers import LLMProvider, MockProvider, OpenAIHTTPProvider

__all__ = [
    "LLMProvider",
    "MockProvider",
    "OpenAIHTTPProvider",
    "create_llm_provider",
    "get_available_adapters",
]
