"""Factory for creating LLM providers.

Config via settings (``AEGIS_*`` environment variables):
    AEGIS_LLM_ADAPTER: Provider adapter (openai_http, mock)
    AEGIS_LLM_BASE_URL: API endpoint (e.g., http://localhost:8080/v1)
    AEGIS_LLM_MODEL: Model identifier
    AEGIS_LLM_API_KEY: API key (optional for local servers)
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, TYPE_CHECKING

from aegis_core.llm.providers import MockProvider, OpenAIHTTPProvider
from aegis_core.logging import get_current_logger

if TYPE_CHECKING:
    from aegis_core.protocols import LLMProviderProtocol, LoggerProtocol
    from aegis_core.settings import Settings

_REGISTRY: Dict[str, Callable[..., "LLMProviderProtocol"]] = {
    "mock": lambda **kw: MockProvider(),
    "openai_http": lambda **kw: OpenAIHTTPProvider(**kw),
}


def create_llm_provider(
    settings: "Settings",
    logger: Optional["LoggerProtocol"] = None,
) -> "LLMProviderProtocol":
    """Create an LLM provider based on configuration.

    Raises:
        ValueError: If the configured adapter is unknown
    """
    logger = logger or get_current_logger()
    adapter = settings.llm_adapter

    if adapter not in _REGISTRY:
        raise ValueError(
            f"LLM adapter '{adapter}' not available. "
            f"Known adapters: {get_available_adapters()}"
        )

    logger.info(
        "llm_factory_creating",
        adapter=adapter,
        model=settings.llm_model,
        api_base=settings.llm_base_url,
    )

    return _REGISTRY[adapter](
        model=settings.llm_model,
        api_base=settings.llm_base_url,
        api_key=settings.llm_api_key,
        timeout=settings.llm_timeout,
        max_retries=settings.llm_max_retries,
        logger=logger,
    )


def get_available_adapters() -> List[str]:
    return list(_REGISTRY.keys())
