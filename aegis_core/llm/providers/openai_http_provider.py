"""OpenAI-compatible HTTP provider.

Direct HTTP adapter for OpenAI-compatible chat completion endpoints
(OpenAI, vLLM, llama-server, any compatible gateway) using httpx.
"""

from typing import Any, Dict, Optional

import httpx

from aegis_core.llm.providers.base import LLMProvider
from aegis_core.logging import get_current_logger
from aegis_core.protocols import LoggerProtocol


class OpenAIHTTPProvider(LLMProvider):
    """LLM provider using direct OpenAI-compatible HTTP calls.

    Retries transport errors and HTTP error statuses up to ``max_retries``
    times, then re-raises the last error.
    """

    def __init__(
        self,
        model: str,
        api_base: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 120.0,
        max_retries: int = 2,
        logger: Optional[LoggerProtocol] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._logger = logger or get_current_logger()
        self._model = model
        self._api_base = (api_base or "https://api.openai.com/v1").rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._max_retries = max_retries
        self._transport = transport

        self._logger.info(
            "openai_http_provider_initialized",
            model=model,
            api_base=self._api_base,
        )

    def _client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout or self._timeout, transport=self._transport)

    async def generate(
        self,
        model: str,
        prompt: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Generate completion via OpenAI-compatible API."""
        opts = options or {}
        model_to_use = model or self._model
        payload = self._build_payload(model_to_use, prompt, opts)
        headers = self._build_headers()

        self._logger.debug(
            "openai_http_generating",
            model=model_to_use,
            prompt_length=len(prompt),
        )

        async with self._client() as client:
            for attempt in range(self._max_retries + 1):
                try:
                    response = await client.post(
                        f"{self._api_base}/chat/completions",
                        json=payload,
                        headers=headers,
                    )
                    response.raise_for_status()

                    data = response.json()
                    text = data["choices"][0]["message"]["content"] or ""

                    self._logger.info(
                        "openai_http_generation_complete",
                        model=model_to_use,
                        response_length=len(text),
                    )
                    return text

                except httpx.HTTPStatusError as e:
                    if attempt == self._max_retries:
                        self._logger.error(
                            "openai_http_error",
                            model=model_to_use,
                            status=e.response.status_code,
                            error=str(e),
                        )
                        raise
                    self._logger.warning(
                        "openai_http_retry",
                        attempt=attempt + 1,
                        status=e.response.status_code,
                    )
                except httpx.RequestError as e:
                    if attempt == self._max_retries:
                        self._logger.error(
                            "openai_http_connection_error",
                            model=model_to_use,
                            error=str(e),
                        )
                        raise
                    self._logger.warning(
                        "openai_http_retry",
                        attempt=attempt + 1,
                        error=str(e),
                    )

        raise RuntimeError("Unreachable")

    def _build_payload(self, model: str, prompt: str, options: Dict[str, Any]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "stream": False,
        }

        if options.get("temperature") is not None:
            payload["temperature"] = options["temperature"]
        if options.get("max_tokens") is not None:
            payload["max_tokens"] = options["max_tokens"]
        if options.get("json_mode"):
            payload["response_format"] = {"type": "json_object"}

        return payload

    def _build_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def health_check(self) -> bool:
        """Check if endpoint is healthy."""
        try:
            async with self._client(timeout=10.0) as client:
                response = await client.get(
                    f"{self._api_base}/models",
                    headers=self._build_headers(),
                )
                return response.status_code == 200
        except httpx.HTTPError as e:
            self._logger.warning(
                "openai_http_health_check_failed",
                error=str(e),
            )
            return False

    def __repr__(self) -> str:
        return f"OpenAIHTTPProvider(model={self._model}, api_base={self._api_base})"
