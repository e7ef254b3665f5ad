#!/usr/bin/env python3
"""
Server launcher for the AEGIS gateway.

Settings come from AEGIS_* environment variables (or .env), e.g.:
    export AEGIS_LLM_ADAPTER=openai_http
    export AEGIS_LLM_BASE_URL=http://localhost:8080/v1
    export AEGIS_API_PORT=8000
"""

import uvicorn

from aegis_core.settings import get_settings


def main() -> None:
    settings = get_settings()

    print("=" * 60)
    print("Starting AEGIS Gateway")
    print("=" * 60)
    print(f"LLM adapter: {settings.llm_adapter}")
    print(f"Port: {settings.api_port}")
    print("=" * 60)
    print()

    uvicorn.run(
        "aegis_core.gateway.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
