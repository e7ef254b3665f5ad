"""AEGIS validation and stage-gating engine.

Scores a strategic artifact (project, strategy, analysis or deliverable)
across five independent layers, aggregates the scores, derives quality
gates and hard stops, and renders a passed / failed / blocked decision.
A separate stage-gate evaluator enforces the Gate 0/1/2 milestone
sequence, delegating rubric judgment to an LLM-backed collaborator while
owning the pass thresholds.

Sub-packages:
- protocols/      - Domain dataclasses, enums and collaborator Protocols
- validation/     - Loader, layer evaluators, aggregator, gate policy, decision engine
- stage_gates/    - Rubric prompts, judgment client, Gate 0/1/2 evaluator
- llm/            - LLM providers (OpenAI-compatible HTTP, Mock)
- adapters/       - In-memory store and sink, lookups, permission checkers
- gateway/        - HTTP translation (FastAPI)
- logging/        - structlog configuration and DI loggers
- observability/  - Prometheus metrics

Top-level modules:
- bootstrap       - AppContext creation, composition root
- settings        - Environment-driven settings (pydantic-settings)
- thresholds      - Immutable weight, threshold and rubric tables
- errors          - Error taxonomy surfaced to callers

Usage:
    from aegis_core.bootstrap import create_app_context

    app_context = create_app_context()
    record = await app_context.validation_service.validate("project", actor, target_id="p-1")
"""

__version__ = "1.0.0"
