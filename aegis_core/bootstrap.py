"""Composition root - build AppContext and inject dependencies.

This is the only place where concrete collaborators are instantiated and
wired together. Tests build their own graph from the same pieces, or
pass replacements in here.

Usage:
    from aegis_core.bootstrap import create_app_context

    app_context = create_app_context()
    app.state.context = app_context
"""

from typing import Optional

from aegis_core.adapters import (
    EntityStoreResultSink,
    HTTPPermissionChecker,
    InMemoryEntityStore,
    RoleBasedPermissionChecker,
    StoreAssessmentLookup,
    StoreKnowledgeLookup,
)
from aegis_core.context import AppContext, SystemClock
from aegis_core.llm import create_llm_provider
from aegis_core.logging import configure_logging, create_logger
from aegis_core.protocols import (
    ClockProtocol,
    EntityStoreProtocol,
    JudgmentProviderProtocol,
    LLMProviderProtocol,
    LoggerProtocol,
    PermissionCheckerProtocol,
)
from aegis_core.settings import Settings, get_settings
from aegis_core.stage_gates import LLMJudgmentProvider, StageGateEvaluator
from aegis_core.thresholds import (
    DEFAULT_STAGE_GATE_POLICY,
    DEFAULT_VALIDATION_POLICY,
    StageGatePolicy,
    ValidationPolicy,
)
from aegis_core.validation import EntitySnapshotLoader, ValidationService
from aegis_core.validation.layers import (
    AuthenticityLayer,
    EvidenceLayer,
    GovernanceLayer,
    IntegrityLayer,
    SecurityLayer,
)


def create_permission_checker(
    settings: Settings,
    store: EntityStoreProtocol,
    clock: ClockProtocol,
    logger: LoggerProtocol,
) -> PermissionCheckerProtocol:
    """Remote checker when a service URL is configured, role-based otherwise."""
    if settings.permission_service_url:
        logger.info("permission_checker_provisioned", backend="http", url=settings.permission_service_url)
        return HTTPPermissionChecker(
            settings.permission_service_url,
            timeout=settings.permission_check_timeout_seconds,
            logger=logger,
        )
    logger.info("permission_checker_provisioned", backend="role_based")
    return RoleBasedPermissionChecker(store, clock, logger=logger)


def create_app_context(
    settings: Optional[Settings] = None,
    store: Optional[EntityStoreProtocol] = None,
    llm: Optional[LLMProviderProtocol] = None,
    judgment: Optional[JudgmentProviderProtocol] = None,
    permissions: Optional[PermissionCheckerProtocol] = None,
    clock: Optional[ClockProtocol] = None,
    validation_policy: ValidationPolicy = DEFAULT_VALIDATION_POLICY,
    stage_gate_policy: StageGatePolicy = DEFAULT_STAGE_GATE_POLICY,
) -> AppContext:
    """Create AppContext once per process.

    Args:
        settings: Pre-configured settings. Uses get_settings() if None.
        store: Entity store. In-memory store if None.
        llm: LLM provider. Built from settings if None.
        judgment: Judgment collaborator. LLM-backed if None.
        permissions: Permission collaborator. Chosen from settings if None.
        clock: Time source. SystemClock if None.
        validation_policy / stage_gate_policy: Policy tables to inject.
    """
    if settings is None:
        settings = get_settings()

    configure_logging(level=settings.log_level, json_output=settings.log_json)
    root_logger = create_logger("aegis")

    clock = clock or SystemClock()
    store = store if store is not None else InMemoryEntityStore(logger=root_logger)
    sink = EntityStoreResultSink(store, logger=root_logger)

    if llm is None:
        llm = create_llm_provider(settings, logger=root_logger)
    if judgment is None:
        judgment = LLMJudgmentProvider(llm, model=settings.llm_model, logger=root_logger)
    if permissions is None:
        permissions = create_permission_checker(settings, store, clock, root_logger)

    assessments = StoreAssessmentLookup(store)
    layers = [
        AuthenticityLayer(policy=validation_policy, logger=root_logger),
        EvidenceLayer(policy=validation_policy, logger=root_logger),
        GovernanceLayer(
            assessments,
            policy=validation_policy,
            lookup_timeout=settings.lookup_timeout_seconds,
            logger=root_logger,
        ),
        IntegrityLayer(policy=validation_policy, logger=root_logger),
        SecurityLayer(
            permissions,
            policy=validation_policy,
            permission_timeout=settings.permission_check_timeout_seconds,
            logger=root_logger,
        ),
    ]

    validation_service = ValidationService(
        loader=EntitySnapshotLoader(store, logger=root_logger),
        layers=layers,
        sink=sink,
        clock=clock,
        policy=validation_policy,
        logger=root_logger,
    )

    stage_gate_evaluator = StageGateEvaluator(
        store=store,
        judgment=judgment,
        sink=sink,
        clock=clock,
        knowledge=StoreKnowledgeLookup(store),
        policy=stage_gate_policy,
        judgment_timeout=settings.judgment_timeout_seconds,
        lookup_timeout=settings.lookup_timeout_seconds,
        logger=root_logger,
    )

    root_logger.info(
        "app_context_created",
        llm_adapter=settings.llm_adapter,
        store=type(store).__name__,
    )

    return AppContext(
        settings=settings,
        logger=root_logger,
        store=store,
        sink=sink,
        llm=llm,
        validation_service=validation_service,
        stage_gate_evaluator=stage_gate_evaluator,
        clock=clock,
        validation_policy=validation_policy,
        stage_gate_policy=stage_gate_policy,
    )
