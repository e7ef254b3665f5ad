"""EntitySnapshot loader.

Resolves a validation target (stored record or inline payload) and
normalises it into the common EntitySnapshot shape. Kind dispatch happens
here once; evaluators never look at the target kind.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from aegis_core.errors import InvalidRequestError, NotFoundError
from aegis_core.logging import get_component_logger
from aegis_core.protocols import (
    EntitySnapshot,
    EntityStoreProtocol,
    LoggerProtocol,
    TargetKind,
)
from aegis_core.utils.datetime import parse_datetime_or_none

# Historical names still sent by older callers
KIND_ALIASES: Mapping[str, TargetKind] = MappingProxyType({
    "tsi_project": TargetKind.PROJECT,
    "tsi_deliverable": TargetKind.DELIVERABLE,
})

_COMMON_NARRATIVES = ("project_brief", "description", "executive_summary")
_CONFIDENCE_FIELDS = ("crv_score", "confidence_score", "sci_ia_score")


def resolve_kind(value: Any) -> TargetKind:
    """Map a request's target kind (or alias) to a TargetKind."""
    if isinstance(value, TargetKind):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidRequestError("target_kind is required")
    key = value.strip().lower()
    if key in KIND_ALIASES:
        return KIND_ALIASES[key]
    try:
        return TargetKind(key)
    except ValueError:
        allowed = sorted([k.value for k in TargetKind] + list(KIND_ALIASES))
        raise InvalidRequestError(
            f"Unknown target_kind '{value}'",
            details={"allowed": allowed},
        )


def _list_field(name: str, value: Any) -> Optional[list]:
    """List-typed field as a list; a lone mapping or string is one entry."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, (Mapping, str)):
        return [value]
    if isinstance(value, (list, tuple)):
        return list(value)
    raise InvalidRequestError(
        f"{name} must be a list",
        details={"field": name, "type": type(value).__name__},
    )


def _mapping_tuple(name: str, value: Any) -> Optional[Tuple[Mapping[str, Any], ...]]:
    """None when the field is absent, otherwise a tuple of mappings."""
    value = _list_field(name, value)
    if value is None:
        return None
    items = []
    for item in value:
        if isinstance(item, Mapping):
            items.append(MappingProxyType(dict(item)))
        else:
            items.append(MappingProxyType({"name": str(item)}))
    return tuple(items)


class SnapshotAdapter:
    """Field mapping for one target kind.

    Subclasses override ``collection`` and ``extra_narratives``; the shared
    normalisation covers every field the evaluators consume.
    """

    kind: TargetKind = TargetKind.PROJECT
    collection: str = "projects"
    extra_narratives: Tuple[str, ...] = ()

    def build(self, raw: Mapping[str, Any], entity_id: Optional[str] = None) -> EntitySnapshot:
        record: Dict[str, Any] = dict(raw)
        return EntitySnapshot(
            kind=self.kind,
            id=entity_id or record.get("id"),
            title=record.get("title") or record.get("name"),
            status=record.get("status"),
            created_by=record.get("created_by"),
            updated_by=record.get("updated_by"),
            created_at=parse_datetime_or_none(record.get("created_date") or record.get("created_at")),
            updated_at=parse_datetime_or_none(record.get("updated_date") or record.get("updated_at")),
            data_sources=_mapping_tuple("data_sources", record.get("data_sources")),
            deliverables=_mapping_tuple("deliverables", record.get("deliverables")),
            referenced_documents=tuple(_list_field("referenced_documents", record.get("referenced_documents")) or ()),
            analysis_results=record.get("analysis_results") or None,
            milestones=_mapping_tuple("milestones", record.get("milestones")) or (),
            narratives=self.narratives(record),
            confidence_score=self.confidence(record),
            has_quality_gate_state=bool(record.get("gate_0_status") or record.get("quality_gates")),
            raw=MappingProxyType(record),
        )

    def narratives(self, record: Mapping[str, Any]) -> Tuple[str, ...]:
        texts = []
        for name in _COMMON_NARRATIVES + self.extra_narratives:
            value = record.get(name)
            if isinstance(value, str) and value.strip():
                texts.append(value)
        return tuple(texts)

    @staticmethod
    def confidence(record: Mapping[str, Any]) -> Optional[float]:
        for name in _CONFIDENCE_FIELDS:
            value = record.get(name)
            if value is None or isinstance(value, bool):
                continue
            try:
                return float(value)
            except (TypeError, ValueError):
                continue
        return None


class ProjectAdapter(SnapshotAdapter):
    kind = TargetKind.PROJECT
    collection = "projects"
    extra_narratives = ("objective",)


class StrategyAdapter(SnapshotAdapter):
    kind = TargetKind.STRATEGY
    collection = "strategies"
    extra_narratives = ("rationale", "summary")


class AnalysisAdapter(SnapshotAdapter):
    kind = TargetKind.ANALYSIS
    collection = "analyses"
    extra_narratives = ("summary", "findings")


class DeliverableAdapter(SnapshotAdapter):
    kind = TargetKind.DELIVERABLE
    collection = "deliverables"
    extra_narratives = ("summary",)


DEFAULT_ADAPTERS: Mapping[TargetKind, SnapshotAdapter] = MappingProxyType({
    TargetKind.PROJECT: ProjectAdapter(),
    TargetKind.STRATEGY: StrategyAdapter(),
    TargetKind.ANALYSIS: AnalysisAdapter(),
    TargetKind.DELIVERABLE: DeliverableAdapter(),
})


class EntitySnapshotLoader:
    """Resolves a validation target into an EntitySnapshot.

    Usage:
        loader = EntitySnapshotLoader(store)
        snapshot = await loader.load("project", target_id="p-1")
        snapshot = await loader.load("strategy", inline_target={...})
    """

    def __init__(
        self,
        store: EntityStoreProtocol,
        adapters: Optional[Mapping[TargetKind, SnapshotAdapter]] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._store = store
        self._adapters = adapters or DEFAULT_ADAPTERS
        self._logger = get_component_logger("EntitySnapshotLoader", logger)

    def adapter_for(self, kind: TargetKind) -> SnapshotAdapter:
        return self._adapters[kind]

    async def load(
        self,
        target_kind: Any,
        target_id: Optional[str] = None,
        inline_target: Optional[Mapping[str, Any]] = None,
    ) -> EntitySnapshot:
        """Load and normalise the target.

        Raises:
            InvalidRequestError: unknown kind, or neither id nor inline payload
            NotFoundError: no stored record for the id
        """
        kind = resolve_kind(target_kind)
        adapter = self.adapter_for(kind)

        if inline_target is not None:
            if not isinstance(inline_target, Mapping):
                raise InvalidRequestError("inline_target must be an object")
            self._logger.debug("snapshot_loaded_inline", kind=kind.value, target_id=target_id)
            return adapter.build(inline_target, entity_id=target_id)

        if not target_id:
            raise InvalidRequestError("target_kind and (target_id or inline_target) are required")

        raw = await self._store.get(adapter.collection, target_id)
        if raw is None:
            self._logger.info("snapshot_not_found", kind=kind.value, target_id=target_id)
            raise NotFoundError(
                "Entity not found",
                details={"target_kind": kind.value, "target_id": target_id},
            )

        self._logger.debug("snapshot_loaded", kind=kind.value, target_id=target_id)
        return adapter.build(raw, entity_id=target_id)


__all__ = [
    "KIND_ALIASES",
    "resolve_kind",
    "SnapshotAdapter",
    "ProjectAdapter",
    "StrategyAdapter",
    "AnalysisAdapter",
    "DeliverableAdapter",
    "DEFAULT_ADAPTERS",
    "EntitySnapshotLoader",
]
