"""Store-backed optional lookups (assessments, knowledge)."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from aegis_core.protocols import EntityStoreProtocol

DEFAULT_ASSESSMENT_COLLECTIONS: Mapping[str, str] = {
    "cross_validation": "cross_validations",
    "contextual_assessment": "contextual_assessments",
}


class StoreAssessmentLookup:
    """AssessmentLookupProtocol over entity store collections.

    Assessments reference their target through ``target_entity_id``.
    """

    def __init__(
        self,
        store: EntityStoreProtocol,
        collections: Optional[Mapping[str, str]] = None,
    ):
        self._store = store
        self._collections = dict(collections or DEFAULT_ASSESSMENT_COLLECTIONS)

    async def list_by_target(self, category: str, target_id: str) -> List[Dict[str, Any]]:
        if category not in self._collections:
            raise ValueError(f"Unknown assessment category '{category}'")
        return await self._store.filter(self._collections[category], target_entity_id=target_id)


class StoreKnowledgeLookup:
    """KnowledgeLookupProtocol: companies sharing an industry."""

    def __init__(self, store: EntityStoreProtocol, collection: str = "companies"):
        self._store = store
        self._collection = collection

    async def find_similar(self, industry: str, limit: int = 5) -> List[Dict[str, Any]]:
        wanted = (industry or "").strip().lower()
        if not wanted:
            return []
        companies = await self._store.filter(self._collection)
        matches = [c for c in companies if str(c.get("industry") or "").strip().lower() == wanted]
        matches.sort(key=lambda c: str(c.get("id")))
        return matches[:limit]
