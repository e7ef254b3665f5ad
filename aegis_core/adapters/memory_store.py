"""In-memory entity store and the result sink built on any entity store.

InMemoryEntityStore implements EntityStoreProtocol for development and
tests. Records are copied on the way in and on the way out so callers
never share mutable state with the store.

Extension Points:
- Replace InMemoryEntityStore with an adapter for a real database;
  EntityStoreResultSink works unchanged on top of it.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from aegis_core.errors import NotFoundError
from aegis_core.logging import get_component_logger
from aegis_core.protocols import (
    EntityStoreProtocol,
    LoggerProtocol,
    StageGateResult,
    ValidationRecord,
)

VALIDATION_RECORDS = "validation_records"
PROJECTS = "projects"


class InMemoryEntityStore:
    """Dict-backed EntityStoreProtocol implementation."""

    def __init__(
        self,
        seed: Optional[Dict[str, Iterable[Dict[str, Any]]]] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._logger = get_component_logger("InMemoryEntityStore", logger)
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for collection, records in (seed or {}).items():
            for record in records:
                self.put(collection, record)

    def put(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert or replace synchronously (seeding helper)."""
        data = copy.deepcopy(dict(record))
        data.setdefault("id", str(uuid4()))
        self._collections.setdefault(collection, {})[str(data["id"])] = data
        return copy.deepcopy(data)

    def count(self, collection: str) -> int:
        return len(self._collections.get(collection, {}))

    async def get(self, collection: str, entity_id: str) -> Optional[Dict[str, Any]]:
        record = self._collections.get(collection, {}).get(str(entity_id))
        return copy.deepcopy(record) if record is not None else None

    async def filter(self, collection: str, **criteria: Any) -> List[Dict[str, Any]]:
        records = self._collections.get(collection, {}).values()
        return [
            copy.deepcopy(record)
            for record in records
            if all(record.get(key) == value for key, value in criteria.items())
        ]

    async def update_fields(
        self,
        collection: str,
        entity_id: str,
        fields: Dict[str, Any],
    ) -> Dict[str, Any]:
        record = self._collections.get(collection, {}).get(str(entity_id))
        if record is None:
            raise NotFoundError(
                f"No record '{entity_id}' in '{collection}'",
                details={"collection": collection, "entity_id": entity_id},
            )
        record.update(copy.deepcopy(fields))
        self._logger.debug("record_updated", collection=collection, entity_id=entity_id, fields=sorted(fields))
        return copy.deepcopy(record)

    async def create(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        created = self.put(collection, data)
        self._logger.debug("record_created", collection=collection, entity_id=created["id"])
        return created


class EntityStoreResultSink:
    """ResultSinkProtocol over an entity store.

    Validation records are appended to ``validation_records``; stage gate
    results overwrite ``gate_{n}_status`` / ``gate_{n}_feedback`` on the
    project record.
    """

    def __init__(self, store: EntityStoreProtocol, logger: Optional[LoggerProtocol] = None):
        self._store = store
        self._logger = get_component_logger("EntityStoreResultSink", logger)

    async def append_validation_record(self, record: ValidationRecord) -> str:
        data = record.to_dict()
        data["id"] = record.record_id
        created = await self._store.create(VALIDATION_RECORDS, data)
        self._logger.info(
            "validation_record_persisted",
            record_id=created["id"],
            status=record.status.value,
        )
        return created["id"]

    async def upsert_stage_gate_result(self, project_id: str, result: StageGateResult) -> None:
        await self._store.update_fields(
            PROJECTS,
            project_id,
            {
                f"gate_{result.gate_number}_status": result.status,
                f"gate_{result.gate_number}_feedback": result.to_dict(),
            },
        )
        self._logger.info(
            "stage_gate_result_persisted",
            project_id=project_id,
            gate_number=result.gate_number,
            status=result.status,
        )
