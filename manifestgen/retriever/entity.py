"""Resolve object names to the durable ids required by field queries."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from ..gateway.base import MetadataGateway
from ..logging import get_logger
from ..models import EntityDefinition
from .base import BaseMetadataRetriever, quote_soql

ENTITY_QUERY = "SELECT DurableId, QualifiedApiName FROM EntityDefinition"
PERMISSION_OBJECTS_QUERY = "SELECT SobjectType FROM ObjectPermissions GROUP BY SobjectType"


class DurableIdNotFound(LookupError):
    """Raised when the org has no entity definition for an object name."""


class EntityDefinitionRetriever(BaseMetadataRetriever[EntityDefinition]):
    """Caches durable ids and the list of objects that carry permissions."""

    def __init__(self, gateway: MetadataGateway) -> None:
        super().__init__(gateway, query=ENTITY_QUERY, tooling=True)
        self._permission_objects: Optional[List[str]] = None
        self.logger = get_logger("retriever.entity")

    def from_row(self, row: Mapping[str, Any]) -> EntityDefinition:
        return EntityDefinition(
            qualified_api_name=str(row.get("QualifiedApiName") or ""),
            durable_id=str(row.get("DurableId") or ""),
        )

    async def get_durable_id(self, object_name: str) -> str:
        """Return the durable id for ``object_name``, or ``""`` when the org has none."""
        try:
            return await self.require_durable_id(object_name)
        except DurableIdNotFound:
            self.logger.debug("No durable id for %s; skipping", object_name)
            return ""

    async def require_durable_id(self, object_name: str) -> str:
        cached = self.cached(object_name)
        if cached:
            return cached[0].durable_id
        definitions = await self.fetch(
            f"{ENTITY_QUERY} WHERE QualifiedApiName = '{quote_soql(object_name)}'"
        )
        matches = [item for item in definitions if item.durable_id]
        if not matches:
            raise DurableIdNotFound(object_name)
        self.remember(object_name, matches[:1])
        return matches[0].durable_id

    async def get_objects_for_permission(self) -> List[str]:
        """Return object names that appear in object permissions, loading them once."""
        if self._permission_objects is None:
            rows = await self.gateway.query(PERMISSION_OBJECTS_QUERY, tooling=False)
            names = [str(row["SobjectType"]) for row in rows if row.get("SobjectType")]
            self._permission_objects = names
            self.logger.debug("Loaded %d objects with permissions", len(names))
        return list(self._permission_objects)


__all__ = ["DurableIdNotFound", "EntityDefinitionRetriever"]
