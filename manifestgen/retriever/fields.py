"""Field definitions per object, with local-first existence checks."""

from __future__ import annotations

import asyncio
from typing import Any, List, Mapping

from ..gateway.base import MetadataGateway
from ..logging import get_logger
from ..models import FieldRecord
from .base import BaseMetadataRetriever, quote_soql
from .entity import EntityDefinitionRetriever
from .local import LocalComponentIndex

FIELD_QUERY = (
    "SELECT Id, QualifiedApiName, EntityDefinitionId, DeveloperName, NamespacePrefix "
    "FROM FieldDefinition"
)
CUSTOM_FIELD_TYPE = "CustomField"


class FieldRetriever(BaseMetadataRetriever[FieldRecord]):
    """Memoizes field definitions keyed by owning object."""

    def __init__(
        self,
        gateway: MetadataGateway,
        *,
        entities: EntityDefinitionRetriever | None = None,
        local_components: LocalComponentIndex | None = None,
    ) -> None:
        super().__init__(gateway, query=FIELD_QUERY, tooling=True)
        self.entities = entities or EntityDefinitionRetriever(gateway)
        self.local_components = local_components or LocalComponentIndex()
        self.logger = get_logger("retriever.fields")

    def from_row(self, row: Mapping[str, Any]) -> FieldRecord:
        return FieldRecord(
            qualified_api_name=str(row.get("QualifiedApiName") or ""),
            id=row.get("Id"),
            entity_definition_id=row.get("EntityDefinitionId"),
            developer_name=row.get("DeveloperName"),
            namespace_prefix=row.get("NamespacePrefix"),
        )

    async def get_fields(self) -> List[FieldRecord]:
        """Return fields of every permitted object, crawling the org on first use."""
        if not self.data_loaded:
            objects = await self.entities.get_objects_for_permission()
            pending = [name for name in dict.fromkeys(objects) if not self.is_cached(name)]
            self.logger.debug(
                "Crawling fields for %d objects (%d already cached)",
                len(pending),
                len(objects) - len(pending),
            )
            results = await asyncio.gather(
                *(self.get_fields_by_object_name(name) for name in pending),
                return_exceptions=True,
            )
            failures = [result for result in results if isinstance(result, BaseException)]
            if failures:
                self.logger.warning(
                    "Field crawl failed for %d of %d objects", len(failures), len(pending)
                )
                raise failures[0]
            self.data_loaded = True
        return self.cached_items()

    async def get_fields_by_object_name(self, object_name: str) -> List[FieldRecord]:
        """Return fields of one object without forcing a full crawl."""
        cached = self.cached(object_name)
        if cached is not None:
            return cached

        fields: List[FieldRecord] = []
        durable_id = await self.entities.get_durable_id(object_name)
        if durable_id:
            fields = await self.fetch(
                f"{FIELD_QUERY} WHERE EntityDefinitionId = '{quote_soql(durable_id)}'"
            )
            for field in fields:
                field.sobject_type = object_name
                field.full_name = f"{object_name}.{field.qualified_api_name}"
        # A concurrent lookup may have filled the entry while we were waiting.
        existing = self.cached(object_name)
        if existing is not None:
            return existing
        return self.remember(object_name, fields)

    async def field_exists(self, full_name: str) -> bool:
        """Check project source first, then the org unless running source-only."""
        parts = full_name.split(".")
        if len(parts) != 2:
            return False

        found = self.local_components.contains(CUSTOM_FIELD_TYPE, full_name)
        if not found and not self.local_components.source_only:
            fields = await self.get_fields_by_object_name(parts[0])
            found = any(field.full_name == full_name for field in fields)
        return found


__all__ = ["CUSTOM_FIELD_TYPE", "FieldRetriever"]
