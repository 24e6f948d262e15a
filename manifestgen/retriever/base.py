"""Shared plumbing for query-backed, memoizing retrievers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Mapping, Optional, TypeVar

from ..gateway.base import MetadataGateway

T = TypeVar("T")


class BaseMetadataRetriever(ABC, Generic[T]):
    """Runs SOQL through the gateway and memoizes results per owning key.

    One instance lives as long as the run context that created it; entries
    are never invalidated.
    """

    def __init__(
        self, gateway: MetadataGateway, *, query: str = "", tooling: bool = False
    ) -> None:
        self.gateway = gateway
        self.query = query
        self.tooling = tooling
        self.data_loaded = False
        self._data: Dict[str, List[T]] = {}

    @abstractmethod
    def from_row(self, row: Mapping[str, Any]) -> T:
        """Convert one query row into a record."""

    async def fetch(self, query: Optional[str] = None, *, tooling: Optional[bool] = None) -> List[T]:
        """Run ``query`` (or the default query) and map every row."""
        soql = query or self.query
        use_tooling = self.tooling if tooling is None else tooling
        rows = await self.gateway.query(soql, tooling=use_tooling)
        return [self.from_row(row) for row in rows]

    def is_cached(self, key: str) -> bool:
        return key in self._data

    def cached(self, key: str) -> Optional[List[T]]:
        return self._data.get(key)

    def remember(self, key: str, items: List[T]) -> List[T]:
        self._data[key] = items
        return items

    def cached_items(self) -> List[T]:
        items: List[T] = []
        for values in self._data.values():
            items.extend(values)
        return items


def quote_soql(value: str) -> str:
    """Escape a value for use inside a single-quoted SOQL literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


__all__ = ["BaseMetadataRetriever", "quote_soql"]
