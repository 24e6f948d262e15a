"""Index of components known from local project source."""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional, Set


class LocalComponentIndex:
    """Component names found on disk, grouped by metadata type.

    When ``source_only`` is set, retrievers answer existence checks from this
    index alone and never consult the org.
    """

    def __init__(
        self,
        components: Optional[Mapping[str, Iterable[str]]] = None,
        *,
        source_only: bool = False,
    ) -> None:
        self.source_only = source_only
        self._components: Dict[str, Set[str]] = {}
        for type_name, names in (components or {}).items():
            self.extend(type_name, names)

    def extend(self, type_name: str, full_names: Iterable[str]) -> None:
        self._components.setdefault(type_name, set()).update(full_names)

    def contains(self, type_name: str, full_name: str) -> bool:
        return full_name in self._components.get(type_name, ())


__all__ = ["LocalComponentIndex"]
