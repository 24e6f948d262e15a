"""Type-to-members mapping accumulated during a manifest build."""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Tuple

from ..models import ComponentRecord
from .constants import VALUE_SET_TRANSLATION_MARKER


class MemberBuckets:
    """Accumulates member names per metadata type without deduplicating."""

    def __init__(self) -> None:
        self._buckets: Dict[str, List[str]] = {}

    def add_or_create(self, key: str) -> List[str]:
        """Return the mutable member list for ``key``, creating it when absent."""
        return self._buckets.setdefault(key, [])

    def add(self, type_name: str, record: ComponentRecord) -> str:
        """Append the record under its bucket key and return that key."""
        key = bucket_key(type_name, record)
        self.add_or_create(key).append(record.full_name)
        return key

    def replace(self, key: str, members: Iterable[str]) -> None:
        self._buckets[key] = list(members)

    def get(self, key: str) -> List[str]:
        return list(self._buckets.get(key, []))

    def sorted_items(self) -> Iterator[Tuple[str, List[str]]]:
        """Yield ``(type, members)`` pairs ordered by type with sorted members."""
        for key in sorted(self._buckets):
            yield key, sorted(self._buckets[key])

    def __contains__(self, key: object) -> bool:
        return key in self._buckets

    def __len__(self) -> int:
        return len(self._buckets)


def bucket_key(type_name: str, record: ComponentRecord) -> str:
    """Return the bucket a record belongs to.

    Value set translations are all reported under one generic type, so the
    real type is recovered from the second dot-separated segment of the file
    name, e.g. ``globalValueSetTranslations/de.globalValueSetTranslation``
    belongs to ``GlobalValueSetTranslation``.
    """
    file_name = record.file_name or ""
    if VALUE_SET_TRANSLATION_MARKER not in file_name.lower():
        return type_name
    parts = file_name.split(".")
    if len(parts) < 2 or not parts[1]:
        return type_name
    segment = parts[1]
    return segment[:1].upper() + segment[1:]


__all__ = ["MemberBuckets", "bucket_key"]
