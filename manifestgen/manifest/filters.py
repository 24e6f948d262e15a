"""Managed package exclusion rules."""

from __future__ import annotations

import re
from typing import Iterable, Optional, Pattern

from ..models import ComponentRecord


class ManagedPackageFilter:
    """Flags components that belong to installed managed packages.

    A component is managed when its full name starts with an installed
    namespace followed by ``__``, when it reports a namespace prefix, or when
    its manageable state is ``installed``.
    """

    def __init__(self, namespaces: Iterable[str] = ()) -> None:
        cleaned = sorted({ns.strip() for ns in namespaces if ns and ns.strip()})
        self.namespaces = tuple(cleaned)
        self.pattern: Optional[Pattern[str]] = None
        if cleaned:
            alternatives = "|".join(re.escape(ns) for ns in cleaned)
            self.pattern = re.compile(f"^({alternatives})+__")

    @classmethod
    def from_records(cls, records: Iterable[ComponentRecord]) -> "ManagedPackageFilter":
        # InstalledPackage listings report the namespace as the full name.
        return cls(record.namespace_prefix or record.full_name for record in records)

    def matches_name(self, full_name: str) -> bool:
        return self.pattern is not None and self.pattern.search(full_name) is not None

    def is_managed(self, record: ComponentRecord) -> bool:
        return (
            self.matches_name(record.full_name)
            or bool(record.namespace_prefix)
            or record.manageable_state == "installed"
        )


__all__ = ["ManagedPackageFilter"]
