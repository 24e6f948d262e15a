"""Assemble a package manifest from a full catalog pass over the org."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..config import BuildConfig
from ..gateway.base import MetadataGateway, PerTypeListingFailed, as_list
from ..logging import get_logger
from ..models import ComponentRecord
from .buckets import MemberBuckets
from .constants import (
    FOLDER_CHILD_RENAMES,
    FOLDER_SUFFIX,
    INSTALLED_PACKAGE_TYPE,
    STANDARD_VALUE_SET_TYPE,
    STANDARD_VALUE_SETS,
)
from .filters import ManagedPackageFilter
from .serializer import ManifestTree, TypeEntry, serialize


class CatalogUnavailable(RuntimeError):
    """Raised when the org's type catalog cannot be described."""


class FileWriteError(RuntimeError):
    """Raised when the manifest cannot be written to disk."""


@dataclass
class ManifestDocument:
    """Result of a manifest build."""

    path: Path
    xml: str
    api_version: str
    types: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class _Listing:
    type_name: str
    folder: Optional[str]
    task: "asyncio.Task[List[ComponentRecord]]"


def folder_type_for(xml_name: str) -> str:
    """Return the container type listed for a foldered type (EmailTemplate -> EmailFolder)."""
    return xml_name.replace("Template", "") + FOLDER_SUFFIX


def child_type_for(folder_type: str) -> str:
    """Return the type of the components stored in a folder (ReportFolder -> Report)."""
    name = folder_type.replace(FOLDER_SUFFIX, "")
    return FOLDER_CHILD_RENAMES.get(name, name)


class ManifestRun:
    """Per-build state: the filtering gate in front of the member buckets."""

    def __init__(
        self,
        config: BuildConfig,
        managed_filter: ManagedPackageFilter | None = None,
        buckets: MemberBuckets | None = None,
    ) -> None:
        self.config = config
        self.managed_filter = managed_filter or ManagedPackageFilter()
        self.buckets = buckets or MemberBuckets()
        self.logger = get_logger("manifest")

    def add_member(self, type_name: object, record: ComponentRecord) -> bool:
        """Bucket a record unless it has no usable type or is excluded as managed."""
        if not type_name or not isinstance(type_name, str):
            return False
        if self.config.exclude_managed and self.managed_filter.is_managed(record):
            self.logger.debug("Excluding managed component %s.%s", type_name, record.full_name)
            return False
        self.buckets.add(type_name, record)
        return True

    def add_standard_value_sets(self) -> None:
        self.buckets.replace(STANDARD_VALUE_SET_TYPE, STANDARD_VALUE_SETS)

    def tree(self) -> ManifestTree:
        entries = [
            TypeEntry(name=name, members=members)
            for name, members in self.buckets.sorted_items()
            if self.config.includes(name)
        ]
        return ManifestTree(version=self.config.api_version, types=entries)


class PackageBuilder:
    """Drives the describe, list, merge, filter and bucket pipeline."""

    def __init__(self, gateway: MetadataGateway) -> None:
        self.gateway = gateway
        self.logger = get_logger("manifest")

    async def build(self, config: BuildConfig) -> ManifestDocument:
        """Inventory the org, write the manifest and return it."""
        run = await self.collect(config)
        document = self.render(run)
        self.write(document)
        self.logger.info(
            "Wrote %d types to %s", len(document.types), document.path
        )
        return document

    async def collect(self, config: BuildConfig) -> ManifestRun:
        """Run the catalog pass and return the populated run state."""
        try:
            descriptors = await self.gateway.describe_metadata(config.api_version)
        except Exception as exc:
            raise CatalogUnavailable(f"Unable to describe metadata catalog: {exc}") from exc
        self.logger.debug("Catalog describes %d types", len(descriptors))

        unfoldered: List[_Listing] = []
        folders: List[_Listing] = []
        installed: Optional[_Listing] = None

        for descriptor in descriptors:
            name = descriptor.xml_name
            if not config.includes(name):
                if name == INSTALLED_PACKAGE_TYPE and config.exclude_managed:
                    installed = self._schedule(name, config.api_version)
                continue
            if descriptor.in_folder:
                folders.append(self._schedule(folder_type_for(name), config.api_version))
            else:
                listing = self._schedule(name, config.api_version)
                unfoldered.append(listing)
                if name == INSTALLED_PACKAGE_TYPE:
                    installed = listing

        run = ManifestRun(config, managed_filter=await self._managed_filter(installed))

        for listing, records in await self._gather(unfoldered):
            for record in records:
                run.add_member(record.type, record)

        children: List[_Listing] = []
        for listing, records in await self._gather(folders):
            for folder in records:
                folder_type = folder.type or listing.type_name
                run.add_member(folder_type, folder)
                children.append(
                    self._schedule(
                        child_type_for(folder_type), config.api_version, folder=folder.full_name
                    )
                )

        for listing, records in await self._gather(children):
            for record in records:
                run.add_member(listing.type_name, record)

        run.add_standard_value_sets()
        return run

    def render(self, run: ManifestRun) -> ManifestDocument:
        tree = run.tree()
        return ManifestDocument(
            path=run.config.output_file,
            xml=serialize(tree),
            api_version=tree.version,
            types={entry.name: entry.members for entry in tree.types},
        )

    def write(self, document: ManifestDocument) -> None:
        path = document.path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(document.xml, encoding="utf-8")
        except OSError as exc:
            raise FileWriteError(f"Unable to write manifest to {path}: {exc}") from exc

    # ------------------------------------------------------------------
    # Internal helpers

    def _schedule(
        self, type_name: str, api_version: str, *, folder: Optional[str] = None
    ) -> _Listing:
        task = asyncio.ensure_future(self._list(type_name, api_version, folder))
        return _Listing(type_name=type_name, folder=folder, task=task)

    async def _list(
        self, type_name: str, api_version: str, folder: Optional[str]
    ) -> List[ComponentRecord]:
        try:
            result = await self.gateway.list_metadata(type_name, api_version, folder=folder)
        except Exception as exc:
            raise PerTypeListingFailed(type_name, folder, exc) from exc
        return as_list(result)

    async def _gather(
        self, listings: Sequence[_Listing]
    ) -> List[tuple[_Listing, List[ComponentRecord]]]:
        """Await a batch of listings, dropping the ones that failed."""
        results = await asyncio.gather(
            *(listing.task for listing in listings), return_exceptions=True
        )
        merged: List[tuple[_Listing, List[ComponentRecord]]] = []
        for listing, result in zip(listings, results):
            if isinstance(result, PerTypeListingFailed):
                self.logger.warning("%s; skipping its members", result)
                continue
            if isinstance(result, BaseException):
                raise result
            merged.append((listing, result))
        return merged

    async def _managed_filter(self, listing: Optional[_Listing]) -> ManagedPackageFilter:
        if listing is None:
            return ManagedPackageFilter()
        try:
            records = await listing.task
        except PerTypeListingFailed as exc:
            self.logger.warning("%s; managed namespaces cannot be matched by name", exc)
            return ManagedPackageFilter()
        managed_filter = ManagedPackageFilter.from_records(records)
        self.logger.debug("Installed package namespaces: %s", ", ".join(managed_filter.namespaces))
        return managed_filter


__all__ = [
    "CatalogUnavailable",
    "FileWriteError",
    "ManifestDocument",
    "ManifestRun",
    "PackageBuilder",
    "child_type_for",
    "folder_type_for",
]
