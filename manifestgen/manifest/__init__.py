"""Manifest aggregation and serialization."""

from .buckets import MemberBuckets, bucket_key
from .builder import (
    CatalogUnavailable,
    FileWriteError,
    ManifestDocument,
    ManifestRun,
    PackageBuilder,
    child_type_for,
    folder_type_for,
)
from .constants import STANDARD_VALUE_SETS
from .filters import ManagedPackageFilter
from .serializer import ManifestTree, TypeEntry, serialize

__all__ = [
    "CatalogUnavailable",
    "FileWriteError",
    "ManagedPackageFilter",
    "ManifestDocument",
    "ManifestRun",
    "ManifestTree",
    "MemberBuckets",
    "PackageBuilder",
    "STANDARD_VALUE_SETS",
    "TypeEntry",
    "bucket_key",
    "child_type_for",
    "folder_type_for",
    "serialize",
]
