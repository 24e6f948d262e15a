"""Contract for remote metadata gateways."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, TypeVar, Union

from ..models import ComponentRecord, TypeDescriptor

T = TypeVar("T")

ListResult = Union[ComponentRecord, List[ComponentRecord], None]


class GatewayError(RuntimeError):
    """Raised when a remote call fails or returns an unusable payload."""


class PerTypeListingFailed(GatewayError):
    """A listing call for one type or folder failed."""

    def __init__(self, type_name: str, folder: str | None, cause: BaseException) -> None:
        self.type_name = type_name
        self.folder = folder
        self.cause = cause
        target = f"{type_name} (folder {folder})" if folder else type_name
        super().__init__(f"Listing {target} failed: {cause}")


class MetadataGateway(ABC):
    """Async operations consumed by the manifest builder and retrievers."""

    @abstractmethod
    async def describe_metadata(self, api_version: str) -> List[TypeDescriptor]:
        """Return every metadata type exposed by the org."""

    @abstractmethod
    async def list_metadata(
        self, type_name: str, api_version: str, folder: Optional[str] = None
    ) -> ListResult:
        """List components of one type, optionally scoped to a folder."""

    @abstractmethod
    async def query(self, soql: str, *, tooling: bool = False) -> List[Dict[str, Any]]:
        """Run a SOQL query and return all rows."""

    @abstractmethod
    async def max_api_version(self) -> str:
        """Return the newest API version the org supports."""

    async def aclose(self) -> None:
        """Release any transport resources."""


def as_list(value: Union[T, List[T], None]) -> List[T]:
    """Coerce a missing, single, or list result into a list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [item for item in value if item is not None]
    return [value]


__all__ = [
    "GatewayError",
    "ListResult",
    "MetadataGateway",
    "PerTypeListingFailed",
    "as_list",
]
