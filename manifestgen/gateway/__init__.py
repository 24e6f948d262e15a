"""Remote metadata gateways."""

from .base import GatewayError, ListResult, MetadataGateway, PerTypeListingFailed, as_list
from .http import HttpMetadataGateway

__all__ = [
    "GatewayError",
    "HttpMetadataGateway",
    "ListResult",
    "MetadataGateway",
    "PerTypeListingFailed",
    "as_list",
]
