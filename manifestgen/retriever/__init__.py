"""Query-backed retrievers that answer "does component X exist" questions."""

from .base import BaseMetadataRetriever
from .entity import DurableIdNotFound, EntityDefinitionRetriever
from .fields import FieldRetriever
from .local import LocalComponentIndex

__all__ = [
    "BaseMetadataRetriever",
    "DurableIdNotFound",
    "EntityDefinitionRetriever",
    "FieldRetriever",
    "LocalComponentIndex",
]
