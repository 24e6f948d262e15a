"""Core data models shared across manifestgen components."""

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class TypeDescriptor:
    """One metadata type known to the remote catalog."""

    xml_name: str
    in_folder: bool = False
    directory_name: Optional[str] = None
    suffix: Optional[str] = None
    child_xml_names: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ComponentRecord:
    """A single metadata component returned by a listing call."""

    type: str
    full_name: str
    file_name: str = ""
    namespace_prefix: Optional[str] = None
    manageable_state: Optional[str] = None
    id: Optional[str] = None
    last_modified_date: Optional[str] = None


@dataclass
class FieldRecord:
    """Field definition row tagged with its owning object."""

    qualified_api_name: str
    id: Optional[str] = None
    entity_definition_id: Optional[str] = None
    developer_name: Optional[str] = None
    namespace_prefix: Optional[str] = None
    sobject_type: Optional[str] = None
    full_name: Optional[str] = None


@dataclass(frozen=True)
class EntityDefinition:
    """Maps an object API name to the durable id used to scope field queries."""

    qualified_api_name: str
    durable_id: str
