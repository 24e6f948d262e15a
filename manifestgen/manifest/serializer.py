"""Render manifest trees as package.xml documents."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import List

from .constants import PACKAGE_NAMESPACE


@dataclass
class TypeEntry:
    """One ``<types>`` block of the manifest."""

    name: str
    members: List[str] = field(default_factory=list)


@dataclass
class ManifestTree:
    """Ordered manifest content ready for serialization."""

    version: str
    types: List[TypeEntry] = field(default_factory=list)


def serialize(tree: ManifestTree) -> str:
    """Return the XML text for a manifest tree."""
    root = ET.Element("Package", {"xmlns": PACKAGE_NAMESPACE})
    for entry in tree.types:
        types_el = ET.SubElement(root, "types")
        ET.SubElement(types_el, "name").text = entry.name
        for member in entry.members:
            ET.SubElement(types_el, "members").text = member
    ET.SubElement(root, "version").text = tree.version
    ET.indent(root, space="    ")
    body = ET.tostring(root, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}\n'


__all__ = ["ManifestTree", "TypeEntry", "serialize"]
