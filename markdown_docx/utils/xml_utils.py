"""Helpers to build namespaced WordprocessingML trees and serialize them."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional
from xml.etree import ElementTree as ET

XML_DECLARATION = b'<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
XML_SPACE = "{http://www.w3.org/XML/1998/namespace}space"


@dataclass(frozen=True)
class Namespaces:
    """OpenXML namespace prefixes used by the writers."""

    WORD: Dict[str, str] = None  # type: ignore[assignment]
    RELS: Dict[str, str] = None  # type: ignore[assignment]
    DRAWING: Dict[str, str] = None  # type: ignore[assignment]
    CONTENT_TYPES: Dict[str, str] = None  # type: ignore[assignment]

    def __post_init__(self) -> None:  # pragma: no cover
        raise RuntimeError("Namespaces should not be instantiated")


Namespaces.WORD = {  # type: ignore[attr-defined]
    "w": "http://schemas.openxmlformats.org/wordprocessingml/2006/main",
    "r": "http://schemas.openxmlformats.org/officeDocument/2006/relationships",
}
Namespaces.RELS = {  # type: ignore[attr-defined]
    "rel": "http://schemas.openxmlformats.org/package/2006/relationships",
}
Namespaces.DRAWING = {  # type: ignore[attr-defined]
    "wp": "http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing",
    "a": "http://schemas.openxmlformats.org/drawingml/2006/main",
    "pic": "http://schemas.openxmlformats.org/drawingml/2006/picture",
}
Namespaces.CONTENT_TYPES = {  # type: ignore[attr-defined]
    "ct": "http://schemas.openxmlformats.org/package/2006/content-types",
}

_PREFIXES: Dict[str, str] = {**Namespaces.WORD, **Namespaces.DRAWING}  # type: ignore[arg-type]

for _prefix, _uri in _PREFIXES.items():
    ET.register_namespace(_prefix, _uri)


def qn(name: str) -> str:
    """Expand a ``prefix:local`` name into Clark notation (``{uri}local``)."""
    if ":" not in name:
        return name
    prefix, local = name.split(":", 1)
    return f"{{{_PREFIXES[prefix]}}}{local}"


def w_element(tag: str, attrib: Optional[Dict[str, object]] = None) -> ET.Element:
    """Create a detached element; attribute names may use prefixes."""
    element = ET.Element(qn(tag))
    for key, value in (attrib or {}).items():
        element.set(qn(key), str(value))
    return element


def w_sub(parent: ET.Element, tag: str, attrib: Optional[Dict[str, object]] = None) -> ET.Element:
    """Append a child element to ``parent``; attribute names may use prefixes."""
    element = w_element(tag, attrib)
    parent.append(element)
    return element


def serialize(root: ET.Element) -> bytes:
    """Serialize a tree into a standalone UTF-8 XML part."""
    return XML_DECLARATION + ET.tostring(root, encoding="utf-8", xml_declaration=False)


def package_element(tag: str, namespace: str) -> ET.Element:
    """Root of an OPC package part whose children use unprefixed names.

    The namespace is declared with a literal ``xmlns`` attribute so that
    children and their plain attributes stay unqualified in the output.
    """
    return ET.Element(tag, {"xmlns": namespace})
