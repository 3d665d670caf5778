"""DOCX package writer responsible for assembling XML parts and media."""
from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass
from typing import Dict, List
from xml.etree import ElementTree as ET

from markdown_docx.parser.media_extractor import MEDIA_CONTENT_TYPES
from markdown_docx.renderer.relationships import (
    RELTYPE_OFFICE_DOCUMENT,
    Relationship,
    RelationshipTable,
    relationships_part,
)
from markdown_docx.utils.logger import get_logger
from markdown_docx.utils.xml_utils import Namespaces, package_element, serialize

LOGGER = get_logger(__name__)

CONTENT_TYPES_PATH = "[Content_Types].xml"
PACKAGE_REL_PATH = "_rels/.rels"
DOCUMENT_XML_PATH = "word/document.xml"
STYLES_XML_PATH = "word/styles.xml"
NUMBERING_XML_PATH = "word/numbering.xml"
DOCUMENT_RELS_PATH = "word/_rels/document.xml.rels"

_WORDML = "application/vnd.openxmlformats-officedocument.wordprocessingml"
PART_CONTENT_TYPES: Dict[str, str] = {
    DOCUMENT_XML_PATH: f"{_WORDML}.document.main+xml",
    STYLES_XML_PATH: f"{_WORDML}.styles+xml",
    NUMBERING_XML_PATH: f"{_WORDML}.numbering+xml",
}
DEFAULT_CONTENT_TYPES: Dict[str, str] = {
    "rels": "application/vnd.openxmlformats-package.relationships+xml",
    "xml": "application/xml",
}


class PackagingError(Exception):
    """Raised when the DOCX archive cannot be produced."""


@dataclass(slots=True)
class DocxParts:
    """Serialized parts of one generated document."""

    document_xml: bytes
    styles_xml: bytes
    numbering_xml: bytes
    relationships: RelationshipTable


def content_types_part(image_extensions: List[str]) -> bytes:
    namespace = Namespaces.CONTENT_TYPES["ct"]
    root = package_element("Types", namespace)
    defaults = dict(DEFAULT_CONTENT_TYPES)
    for extension in image_extensions:
        defaults.setdefault(extension, MEDIA_CONTENT_TYPES.get(extension, MEDIA_CONTENT_TYPES["png"]))
    for extension, content_type in defaults.items():
        ET.SubElement(root, "Default", {"Extension": extension, "ContentType": content_type})
    for part_name, content_type in PART_CONTENT_TYPES.items():
        ET.SubElement(root, "Override", {"PartName": f"/{part_name}", "ContentType": content_type})
    return serialize(root)


def package_relationships_part() -> bytes:
    return relationships_part([Relationship("rId1", DOCUMENT_XML_PATH, RELTYPE_OFFICE_DOCUMENT)])


def write_package(parts: DocxParts) -> bytes:
    """Zip the parts into a DOCX archive and return its bytes."""
    try:
        entries = [
            (CONTENT_TYPES_PATH, content_types_part(parts.relationships.extensions)),
            (PACKAGE_REL_PATH, package_relationships_part()),
            (DOCUMENT_RELS_PATH, parts.relationships.to_xml()),
            (DOCUMENT_XML_PATH, parts.document_xml),
            (STYLES_XML_PATH, parts.styles_xml),
            (NUMBERING_XML_PATH, parts.numbering_xml),
        ]
        entries.extend((f"word/{image.part_name}", image.data) for image in parts.relationships.images)

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for name, data in entries:
                archive.writestr(name, data)
    except (OSError, ValueError, zipfile.BadZipFile) as exc:
        raise PackagingError(f"Failed to assemble DOCX package: {exc}") from exc

    LOGGER.debug("Packaged %d parts (%d images)", len(entries), len(parts.relationships.images))
    return buffer.getvalue()
