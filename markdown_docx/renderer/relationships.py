"""Open Packaging Convention relationships for the generated package."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List
from xml.etree import ElementTree as ET

from markdown_docx.model.elements import HyperlinkRelationship, ImageRelationship
from markdown_docx.utils.xml_utils import Namespaces, package_element, serialize

WORD_REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"

RELTYPE_OFFICE_DOCUMENT = f"{WORD_REL_NS}/officeDocument"
RELTYPE_STYLES = f"{WORD_REL_NS}/styles"
RELTYPE_NUMBERING = f"{WORD_REL_NS}/numbering"
RELTYPE_IMAGE = f"{WORD_REL_NS}/image"
RELTYPE_HYPERLINK = f"{WORD_REL_NS}/hyperlink"

STYLES_RELATIONSHIP_ID = "rId1"
NUMBERING_RELATIONSHIP_ID = "rId2"

HYPERLINK_SCHEMES = ("http://", "https://", "mailto:")


@dataclass(frozen=True)
class Relationship:
    """Represents a single OPC relationship."""

    r_id: str
    target: str
    rel_type: str
    is_external: bool = False


class RelationshipTable:
    """Allocates relationship ids for ``word/document.xml`` within one conversion.

    Styles and numbering always take the first two ids; images and external
    hyperlinks follow in the order they are encountered.
    """

    def __init__(self) -> None:
        self._relationships: List[Relationship] = [
            Relationship(STYLES_RELATIONSHIP_ID, "styles.xml", RELTYPE_STYLES),
            Relationship(NUMBERING_RELATIONSHIP_ID, "numbering.xml", RELTYPE_NUMBERING),
        ]
        self.images: List[ImageRelationship] = []
        self._hyperlinks: Dict[str, HyperlinkRelationship] = {}

    def _next_id(self) -> str:
        return f"rId{len(self._relationships) + 1}"

    def add_image(self, data: bytes, extension: str) -> ImageRelationship:
        image = ImageRelationship(
            relationship_id=self._next_id(),
            data=data,
            extension=extension,
            media_index=len(self.images) + 1,
        )
        self._relationships.append(Relationship(image.relationship_id, image.part_name, RELTYPE_IMAGE))
        self.images.append(image)
        return image

    def add_hyperlink(self, target: str) -> HyperlinkRelationship:
        """Register an external link; the same target reuses its relationship."""
        existing = self._hyperlinks.get(target)
        if existing is not None:
            return existing
        link = HyperlinkRelationship(self._next_id(), target)
        self._relationships.append(Relationship(link.relationship_id, target, RELTYPE_HYPERLINK, is_external=True))
        self._hyperlinks[target] = link
        return link

    def all(self) -> List[Relationship]:
        return list(self._relationships)

    @property
    def extensions(self) -> List[str]:
        """Image extensions in first-use order, without duplicates."""
        seen: List[str] = []
        for image in self.images:
            if image.extension not in seen:
                seen.append(image.extension)
        return seen

    def to_xml(self) -> bytes:
        return relationships_part(self.all())


def is_external_link(target: str) -> bool:
    return target.lower().startswith(HYPERLINK_SCHEMES)


def relationships_part(relationships: List[Relationship]) -> bytes:
    """Serialize a ``.rels`` part."""
    root = package_element("Relationships", Namespaces.RELS["rel"])
    for rel in relationships:
        element = ET.SubElement(root, "Relationship")
        element.set("Id", rel.r_id)
        element.set("Type", rel.rel_type)
        element.set("Target", rel.target)
        if rel.is_external:
            element.set("TargetMode", "External")
    return serialize(root)
