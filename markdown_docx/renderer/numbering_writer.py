"""Serialize numbering definitions into numbering.xml."""
from __future__ import annotations

from xml.etree import ElementTree as ET

from markdown_docx.model.numbering_model import (
    AbstractNumberingDefinition,
    NumberingCatalog,
    NumberingInstance,
    NumberingLevel,
)
from markdown_docx.utils.xml_utils import serialize, w_element, w_sub


class NumberingWriter:
    """Writer for the abstract definitions and instances of a :class:`NumberingCatalog`."""

    def __init__(self, catalog: NumberingCatalog) -> None:
        self._catalog = catalog

    def to_xml(self) -> bytes:
        root = w_element("w:numbering")
        # Every abstractNum must precede the first num
        for abstract in self._catalog.abstracts.values():
            root.append(self._abstract_element(abstract))
        for instance in self._catalog.instances.values():
            root.append(self._instance_element(instance))
        return serialize(root)

    # ------------------------------------------------------------------
    def _abstract_element(self, abstract: AbstractNumberingDefinition) -> ET.Element:
        element = w_element("w:abstractNum", {"w:abstractNumId": abstract.abstract_num_id})
        w_sub(element, "w:multiLevelType", {"w:val": abstract.multi_level_type})
        for index in sorted(abstract.levels):
            element.append(self._level_element(abstract.levels[index]))
        return element

    @staticmethod
    def _level_element(level: NumberingLevel) -> ET.Element:
        element = w_element("w:lvl", {"w:ilvl": level.level_index})
        w_sub(element, "w:start", {"w:val": level.start})
        w_sub(element, "w:numFmt", {"w:val": level.num_format})
        w_sub(element, "w:lvlText", {"w:val": level.level_text})
        w_sub(element, "w:lvlJc", {"w:val": level.alignment})
        ppr = w_sub(element, "w:pPr")
        w_sub(ppr, "w:ind", {"w:left": level.indent_left, "w:hanging": level.hanging})
        return element

    def _instance_element(self, instance: NumberingInstance) -> ET.Element:
        abstract = self._catalog.abstract_for(instance.num_id)
        element = w_element("w:num", {"w:numId": instance.num_id})
        w_sub(element, "w:abstractNumId", {"w:val": instance.abstract_num_id})
        for index in sorted(instance.overrides):
            if index not in abstract.levels:
                raise ValueError(f"numId {instance.num_id} overrides undefined level {index}")
            override = instance.overrides[index]
            lvl_override = w_sub(element, "w:lvlOverride", {"w:ilvl": override.level_index})
            w_sub(lvl_override, "w:startOverride", {"w:val": override.start_override})
        return element
