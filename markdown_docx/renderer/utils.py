"""Common helpers shared by the WordprocessingML writers.

Both helpers accept a flat dictionary of normalized formatting keys and emit
the children in the order the schema requires (``CT_PPr`` / ``CT_RPr``).
Sizes are points, spacing and indents are twips, colours are hex strings.
"""
from __future__ import annotations

from typing import Dict, Mapping, Optional
from xml.etree import ElementTree as ET

from markdown_docx.model.elements import RunStyle
from markdown_docx.utils.units import points_to_half_points
from markdown_docx.utils.xml_utils import w_element, w_sub

LINK_COLOR = "0563C1"
CODE_CHAR_STYLE = "CodeChar"
HYPERLINK_STYLE = "Hyperlink"

_BORDER_SIDES = ("top", "left", "bottom", "right")


def style_to_run_properties(style: RunStyle) -> Dict[str, object]:
    """Translate inline flags into run formatting keys."""
    props: Dict[str, object] = {}
    if style.code:
        props["style"] = CODE_CHAR_STYLE
    elif style.link:
        props["style"] = HYPERLINK_STYLE
    if style.link:
        props["color"] = LINK_COLOR
        props["underline"] = True
    if style.code:
        return props
    if style.bold:
        props["bold"] = True
    if style.italic:
        props["italic"] = True
    if style.strikethrough:
        props["strike"] = True
    if style.highlight:
        props["highlight"] = "yellow"
    if style.underline:
        props["underline"] = True
    if style.superscript:
        props["vert_align"] = "superscript"
    elif style.subscript:
        props["vert_align"] = "subscript"
    return props


def build_run_properties(props: Mapping[str, object]) -> Optional[ET.Element]:
    """Return a ``w:rPr`` element, or ``None`` when there is nothing to write."""
    if not props:
        return None
    rpr = w_element("w:rPr")
    if props.get("style"):
        w_sub(rpr, "w:rStyle", {"w:val": props["style"]})
    if props.get("font"):
        font = props["font"]
        w_sub(rpr, "w:rFonts", {"w:ascii": font, "w:hAnsi": font, "w:eastAsia": font, "w:cs": font})
    if props.get("bold"):
        w_sub(rpr, "w:b")
        w_sub(rpr, "w:bCs")
    if props.get("italic"):
        w_sub(rpr, "w:i")
        w_sub(rpr, "w:iCs")
    if props.get("strike"):
        w_sub(rpr, "w:strike")
    if props.get("color"):
        w_sub(rpr, "w:color", {"w:val": props["color"]})
    if props.get("size"):
        half_points = points_to_half_points(float(props["size"]))  # type: ignore[arg-type]
        w_sub(rpr, "w:sz", {"w:val": half_points})
        w_sub(rpr, "w:szCs", {"w:val": half_points})
    if props.get("highlight"):
        w_sub(rpr, "w:highlight", {"w:val": props["highlight"]})
    if props.get("underline"):
        w_sub(rpr, "w:u", {"w:val": "single"})
    if props.get("shading"):
        w_sub(rpr, "w:shd", {"w:val": "clear", "w:color": "auto", "w:fill": props["shading"]})
    if props.get("vert_align"):
        w_sub(rpr, "w:vertAlign", {"w:val": props["vert_align"]})
    return rpr


def build_paragraph_properties(props: Mapping[str, object]) -> Optional[ET.Element]:
    """Return a ``w:pPr`` element, or ``None`` when there is nothing to write.

    ``borders`` maps a side to ``(size, color)`` or ``(size, color, space)``;
    ``numbering`` is a ``(num_id, level)`` pair.
    """
    if not props:
        return None
    ppr = w_element("w:pPr")
    if props.get("style"):
        w_sub(ppr, "w:pStyle", {"w:val": props["style"]})
    if props.get("keep_next"):
        w_sub(ppr, "w:keepNext")
    if props.get("keep_lines"):
        w_sub(ppr, "w:keepLines")
    if props.get("numbering"):
        num_id, level = props["numbering"]  # type: ignore[misc]
        numpr = w_sub(ppr, "w:numPr")
        w_sub(numpr, "w:ilvl", {"w:val": level})
        w_sub(numpr, "w:numId", {"w:val": num_id})
    borders = props.get("borders")
    if borders:
        pbdr = w_sub(ppr, "w:pBdr")
        for side in _BORDER_SIDES:
            border = borders.get(side)  # type: ignore[union-attr]
            if border is None:
                continue
            size, color, *rest = border
            space = rest[0] if rest else 4
            w_sub(pbdr, f"w:{side}", {"w:val": "single", "w:sz": size, "w:space": space, "w:color": color})
    if props.get("shading"):
        w_sub(ppr, "w:shd", {"w:val": "clear", "w:color": "auto", "w:fill": props["shading"]})
    spacing = {}
    if "spacing_before" in props:
        spacing["w:before"] = props["spacing_before"]
    if "spacing_after" in props:
        spacing["w:after"] = props["spacing_after"]
    if "line" in props:
        spacing["w:line"] = props["line"]
        spacing["w:lineRule"] = props.get("line_rule", "auto")
    if spacing:
        w_sub(ppr, "w:spacing", spacing)
    indent = {}
    if "indent_left" in props:
        indent["w:left"] = props["indent_left"]
    if "indent_right" in props:
        indent["w:right"] = props["indent_right"]
    if "hanging" in props:
        indent["w:hanging"] = props["hanging"]
    if indent:
        w_sub(ppr, "w:ind", indent)
    if props.get("contextual_spacing"):
        w_sub(ppr, "w:contextualSpacing")
    if props.get("justification"):
        w_sub(ppr, "w:jc", {"w:val": props["justification"]})
    if "outline_level" in props:
        w_sub(ppr, "w:outlineLvl", {"w:val": props["outline_level"]})
    return ppr
