"""Build the style catalog for a conversion and serialize it as styles.xml."""
from __future__ import annotations

from typing import List

from markdown_docx.config import ResolvedTypography
from markdown_docx.model.style_model import StyleDefinition, StylesCatalog
from markdown_docx.renderer.utils import (
    CODE_CHAR_STYLE,
    HYPERLINK_STYLE,
    LINK_COLOR,
    build_paragraph_properties,
    build_run_properties,
)
from markdown_docx.utils.units import line_height_to_spacing
from markdown_docx.utils.xml_utils import serialize, w_element, w_sub

CODE_BLOCK_STYLE = "CodeBlock"
CODE_INK = "2F3337"
CODE_BLOCK_FILL = "F8F8F8"
CODE_BLOCK_BORDER = "E1E4E8"
CODE_CHAR_FILL = "F5F5F5"
DEFAULT_LINE = 276
CODE_SIZE_RATIO = 0.9


def heading_style_id(level: int) -> str:
    return f"Heading{level}"


def build_styles_catalog(typography: ResolvedTypography) -> StylesCatalog:
    """Styles every conversion emits, sized from the resolved typography."""
    line = line_height_to_spacing(typography.line_height) if typography.line_height else DEFAULT_LINE
    defaults = {
        "run": {"font": typography.text_font, "size": typography.base_size},
        "paragraph": {"spacing_after": 120, "line": line, "line_rule": "auto"},
    }

    styles: List[StyleDefinition] = [
        StyleDefinition(
            style_id="Normal",
            style_type="paragraph",
            name="Normal",
            run={"font": typography.text_font, "size": typography.base_size},
            is_default=True,
            is_primary=True,
        )
    ]
    for level, size in enumerate(typography.heading_sizes[:6], start=1):
        styles.append(
            StyleDefinition(
                style_id=heading_style_id(level),
                style_type="paragraph",
                name=f"heading {level}",
                paragraph={
                    "keep_next": True,
                    "keep_lines": True,
                    "spacing_before": 240,
                    "spacing_after": 120,
                    "outline_level": level - 1,
                },
                run={"font": typography.text_font, "bold": True, "size": size},
                based_on="Normal",
                next_style="Normal",
                ui_priority=9,
                is_primary=True,
            )
        )

    code_size = round(typography.base_size * CODE_SIZE_RATIO * 2) / 2
    styles.extend(
        [
            StyleDefinition(
                style_id=CODE_CHAR_STYLE,
                style_type="character",
                name="Code Char",
                run={"font": typography.monospace_font, "size": code_size, "shading": CODE_CHAR_FILL},
                ui_priority=99,
            ),
            StyleDefinition(
                style_id=CODE_BLOCK_STYLE,
                style_type="paragraph",
                name="Code Block",
                paragraph={
                    "borders": {side: (4, CODE_BLOCK_BORDER) for side in ("top", "left", "bottom", "right")},
                    "shading": CODE_BLOCK_FILL,
                    "spacing_before": 0,
                    "spacing_after": 0,
                    "line": 240,
                    "indent_left": 240,
                    "indent_right": 240,
                },
                run={"font": typography.monospace_font, "size": code_size, "color": CODE_INK},
                based_on="Normal",
                ui_priority=99,
            ),
            StyleDefinition(
                style_id=HYPERLINK_STYLE,
                style_type="character",
                name="Hyperlink",
                run={"color": LINK_COLOR, "underline": True},
                ui_priority=99,
            ),
        ]
    )
    return StylesCatalog(styles, defaults=defaults)


class StylesWriter:
    """Serialize a :class:`StylesCatalog` into ``word/styles.xml``."""

    def __init__(self, catalog: StylesCatalog) -> None:
        self._catalog = catalog

    def to_xml(self) -> bytes:
        self._check_references()
        root = w_element("w:styles")
        self._write_defaults(root)
        for style in self._catalog:
            self._write_style(root, style)
        return serialize(root)

    def _check_references(self) -> None:
        if self._catalog.default_for("paragraph") is None:
            raise ValueError("Styles catalog has no default paragraph style")
        for style in self._catalog:
            for target in (style.based_on, style.next_style):
                if target is not None and self._catalog.get(target) is None:
                    raise ValueError(f"Style {style.style_id!r} refers to unknown style {target!r}")

    def _write_defaults(self, root) -> None:
        doc_defaults = w_sub(root, "w:docDefaults")
        rpr = build_run_properties(self._catalog.defaults.get("run", {}))
        if rpr is not None:
            w_sub(doc_defaults, "w:rPrDefault").append(rpr)
        ppr = build_paragraph_properties(self._catalog.defaults.get("paragraph", {}))
        if ppr is not None:
            w_sub(doc_defaults, "w:pPrDefault").append(ppr)

    @staticmethod
    def _write_style(root, style: StyleDefinition) -> None:
        attrib = {"w:type": style.style_type}
        if style.is_default:
            attrib["w:default"] = "1"
        attrib["w:styleId"] = style.style_id
        element = w_sub(root, "w:style", attrib)
        w_sub(element, "w:name", {"w:val": style.name})
        if style.based_on:
            w_sub(element, "w:basedOn", {"w:val": style.based_on})
        if style.next_style:
            w_sub(element, "w:next", {"w:val": style.next_style})
        if style.ui_priority is not None:
            w_sub(element, "w:uiPriority", {"w:val": style.ui_priority})
        if style.is_primary:
            w_sub(element, "w:qFormat")
        ppr = build_paragraph_properties(style.paragraph)
        if ppr is not None:
            element.append(ppr)
        rpr = build_run_properties(style.run)
        if rpr is not None:
            element.append(rpr)
