"""Serialize parsed block elements into ``word/document.xml``."""
from __future__ import annotations

import re
from itertools import groupby
from typing import Dict, List, Mapping, Optional, Tuple
from xml.etree import ElementTree as ET

from markdown_docx.model.document_model import ConversionContext, ElementOutcome
from markdown_docx.model.elements import (
    Blockquote,
    Break,
    CodeBlock,
    DocumentElement,
    Heading,
    HorizontalRule,
    Image,
    ListBlock,
    Paragraph,
    SectionProperties,
    StyleRun,
    Table,
    TaskList,
    element_kind,
)
from markdown_docx.model.numbering_model import BULLET_NUM_ID
from markdown_docx.parser.inline_parser import InlineFormatter
from markdown_docx.parser.layout_calculator import LayoutCalculator
from markdown_docx.parser.media_extractor import detect_format
from markdown_docx.renderer.highlighter import SyntaxHighlighter
from markdown_docx.renderer.relationships import is_external_link
from markdown_docx.renderer.styles_writer import CODE_BLOCK_STYLE, heading_style_id
from markdown_docx.renderer.utils import (
    build_paragraph_properties,
    build_run_properties,
    style_to_run_properties,
)
from markdown_docx.utils.logger import get_logger
from markdown_docx.utils.text_normalizer import strip_control_chars
from markdown_docx.utils.xml_utils import XML_SPACE, serialize, w_element, w_sub

LOGGER = get_logger(__name__)

# (fill, border) per callout kind
CALLOUT_COLORS: Dict[str, Tuple[str, str]] = {
    "note": ("E7F3FF", "2196F3"),
    "tip": ("E8F5E8", "4CAF50"),
    "warning": ("FFF8E1", "FF9800"),
    "error": ("FFEBEE", "F44336"),
    "success": ("E8F5E8", "4CAF50"),
    "info": ("E3F2FD", "2196F3"),
}
CALLOUT_TITLE = re.compile(r"^\*\*([A-Za-z]+):\s*(.*?)\*\*\s*$")
FOOTNOTES_HEADING = re.compile(r"^footnotes?$", re.IGNORECASE)

QUOTE_BORDER_COLOR = "CCCCCC"
TABLE_BORDER_COLOR = "BFBFBF"
TABLE_HEADER_FILL = "E7E6E6"
LIST_INDENT = 720
LIST_LEVEL_STEP = 540
QUOTE_INDENT = 720
TASK_GLYPHS = {False: "☐", True: "☑"}
DRAWING_PICTURE_URI = "http://schemas.openxmlformats.org/drawingml/2006/picture"

_COMPACT_SPACING = {"spacing_before": 60, "spacing_after": 60}


class DocumentRenderer:
    """Turns elements into body paragraphs and tables for a single conversion.

    Every element is rendered in isolation: a handler that raises leaves a
    visible ``[Error processing <kind>]`` paragraph in the body and an
    :class:`ElementOutcome` in the report, and the walk continues.
    """

    def __init__(self, context: ConversionContext) -> None:
        self._context = context
        self._formatter = InlineFormatter(
            footnotes=context.footnotes,
            preserve_formatting=context.settings.preserve_formatting,
        )
        self._highlighter = SyntaxHighlighter()
        self._layout = LayoutCalculator(context.typography.base_size)
        width, height = context.settings.page_dimensions
        self._section = SectionProperties(page_width=width, page_height=height)
        self._drawing_id = 0

    def render(self, elements: List[DocumentElement]) -> bytes:
        document = w_element("w:document")
        body = w_sub(document, "w:body")

        for index, element in enumerate(elements):
            body.extend(self.render_element(index, element))
        self._context.report.element_count += len(elements)

        if self._context.footnotes and not _has_footnotes_heading(elements):
            body.extend(self._footnotes_section())

        body.append(self._section_properties())
        return serialize(document)

    def render_element(self, index: int, element: DocumentElement) -> List[ET.Element]:
        """Fragments for one element, or an error placeholder if its handler fails."""
        try:
            return self._dispatch(element)
        except Exception as exc:  # becomes a placeholder paragraph
            kind = element_kind(element)
            LOGGER.warning("Failed to render %s #%d: %s", kind, index, exc)
            self._context.report.element_failures.append(ElementOutcome(index, kind, str(exc)))
            return [self._text_paragraph(f"[Error processing {kind}]")]

    def _dispatch(self, element: DocumentElement) -> List[ET.Element]:
        if isinstance(element, Paragraph):
            return [self._paragraph(element.text)]
        if isinstance(element, Heading):
            return [self._heading(element)]
        if isinstance(element, ListBlock):
            return self._list(element)
        if isinstance(element, TaskList):
            return self._task_list(element)
        if isinstance(element, Table):
            return [self._table(element)]
        if isinstance(element, CodeBlock):
            return self._code_block(element)
        if isinstance(element, Blockquote):
            return self._blockquote(element)
        if isinstance(element, HorizontalRule):
            return [self._horizontal_rule()]
        if isinstance(element, Image):
            return [self._image(element)]
        if isinstance(element, Break):
            return [w_element("w:p")]
        raise TypeError(f"Unsupported element type: {type(element).__name__}")

    # ------------------------------------------------------------------
    # Block handlers
    # ------------------------------------------------------------------
    def _paragraph(self, text: str, paragraph_props: Optional[Mapping[str, object]] = None) -> ET.Element:
        paragraph = self._new_paragraph(paragraph_props)
        self._append_runs(paragraph, self._formatter.format(text))
        return paragraph

    def _heading(self, heading: Heading) -> ET.Element:
        return self._paragraph(heading.text, {"style": heading_style_id(heading.level)})

    def _list(self, block: ListBlock) -> List[ET.Element]:
        num_id = self._context.numbering.start_ordered_list() if block.ordered else BULLET_NUM_ID
        paragraphs = []
        for item in block.items:
            props = {
                "numbering": (num_id, item.level),
                "indent_left": LIST_INDENT + item.level * LIST_LEVEL_STEP,
                "hanging": 360 if item.level == 0 else 270,
                **_COMPACT_SPACING,
            }
            paragraphs.append(self._paragraph(item.text, props))
        return paragraphs

    def _task_list(self, block: TaskList) -> List[ET.Element]:
        paragraphs = []
        for item in block.items:
            paragraph = self._new_paragraph({"indent_left": LIST_INDENT, "hanging": 360, **_COMPACT_SPACING})
            paragraph.append(self._run(f"{TASK_GLYPHS[item.checked]} ", {}))
            self._append_runs(paragraph, self._formatter.format(item.text))
            paragraphs.append(paragraph)
        return paragraphs

    def _table(self, table: Table) -> ET.Element:
        column_count = table.column_count
        grid = self._layout.table_grid(table, self._section.content_width)

        tbl = w_element("w:tbl")
        tbl_pr = w_sub(tbl, "w:tblPr")
        w_sub(tbl_pr, "w:tblW", {"w:w": 5000, "w:type": "pct"})
        borders = w_sub(tbl_pr, "w:tblBorders")
        for side in ("top", "left", "bottom", "right", "insideH", "insideV"):
            w_sub(borders, f"w:{side}", {"w:val": "single", "w:sz": 4, "w:space": 0, "w:color": TABLE_BORDER_COLOR})
        w_sub(tbl_pr, "w:tblLayout", {"w:type": "fixed"})
        w_sub(tbl_pr, "w:tblLook", {"w:val": "04A0", "w:firstRow": 1, "w:lastRow": 0, "w:firstColumn": 0,
                                    "w:lastColumn": 0, "w:noHBand": 0, "w:noVBand": 1})

        tbl_grid = w_sub(tbl, "w:tblGrid")
        for width in grid:
            w_sub(tbl_grid, "w:gridCol", {"w:w": width})

        for row_index, row in enumerate(table.rows):
            header = row_index == 0
            tr = w_sub(tbl, "w:tr")
            if header:
                w_sub(w_sub(tr, "w:trPr"), "w:tblHeader")
            cells = list(row[:column_count]) + [""] * (column_count - len(row))
            for column, cell in enumerate(cells):
                tc = w_sub(tr, "w:tc")
                tc_pr = w_sub(tc, "w:tcPr")
                w_sub(tc_pr, "w:tcW", {"w:w": grid[column] if column < len(grid) else 0, "w:type": "dxa"})
                if header:
                    w_sub(tc_pr, "w:shd", {"w:val": "clear", "w:color": "auto", "w:fill": TABLE_HEADER_FILL})
                alignment = table.alignments[column] if column < len(table.alignments) else "left"
                paragraph = self._new_paragraph(
                    {"spacing_before": 40, "spacing_after": 40, "justification": alignment}
                )
                self._append_runs(paragraph, self._formatter.format(cell), {"bold": True} if header else None)
                tc.append(paragraph)
        return tbl

    def _code_block(self, block: CodeBlock) -> List[ET.Element]:
        props = {"style": CODE_BLOCK_STYLE, "line": 240}
        highlighted = self._highlighter.highlight(block.text, block.language)
        if highlighted is None:
            if block.language:
                LOGGER.warning("Rendering %s code without highlighting", block.language)
                self._context.report.highlight_fallbacks.append(block.language)
            return [self._text_paragraph(line, props) for line in block.text.split("\n")]

        paragraphs = []
        for line in highlighted:
            paragraph = self._new_paragraph(props)
            for text, color in line:
                paragraph.append(self._run(text, {"color": color}))
            paragraphs.append(paragraph)
        return paragraphs

    def _blockquote(self, quote: Blockquote) -> List[ET.Element]:
        lines = quote.text.split("\n")
        callout = CALLOUT_TITLE.match(lines[0])
        indent = QUOTE_INDENT * quote.level
        if callout is None:
            props = {"borders": {"left": (12, QUOTE_BORDER_COLOR, 4)}, **_COMPACT_SPACING, "indent_left": indent}
            return [self._paragraph(line, props) for line in lines]

        kind, title = callout.group(1), callout.group(2).strip()
        fill, border = CALLOUT_COLORS.get(kind.lower(), CALLOUT_COLORS["note"])
        props = {
            "borders": {
                "top": (6, border, 4),
                "left": (18, border, 4),
                "bottom": (6, border, 4),
                "right": (6, border, 4),
            },
            "shading": fill,
            **_COMPACT_SPACING,
            "indent_left": indent,
        }
        heading = self._new_paragraph(props)
        heading.append(self._run(f"{kind.upper()}: {title}" if title else kind.upper(), {"bold": True, "color": border}))
        return [heading] + [self._paragraph(line, props) for line in lines[1:]]

    def _horizontal_rule(self) -> ET.Element:
        return self._new_paragraph(
            {"borders": {"bottom": (8, "auto", 1)}, "spacing_before": 120, "spacing_after": 120}
        )

    def _image(self, image: Image) -> ET.Element:
        if not image.data:
            return self._text_paragraph(f"[Image not found: {image.alt_text}]", {"justification": "center"})

        extent = self._layout.image_extent(image)
        relationship = self._context.relationships.add_image(image.data, detect_format(image.data))
        self._drawing_id += 1
        name = f"image{relationship.media_index}.{relationship.extension}"

        paragraph = self._new_paragraph({"justification": "center"})
        drawing = w_sub(w_sub(paragraph, "w:r"), "w:drawing")
        inline = w_sub(drawing, "wp:inline", {"distT": 0, "distB": 0, "distL": 0, "distR": 0})
        w_sub(inline, "wp:extent", {"cx": extent.cx, "cy": extent.cy})
        w_sub(inline, "wp:effectExtent", {"l": 0, "t": 0, "r": 0, "b": 0})
        w_sub(inline, "wp:docPr", {"id": self._drawing_id, "name": name, "descr": image.alt_text})
        frame = w_sub(inline, "wp:cNvGraphicFramePr")
        w_sub(frame, "a:graphicFrameLocks", {"noChangeAspect": 1})
        graphic_data = w_sub(w_sub(inline, "a:graphic"), "a:graphicData", {"uri": DRAWING_PICTURE_URI})
        pic = w_sub(graphic_data, "pic:pic")
        nv_pic_pr = w_sub(pic, "pic:nvPicPr")
        w_sub(nv_pic_pr, "pic:cNvPr", {"id": 0, "name": name})
        w_sub(nv_pic_pr, "pic:cNvPicPr")
        blip_fill = w_sub(pic, "pic:blipFill")
        w_sub(blip_fill, "a:blip", {"r:embed": relationship.relationship_id})
        w_sub(w_sub(blip_fill, "a:stretch"), "a:fillRect")
        sp_pr = w_sub(pic, "pic:spPr")
        xfrm = w_sub(sp_pr, "a:xfrm")
        w_sub(xfrm, "a:off", {"x": 0, "y": 0})
        w_sub(xfrm, "a:ext", {"cx": extent.cx, "cy": extent.cy})
        w_sub(w_sub(sp_pr, "a:prstGeom", {"prst": "rect"}), "a:avLst")
        return paragraph

    def _footnotes_section(self) -> List[ET.Element]:
        fragments = [w_element("w:p"), self._paragraph("Footnotes", {"style": heading_style_id(2)})]
        footnotes = self._context.footnotes
        # Definitions may reference further footnotes, which extends the order
        index = 0
        while index < len(footnotes.order):
            label = footnotes.order[index]
            index += 1
            paragraph = self._new_paragraph(None)
            paragraph.append(self._run(f"{index}. ", {}))
            self._append_runs(paragraph, self._formatter.format(footnotes.text_for(label)))
            fragments.append(paragraph)
        return fragments

    def _section_properties(self) -> ET.Element:
        section = self._section
        sect_pr = w_element("w:sectPr")
        w_sub(sect_pr, "w:pgSz", {"w:w": section.page_width, "w:h": section.page_height})
        w_sub(
            sect_pr,
            "w:pgMar",
            {
                "w:top": section.margin_top,
                "w:right": section.margin_right,
                "w:bottom": section.margin_bottom,
                "w:left": section.margin_left,
                "w:header": section.margin_header,
                "w:footer": section.margin_footer,
                "w:gutter": 0,
            },
        )
        return sect_pr

    # ------------------------------------------------------------------
    # Paragraph and run helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _new_paragraph(props: Optional[Mapping[str, object]]) -> ET.Element:
        paragraph = w_element("w:p")
        ppr = build_paragraph_properties(props or {})
        if ppr is not None:
            paragraph.append(ppr)
        return paragraph

    def _text_paragraph(self, text: str, props: Optional[Mapping[str, object]] = None) -> ET.Element:
        paragraph = self._new_paragraph(props)
        if text:
            paragraph.append(self._run(text, {}))
        return paragraph

    def _append_runs(
        self,
        paragraph: ET.Element,
        runs: List[StyleRun],
        extra: Optional[Mapping[str, object]] = None,
    ) -> None:
        for target, group in groupby(runs, key=lambda run: run.style.link):
            container = paragraph
            if target and is_external_link(target):
                relationship = self._context.relationships.add_hyperlink(target)
                container = w_sub(paragraph, "w:hyperlink", {"r:id": relationship.relationship_id, "w:history": 1})
            for run in group:
                props = style_to_run_properties(run.style)
                if extra:
                    props.update(extra)
                container.append(self._run(run.text, props))

    @staticmethod
    def _run(text: str, props: Mapping[str, object]) -> ET.Element:
        run = w_element("w:r")
        rpr = build_run_properties(props)
        if rpr is not None:
            run.append(rpr)
        text_element = w_sub(run, "w:t")
        text_element.set(XML_SPACE, "preserve")
        text_element.text = strip_control_chars(text)
        return run


def _has_footnotes_heading(elements: List[DocumentElement]) -> bool:
    return any(
        isinstance(element, Heading) and FOOTNOTES_HEADING.match(element.text.strip()) for element in elements
    )
