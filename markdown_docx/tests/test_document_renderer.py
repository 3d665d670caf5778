"""Test cases for WordprocessingML body serialization."""

import unittest
from unittest import mock
from xml.etree import ElementTree as ET

from markdown_docx.config import ConversionSettings, resolve_typography
from markdown_docx.model.document_model import ConversionContext, FootnoteTable
from markdown_docx.model.elements import (
    Blockquote,
    Break,
    CodeBlock,
    Heading,
    HorizontalRule,
    Image,
    ListBlock,
    ListItem,
    Paragraph,
    Table,
    TaskItem,
    TaskList,
)
from markdown_docx.model.numbering_model import NumberingCatalog
from markdown_docx.parser.layout_calculator import LayoutCalculator
from markdown_docx.renderer.document_renderer import DocumentRenderer
from markdown_docx.renderer.relationships import RelationshipTable

W = "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}"
R = "{http://schemas.openxmlformats.org/officeDocument/2006/relationships}"
WP = "{http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing}"


def make_context(**settings):
    conversion_settings = ConversionSettings(**settings)
    return ConversionContext(
        settings=conversion_settings,
        typography=resolve_typography(conversion_settings),
        relationships=RelationshipTable(),
        numbering=NumberingCatalog.default(),
    )


def text_of(element):
    return "".join(node.text or "" for node in element.iter(f"{W}t"))


def png_bytes(width, height):
    return b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR" + width.to_bytes(4, "big") + height.to_bytes(4, "big")


class DocumentRendererTest(unittest.TestCase):
    """Test per-element output."""

    def setUp(self):
        """Set up test fixtures."""
        self.context = make_context()

    def render(self, elements):
        root = ET.fromstring(DocumentRenderer(self.context).render(elements))
        body = root.find(f"{W}body")
        return [child for child in body if child.tag != f"{W}sectPr"]

    def test_paragraph_runs(self):
        (paragraph,) = self.render([Paragraph("plain **bold**")])
        runs = paragraph.findall(f"{W}r")
        self.assertEqual([text_of(run) for run in runs], ["plain ", "bold"])
        self.assertIsNone(runs[0].find(f"{W}rPr"))
        self.assertIsNotNone(runs[1].find(f"{W}rPr/{W}b"))
        space = runs[0].find(f"{W}t").get("{http://www.w3.org/XML/1998/namespace}space")
        self.assertEqual(space, "preserve")

    def test_heading_style(self):
        (paragraph,) = self.render([Heading("Title", 2)])
        self.assertEqual(paragraph.find(f"{W}pPr/{W}pStyle").get(f"{W}val"), "Heading2")
        self.assertEqual(text_of(paragraph), "Title")

    def test_lists_numbering(self):
        elements = [
            ListBlock(False, [ListItem("dot", 0), ListItem("sub", 1)]),
            ListBlock(True, [ListItem("one", 0)]),
            Paragraph("gap"),
            ListBlock(True, [ListItem("again", 0)]),
        ]
        paragraphs = self.render(elements)
        num_ids = [p.find(f"{W}pPr/{W}numPr/{W}numId") for p in paragraphs]
        values = [None if num is None else num.get(f"{W}val") for num in num_ids]
        self.assertEqual(values, ["1", "1", "2", None, "3"])
        self.assertEqual(paragraphs[1].find(f"{W}pPr/{W}numPr/{W}ilvl").get(f"{W}val"), "1")
        self.assertEqual(paragraphs[1].find(f"{W}pPr/{W}ind").get(f"{W}left"), "1260")

    def test_task_glyphs(self):
        paragraphs = self.render([TaskList([TaskItem(False, "todo"), TaskItem(True, "done")])])
        self.assertEqual([text_of(p) for p in paragraphs], ["☐ todo", "☑ done"])

    def test_table(self):
        table = Table(rows=[["Name", "Qty"], ["Apple", "3"]], alignments=["left", "right"])
        (tbl,) = self.render([table])
        self.assertEqual(tbl.tag, f"{W}tbl")
        self.assertEqual(len(tbl.findall(f"{W}tblGrid/{W}gridCol")), 2)
        rows = tbl.findall(f"{W}tr")
        self.assertIsNotNone(rows[0].find(f"{W}trPr/{W}tblHeader"))
        self.assertIsNone(rows[1].find(f"{W}trPr"))
        header_cell = rows[0].find(f"{W}tc")
        self.assertEqual(header_cell.find(f"{W}tcPr/{W}shd").get(f"{W}fill"), "E7E6E6")
        self.assertIsNotNone(header_cell.find(f"{W}p/{W}r/{W}rPr/{W}b"))
        qty_cell = rows[1].findall(f"{W}tc")[1]
        self.assertEqual(qty_cell.find(f"{W}p/{W}pPr/{W}jc").get(f"{W}val"), "right")

    def test_short_rows_padded(self):
        (tbl,) = self.render([Table(rows=[["a", "b", "c"], ["only"]])])
        self.assertEqual(len(tbl.findall(f"{W}tr")[1].findall(f"{W}tc")), 3)

    def test_highlighted_code(self):
        paragraphs = self.render([CodeBlock("x = 1\nreturn x", "python")])
        self.assertEqual(len(paragraphs), 2)
        self.assertEqual(paragraphs[0].find(f"{W}pPr/{W}pStyle").get(f"{W}val"), "CodeBlock")
        colors = {run.find(f"{W}rPr/{W}color").get(f"{W}val") for run in paragraphs[1].findall(f"{W}r")}
        self.assertIn("0000FF", colors)
        self.assertEqual(self.context.report.highlight_fallbacks, [])

    def test_unknown_language_falls_back(self):
        paragraphs = self.render([CodeBlock("some code", "nosuchlang")])
        self.assertEqual(text_of(paragraphs[0]), "some code")
        self.assertEqual(self.context.report.highlight_fallbacks, ["nosuchlang"])

    def test_plain_blockquote(self):
        paragraphs = self.render([Blockquote("quoted\nlines", 2)])
        self.assertEqual(len(paragraphs), 2)
        left = paragraphs[0].find(f"{W}pPr/{W}pBdr/{W}left")
        self.assertEqual((left.get(f"{W}sz"), left.get(f"{W}color")), ("12", "CCCCCC"))
        self.assertEqual(paragraphs[0].find(f"{W}pPr/{W}ind").get(f"{W}left"), "1440")

    def test_callout(self):
        paragraphs = self.render([Blockquote("**WARNING: Careful**\nbody text")])
        title, body = paragraphs
        self.assertEqual(text_of(title), "WARNING: Careful")
        self.assertEqual(title.find(f"{W}r/{W}rPr/{W}color").get(f"{W}val"), "FF9800")
        self.assertEqual(title.find(f"{W}pPr/{W}shd").get(f"{W}fill"), "FFF8E1")
        self.assertEqual(body.find(f"{W}pPr/{W}pBdr/{W}left").get(f"{W}sz"), "18")
        self.assertEqual(text_of(body), "body text")

    def test_unknown_callout_uses_note_colors(self):
        (title,) = self.render([Blockquote("**CUSTOM: x**")])
        self.assertEqual(title.find(f"{W}pPr/{W}shd").get(f"{W}fill"), "E7F3FF")

    def test_rule_and_break(self):
        rule, blank = self.render([HorizontalRule(), Break()])
        self.assertIsNotNone(rule.find(f"{W}pPr/{W}pBdr/{W}bottom"))
        self.assertEqual(len(blank), 0)

    def test_missing_image_placeholder(self):
        (paragraph,) = self.render([Image("diagram", "missing.png")])
        self.assertEqual(text_of(paragraph), "[Image not found: diagram]")
        self.assertEqual(paragraph.find(f"{W}pPr/{W}jc").get(f"{W}val"), "center")
        self.assertEqual(self.context.relationships.images, [])

    def test_embedded_image(self):
        (paragraph,) = self.render([Image("chart", "c.png", data=png_bytes(600, 400), explicit_width=300)])
        inline = paragraph.find(f"{W}r/{W}drawing/{WP}inline")
        extent = inline.find(f"{WP}extent")
        self.assertEqual((extent.get("cx"), extent.get("cy")), (str(300 * 9525), str(200 * 9525)))
        blip = inline.find(".//{http://schemas.openxmlformats.org/drawingml/2006/main}blip")
        self.assertEqual(blip.get(f"{R}embed"), "rId3")
        self.assertEqual(self.context.relationships.images[0].part_name, "media/image1.png")

    def test_sliver_image_is_drawn(self):
        (paragraph,) = self.render([Image("sliver", "s.png", data=png_bytes(4, 8000))])
        extent = paragraph.find(f"{W}r/{W}drawing/{WP}inline/{WP}extent")
        self.assertEqual((extent.get("cx"), extent.get("cy")), (str(100 * 9525), str(450 * 9525)))

    def test_failed_image_leaves_no_media(self):
        with mock.patch.object(LayoutCalculator, "image_extent", side_effect=ValueError("bad size")):
            (paragraph,) = self.render([Image("chart", "c.png", data=png_bytes(10, 10))])
        self.assertEqual(text_of(paragraph), "[Error processing image]")
        self.assertEqual(self.context.relationships.images, [])
        self.assertEqual([rel.r_id for rel in self.context.relationships.all()], ["rId1", "rId2"])

    def test_external_hyperlink(self):
        (paragraph,) = self.render([Paragraph("[site](https://example.com) and [note](Note.md)")])
        hyperlink = paragraph.find(f"{W}hyperlink")
        self.assertEqual(hyperlink.get(f"{R}id"), "rId3")
        self.assertEqual(text_of(hyperlink), "site")
        self.assertEqual(len(paragraph.findall(f"{W}hyperlink")), 1)
        self.assertIn("note", text_of(paragraph))

    def test_footnotes_section(self):
        self.context.footnotes = FootnoteTable(definitions={"a": "Alpha", "b": "Beta", "unused": "Never"})
        paragraphs = self.render([Paragraph("First[^b] second[^a]")])
        texts = [text_of(p) for p in paragraphs]
        self.assertEqual(texts[-3:], ["Footnotes", "1. Beta", "2. Alpha"])
        self.assertEqual(paragraphs[-3].find(f"{W}pPr/{W}pStyle").get(f"{W}val"), "Heading2")
        self.assertNotIn("Never", "".join(texts))

    def test_missing_footnote_definition(self):
        self.context.footnotes = FootnoteTable()
        paragraphs = self.render([Paragraph("Ref[^ghost]")])
        self.assertEqual(text_of(paragraphs[-1]), "1. [Missing footnote: ghost]")

    def test_existing_footnotes_heading_suppresses_section(self):
        self.context.footnotes = FootnoteTable(definitions={"a": "Alpha"})
        paragraphs = self.render([Paragraph("Ref[^a]"), Heading("Footnotes", 2)])
        self.assertEqual(len(paragraphs), 2)

    def test_failing_element_becomes_placeholder(self):
        paragraphs = self.render([Paragraph("before"), object(), Paragraph("after")])
        self.assertEqual([text_of(p) for p in paragraphs], ["before", "[Error processing object]", "after"])
        failure = self.context.report.element_failures[0]
        self.assertEqual((failure.index, failure.kind), (1, "object"))
        self.assertEqual(self.context.report.element_count, 3)


class SectionPropertiesTest(unittest.TestCase):
    """Test the closing sectPr."""

    def test_page_size_and_margins(self):
        context = make_context(page_size="letter")
        root = ET.fromstring(DocumentRenderer(context).render([]))
        sect_pr = root.find(f"{W}body/{W}sectPr")
        page = sect_pr.find(f"{W}pgSz")
        self.assertEqual((page.get(f"{W}w"), page.get(f"{W}h")), ("12240", "15840"))
        margins = sect_pr.find(f"{W}pgMar")
        self.assertEqual(margins.get(f"{W}left"), "1440")
        self.assertEqual(margins.get(f"{W}gutter"), "0")


if __name__ == "__main__":
    unittest.main()
