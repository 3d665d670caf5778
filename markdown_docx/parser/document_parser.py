"""Parse Markdown text into an ordered list of block elements."""
from __future__ import annotations

import re
from typing import List, Optional

from markdown_docx.model.elements import (
    Blockquote,
    Break,
    CodeBlock,
    DocumentElement,
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
from markdown_docx.model.numbering_model import MAX_LIST_LEVEL
from markdown_docx.parser.preprocessor import split_table_cells
from markdown_docx.utils.logger import get_logger

LOGGER = get_logger(__name__)

FENCE_PATTERN = re.compile(r"^(```|~~~)\s*(.*)$")
RULE_PATTERN = re.compile(r"^(?:-{3,}|\*{3,}|_{3,})$")
HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.*\S)\s*$")
TASK_PATTERN = re.compile(r"^(\s*)[-*+]\s+\[([ xX])\]\s+(.*)$")
UNORDERED_PATTERN = re.compile(r"^(\s*)[-*+]\s+(.*\S)\s*$")
ORDERED_PATTERN = re.compile(r"^(\s*)\d+[.)]\s+(.*\S)\s*$")
BLOCKQUOTE_PATTERN = re.compile(r"^\s*(>[>\s]*)(.*)$")
TABLE_ROW_PATTERN = re.compile(r"^\s*\|.*\|\s*$")
ALIGNMENT_CELL = re.compile(r"^:?-+:?$")
INLINE_IMAGE_PATTERN = re.compile(
    r'^!\[([^\]]*)\]\(\s*<?([^\s|)>]+)>?(?:\s*\|\s*(\d+)(?:x(\d+))?)?\s*(?:"[^"]*")?\s*\)$'
)
EMBED_PATTERN = re.compile(r"^!\[\[([^\]]+?)\]\]")
EMBED_SIZE = re.compile(r"^\s*(\d+)(?:x(\d+))?\s*$")
DETAILS_OPEN = re.compile(r"^<details", re.IGNORECASE)
SUMMARY_PATTERN = re.compile(r"<summary[^>]*>(.*?)</summary>", re.IGNORECASE | re.DOTALL)
DETAILS_TAGS = re.compile(r"</?details[^>]*>", re.IGNORECASE)
DEFINITION_PATTERN = re.compile(r"^:\s+(.+)$")

MAX_DETAILS_DEPTH = 8


class DocumentParser:
    """Line-oriented state machine over Markdown text.

    States are default, inside a fenced code block and inside a pipe table.
    Each line is tried against the block kinds in a fixed priority order; the
    first match wins.
    """

    def __init__(self, _depth: int = 0) -> None:
        self._depth = _depth

    def parse(self, markdown: str) -> List[DocumentElement]:
        """Parse the text into block elements."""
        elements: List[DocumentElement] = []
        lines = markdown.split("\n")

        fence: Optional[str] = None
        fence_language: Optional[str] = None
        fence_lines: List[str] = []
        table: Optional[Table] = None

        index = 0
        while index < len(lines):
            line = lines[index]
            stripped = line.strip()

            fence_match = FENCE_PATTERN.match(stripped)
            if fence is not None:
                if fence_match and fence_match.group(1) == fence and not fence_match.group(2):
                    elements.append(CodeBlock("\n".join(fence_lines), fence_language))
                    fence, fence_language, fence_lines = None, None, []
                else:
                    fence_lines.append(line)
                index += 1
                continue

            if table is not None and not TABLE_ROW_PATTERN.match(line):
                elements.append(table)
                table = None

            if fence_match:
                fence = fence_match.group(1)
                fence_language = fence_match.group(2).split()[0] if fence_match.group(2).strip() else None
                index += 1
                continue

            if RULE_PATTERN.match(re.sub(r"\s", "", stripped)):
                elements.append(HorizontalRule())
                index += 1
                continue

            heading = HEADING_PATTERN.match(stripped)
            if heading:
                elements.append(Heading(heading.group(2).strip(), len(heading.group(1))))
                index += 1
                continue

            task = TASK_PATTERN.match(line)
            if task:
                item = TaskItem(checked=task.group(2).lower() == "x", text=task.group(3).strip())
                previous = elements[-1] if elements else None
                if isinstance(previous, TaskList):
                    previous.items.append(item)
                else:
                    elements.append(TaskList([item]))
                index += 1
                continue

            list_match = UNORDERED_PATTERN.match(line)
            ordered = False
            if list_match is None:
                list_match = ORDERED_PATTERN.match(line)
                ordered = list_match is not None
            if list_match:
                self._append_list_item(elements, ordered, list_match.group(1), list_match.group(2))
                index += 1
                continue

            quote = BLOCKQUOTE_PATTERN.match(line)
            if quote:
                level = quote.group(1).count(">")
                content = quote.group(2).strip()
                previous = elements[-1] if elements else None
                if isinstance(previous, Blockquote) and previous.level == level:
                    previous.text += "\n" + content
                else:
                    elements.append(Blockquote(content, level))
                index += 1
                continue

            if TABLE_ROW_PATTERN.match(line):
                if table is None:
                    table = Table()
                self._add_table_row(table, line)
                index += 1
                continue

            image = self._parse_image(stripped)
            if image is not None or EMBED_PATTERN.match(stripped):
                if image is not None:
                    elements.append(image)
                index += 1
                continue

            if not stripped:
                elements.append(Break())
                index += 1
                continue

            if DETAILS_OPEN.match(stripped):
                index = self._parse_details(lines, index, elements)
                continue

            if index + 1 < len(lines):
                definition = DEFINITION_PATTERN.match(lines[index + 1])
                if definition:
                    elements.append(Paragraph(f"{stripped}: {definition.group(1).strip()}"))
                    index += 2
                    continue

            elements.append(Paragraph(stripped))
            index += 1

        if table is not None:
            elements.append(table)
        if fence is not None:
            LOGGER.debug("Unterminated code fence; flushing %d lines as code", len(fence_lines))
            elements.append(CodeBlock("\n".join(fence_lines), fence_language))
        return elements

    @staticmethod
    def _append_list_item(elements: List[DocumentElement], ordered: bool, indent: str, text: str) -> None:
        level = min(len(indent.expandtabs(4)) // 2, MAX_LIST_LEVEL)
        item = ListItem(text.strip(), level)
        previous = elements[-1] if elements else None
        if isinstance(previous, ListBlock) and previous.ordered == ordered:
            previous.items.append(item)
        else:
            elements.append(ListBlock(ordered=ordered, items=[item]))

    @staticmethod
    def _add_table_row(table: Table, line: str) -> None:
        cells = split_table_cells(line)
        if cells and all(ALIGNMENT_CELL.match(cell) for cell in cells):
            table.alignments = [_alignment_for(cell) for cell in cells]
            return
        table.rows.append(cells)

    @staticmethod
    def _parse_image(stripped: str) -> Optional[Image]:
        inline = INLINE_IMAGE_PATTERN.match(stripped)
        if inline:
            return Image(
                alt_text=inline.group(1),
                source=inline.group(2),
                explicit_width=int(inline.group(3)) if inline.group(3) else None,
                explicit_height=int(inline.group(4)) if inline.group(4) else None,
            )

        embed = EMBED_PATTERN.match(stripped)
        if embed is None:
            return None
        name, _, size = embed.group(1).partition("|")
        name = name.strip()
        if name.lower().endswith(".pdf"):
            LOGGER.debug("Skipping embedded PDF %s", name)
            return None
        width = height = None
        size_match = EMBED_SIZE.match(size) if size else None
        if size_match:
            width = int(size_match.group(1))
            height = int(size_match.group(2)) if size_match.group(2) else None
        return Image(alt_text=name, source=name, explicit_width=width, explicit_height=height)

    def _parse_details(self, lines: List[str], start: int, elements: List[DocumentElement]) -> int:
        """Flatten a ``<details>`` block into a summary line plus its parsed body."""
        depth = 0
        index = start
        collected: List[str] = []
        while index < len(lines):
            current = lines[index]
            depth += len(re.findall(r"<details", current, re.IGNORECASE))
            depth -= len(re.findall(r"</details>", current, re.IGNORECASE))
            collected.append(current)
            index += 1
            if depth <= 0:
                break

        block = "\n".join(collected)
        summary_match = SUMMARY_PATTERN.search(block)
        summary = summary_match.group(1).strip() if summary_match else "Details"
        body = DETAILS_TAGS.sub("", SUMMARY_PATTERN.sub("", block, count=1)).strip()

        elements.append(Paragraph(f"▼ {summary}"))
        if body:
            if self._depth >= MAX_DETAILS_DEPTH:
                elements.append(Paragraph(body))
            else:
                elements.extend(DocumentParser(self._depth + 1).parse(body))
        return index


def _alignment_for(cell: str) -> str:
    if cell.startswith(":") and cell.endswith(":"):
        return "center"
    if cell.endswith(":"):
        return "right"
    return "left"
