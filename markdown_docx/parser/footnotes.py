"""Pull footnote definitions out of the body before block parsing."""
from __future__ import annotations

import re
from typing import Dict, List, Tuple

from markdown_docx.utils.logger import get_logger

LOGGER = get_logger(__name__)

DEFINITION_PATTERN = re.compile(r"^\[\^([^\]]+)\]:\s*(.*)$")
CONTINUATION_PATTERN = re.compile(r"^\s{2,}\S")
FENCE_PATTERN = re.compile(r"^\s*(```|~~~)")


def extract_footnotes(markdown: str) -> Tuple[str, Dict[str, str]]:
    """Return the body without definitions, plus a label -> text table.

    Indented continuation lines (two or more spaces) are joined to the
    definition with single spaces. A label defined twice keeps the last text.
    """
    lines = markdown.split("\n")
    kept: List[str] = []
    definitions: Dict[str, str] = {}
    in_fence = False
    index = 0
    while index < len(lines):
        line = lines[index]
        if FENCE_PATTERN.match(line):
            in_fence = not in_fence
        match = None if in_fence else DEFINITION_PATTERN.match(line)
        if match is None:
            kept.append(line)
            index += 1
            continue

        label = match.group(1).strip()
        parts = [match.group(2).strip()] if match.group(2).strip() else []
        index += 1
        while index < len(lines) and CONTINUATION_PATTERN.match(lines[index]):
            parts.append(lines[index].strip())
            index += 1
        if label in definitions:
            LOGGER.debug("Footnote [^%s] redefined; keeping the last definition", label)
        definitions[label] = " ".join(parts).strip()

    return "\n".join(kept), definitions
