"""Split oversized documents into heading-aligned chunks."""
from __future__ import annotations

import re
from typing import List

HEADING_SPLIT_PATTERN = re.compile(r"^#{1,3}\s")
SOFT_LIMIT_RATIO = 0.7


def split_by_headings(markdown: str, chunk_size: int = 50000) -> List[str]:
    """Cut ``markdown`` into line-aligned chunks.

    A chunk is closed before a level 1-3 heading once it holds more than 70% of
    ``chunk_size`` characters, and unconditionally once it exceeds
    ``chunk_size``. ``"\\n".join(chunks)`` always reproduces the input. Fenced
    code and tables are not tracked, so a forced split may land inside one.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    chunks: List[str] = []
    current: List[str] = []
    size = 0
    for line in markdown.split("\n"):
        line_size = len(line) + 1
        if HEADING_SPLIT_PATTERN.match(line.strip()) and current and size > chunk_size * SOFT_LIMIT_RATIO:
            chunks.append("\n".join(current))
            current = [line]
            size = line_size
            continue
        current.append(line)
        size += line_size
        if size > chunk_size:
            chunks.append("\n".join(current))
            current = []
            size = 0

    if current or not chunks:
        chunks.append("\n".join(current))
    return chunks
