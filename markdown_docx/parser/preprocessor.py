"""Rewrite vault-flavoured Markdown into the plainer dialect the block parser reads."""
from __future__ import annotations

import re
from typing import Dict, List, Tuple

from markdown_docx.utils.logger import get_logger
from markdown_docx.utils.text_normalizer import TextNormalizer

LOGGER = get_logger(__name__)

FENCE_PATTERN = re.compile(r"^\s*(```|~~~)")
FRONTMATTER_FENCE = re.compile(r"^---\s*$")

WIKILINK_PATTERN = re.compile(r"(?<!!)\[\[([^\[\]]+)\]\]")
CALLOUT_PATTERN = re.compile(r"^([ \t]*>[ \t]*)\[!(\w+)\][+-]?(?:[ \t]+(.*?))?[ \t]*$", re.MULTILINE)
REFERENCE_DEFINITION = re.compile(r"^ {0,3}\[([^\]^][^\]]*)\]:[ \t]*(\S+)(?:[ \t]+.*)?$")
REFERENCE_LINK = re.compile(r"\[([^\[\]]+)\]\[([^\[\]]*)\]")
BLOCK_MATH = re.compile(r"\$\$([^$]+?)\$\$")
INLINE_MATH = re.compile(r"\$(?=\S)([^$\n]+?)(?<=\S)\$(?!\d)")
URL_AUTOLINK = re.compile(r"<(https?://[^>\s]+)>")
EMAIL_AUTOLINK = re.compile(r"<([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})>")
SETEXT_H1 = re.compile(r"^={3,}\s*$")
SETEXT_H2 = re.compile(r"^-{3,}\s*$")
SETEXT_EXCLUDED = re.compile(r"^\s*(?:#|>|[-*+]\s|\d+[.)]\s|\||```|~~~|$)")
TABLE_ROW = re.compile(r"^\s*\|.*\|\s*$")
TABLE_SEPARATOR = re.compile(r"^\s*\|?\s*:?-+:?\s*(?:\|\s*:?-+:?\s*)*\|?\s*$")
INLINE_CODE = re.compile(r"(`+)[^\n]*?(?<!`)\1(?!`)")
CODE_PLACEHOLDER = re.compile(r"\ue000(\d+)\ue001")

_NORMALIZER = TextNormalizer(preserve_whitespace=True)


def preprocess(markdown: str) -> str:
    """Apply every source rewrite once; fenced code and inline code spans are left untouched."""
    if markdown.startswith("\ufeff"):
        markdown = markdown[1:]
    segments = _split_fenced(markdown)

    references: Dict[str, str] = {}
    segments = [(is_code, text if is_code else _collect_references(text, references)) for is_code, text in segments]
    if references:
        LOGGER.debug("Collected %d reference link definitions", len(references))

    rewritten: List[str] = []
    for is_code, text in segments:
        if is_code:
            rewritten.append(text)
            continue
        text, spans = _shield_code_spans(text)
        text = convert_wikilinks(text)
        text = convert_callouts(text)
        text = _resolve_reference_links(text, references)
        text = convert_math(text)
        text = convert_autolinks(text)
        text = CODE_PLACEHOLDER.sub(lambda m: spans[int(m.group(1))], text)
        text = convert_setext_headings(text)
        text = fix_malformed_tables(text)
        text = _NORMALIZER.normalize_text(text)
        rewritten.append(text)
    return "\n".join(rewritten)


def _shield_code_spans(text: str) -> Tuple[str, List[str]]:
    """Swap inline code spans for placeholders so link and math rewrites skip them."""
    spans: List[str] = []

    def stash(match: re.Match) -> str:
        spans.append(match.group(0))
        return f"\ue000{len(spans) - 1}\ue001"

    return INLINE_CODE.sub(stash, text), spans


def _split_fenced(markdown: str) -> List[Tuple[bool, str]]:
    """Split text into alternating prose and fenced-code segments of whole lines."""
    segments: List[Tuple[bool, List[str]]] = []
    in_fence = False
    for line in markdown.split("\n"):
        opens_or_closes = bool(FENCE_PATTERN.match(line))
        if opens_or_closes and not in_fence:
            in_fence = True
            segments.append((True, [line]))
            continue
        if opens_or_closes and in_fence:
            in_fence = False
            segments[-1][1].append(line)
            continue
        if not segments or segments[-1][0] != in_fence:
            segments.append((in_fence, []))
        segments[-1][1].append(line)
    return [(is_code, "\n".join(lines)) for is_code, lines in segments]


def convert_wikilinks(text: str) -> str:
    """``[[Note]]``, ``[[Note#Section]]`` and ``[[Note|Alias]]`` become standard links."""

    def replace(match: re.Match) -> str:
        content = match.group(1)
        if "://" in content:
            return match.group(0)
        target, _, alias = content.partition("|")
        note, has_section, section = target.partition("#")
        href = note.strip().replace(" ", "%20") + ".md"
        if has_section:
            href += "#" + re.sub(r"\s+", "-", section.strip()).lower()
        label = alias.strip() or target.strip()
        return f"[{label}]({href})"

    return WIKILINK_PATTERN.sub(replace, text)


def convert_callouts(text: str) -> str:
    """``> [!TYPE] Title`` becomes ``> **TYPE: Title**``; fold markers are dropped."""

    def replace(match: re.Match) -> str:
        prefix, kind, title = match.group(1), match.group(2).upper(), (match.group(3) or "").strip()
        suffix = f" {title}" if title else ""
        return f"{prefix}**{kind}:{suffix}**"

    return CALLOUT_PATTERN.sub(replace, text)


def _collect_references(text: str, references: Dict[str, str]) -> str:
    kept: List[str] = []
    for line in text.split("\n"):
        match = REFERENCE_DEFINITION.match(line)
        if match:
            references[match.group(1).strip().lower()] = match.group(2).strip("<>")
            continue
        kept.append(line)
    return "\n".join(kept)


def _resolve_reference_links(text: str, references: Dict[str, str]) -> str:
    if not references:
        return text

    def replace(match: re.Match) -> str:
        label = match.group(1)
        ref = (match.group(2) or label).strip().lower()
        url = references.get(ref)
        return f"[{label}]({url})" if url else match.group(0)

    return REFERENCE_LINK.sub(replace, text)


def convert_math(text: str) -> str:
    """Math has no native rendering; formulas are kept as labelled plain text."""
    text = BLOCK_MATH.sub(lambda m: f"\n\n**[Math Formula]**: {m.group(1).strip()}\n\n", text)
    return INLINE_MATH.sub(lambda m: f"**[Math]**: {m.group(1).strip()}", text)


def convert_autolinks(text: str) -> str:
    text = URL_AUTOLINK.sub(r"[\1](\1)", text)
    return EMAIL_AUTOLINK.sub(r"[\1](mailto:\1)", text)


def convert_setext_headings(text: str) -> str:
    """Underlined headings (``===`` / ``---``) become ATX headings."""
    lines = text.split("\n")
    result: List[str] = []
    for line in lines:
        if result and not SETEXT_EXCLUDED.match(result[-1]):
            if SETEXT_H1.match(line):
                result[-1] = "# " + result[-1].strip()
                continue
            if SETEXT_H2.match(line):
                result[-1] = "## " + result[-1].strip()
                continue
        result.append(line)
    return "\n".join(result)


def fix_malformed_tables(text: str) -> str:
    """Insert a ``| --- |`` separator after a table's first row when it has none."""
    lines = text.split("\n")
    result: List[str] = []
    for index, line in enumerate(lines):
        result.append(line)
        if not TABLE_ROW.match(line) or TABLE_SEPARATOR.match(line):
            continue
        previous = lines[index - 1] if index > 0 else ""
        if TABLE_ROW.match(previous):
            continue
        following = lines[index + 1] if index + 1 < len(lines) else ""
        if TABLE_SEPARATOR.match(following):
            continue
        columns = len(split_table_cells(line))
        if columns:
            result.append("|" + " --- |" * columns)
    return "\n".join(result)


def split_table_cells(line: str) -> List[str]:
    """Cells of a pipe-table row, outer pipes removed and escaped pipes kept."""
    body = line.strip()
    if body.startswith("|"):
        body = body[1:]
    if body.endswith("|") and not body.endswith("\\|"):
        body = body[:-1]
    cells = re.split(r"(?<!\\)\|", body)
    return [cell.strip().replace("\\|", "|") for cell in cells]


def split_frontmatter(markdown: str) -> Tuple[Dict[str, str], str]:
    """Separate a leading ``---`` metadata block from the body.

    A block missing its closing fence is closed at the first blank line. Only
    flat ``key: value`` pairs are read; ``- item`` lines extend the previous key.
    """
    text = markdown[1:] if markdown.startswith("\ufeff") else markdown
    lines = text.split("\n")
    if not lines or not FRONTMATTER_FENCE.match(lines[0]):
        return {}, markdown

    end = next((i for i in range(1, len(lines)) if FRONTMATTER_FENCE.match(lines[i])), -1)
    if end == -1:
        blank = next((i for i in range(1, len(lines)) if not lines[i].strip()), -1)
        if blank == -1:
            return {}, markdown
        lines.insert(blank, "---")
        end = blank
        LOGGER.debug("Closed unterminated front matter at line %d", blank + 1)

    metadata: Dict[str, str] = {}
    last_key = None
    for raw in lines[1:end]:
        stripped = raw.strip()
        if stripped.startswith("- ") and last_key is not None:
            item = stripped[2:].strip().strip("\"'")
            metadata[last_key] = f"{metadata[last_key]}, {item}" if metadata[last_key] else item
            continue
        if ":" in raw:
            key, value = raw.split(":", 1)
            last_key = key.strip()
            metadata[last_key] = value.strip().strip("\"'")
    return metadata, "\n".join(lines[end + 1 :])
