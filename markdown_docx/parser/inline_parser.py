"""Resolve inline Markdown (emphasis, code, links, footnote references) into styled runs.

The text is scanned once into a flat node list: plain text, delimiter runs
(``*``, ``_``, ``~``, ``=``, ``^``) and atoms whose styling is already fixed
(code spans, footnote references, links, HTML formatting tags). Delimiter runs
are then paired with a stack walk in the manner of CommonMark's emphasis
algorithm, which gives nested bold/italic combinations without re-scanning.
"""
from __future__ import annotations

import html
import re
import string
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from markdown_docx.model.document_model import FootnoteTable
from markdown_docx.model.elements import PLAIN, RunStyle, StyleRun

EMOJI_MAP: Dict[str, str] = {
    ":smile:": "😊",
    ":grin:": "😁",
    ":wink:": "😉",
    ":heart:": "❤️",
    ":thumbsup:": "👍",
    ":thumbsdown:": "👎",
    ":fire:": "🔥",
    ":star:": "⭐",
    ":rocket:": "🚀",
    ":check:": "✅",
    ":x:": "❌",
    ":warning:": "⚠️",
    ":info:": "ℹ️",
    ":bulb:": "💡",
    ":book:": "📖",
    ":computer:": "💻",
    ":phone:": "📱",
    ":email:": "📧",
    ":calendar:": "📅",
    ":clock:": "🕐",
    ":money:": "💰",
    ":key:": "🔑",
    ":lock:": "🔒",
    ":unlock:": "🔓",
}
EMOJI_PATTERN = re.compile("|".join(re.escape(code) for code in EMOJI_MAP))

HTML_FLAGS: Dict[str, Dict[str, bool]] = {
    "b": {"bold": True},
    "strong": {"bold": True},
    "i": {"italic": True},
    "em": {"italic": True},
    "u": {"underline": True},
    "mark": {"highlight": True},
    "sup": {"superscript": True},
    "sub": {"subscript": True},
    "s": {"strikethrough": True},
    "del": {"strikethrough": True},
    "strike": {"strikethrough": True},
}
DROPPED_TAGS = {"div", "p", "span"}

ESCAPABLE = set(string.punctuation)
DELIMITER_CHARS = "*_~=^"

HTML_TAG = re.compile(r"<(/?)([a-zA-Z][a-zA-Z0-9]*)\b[^<>]*?(/?)>")
FOOTNOTE_REF = re.compile(r"\[\^([^\]\s]+)\]")
LINK = re.compile(
    r"\[((?:[^\[\]\\]|\\.|\[[^\[\]]*\])*)\]"
    r"\(\s*<?([^\s()<>]*(?:\([^\s()]*\)[^\s()<>]*)*)>?(?:\s+(?:\"[^\"]*\"|'[^']*'))?\s*\)"
)
IMAGE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")

_FLAG_FOR_DELIMITER = {
    ("*", 1): "italic",
    ("_", 1): "italic",
    ("*", 2): "bold",
    ("_", 2): "bold",
    ("~", 1): "subscript",
    ("~", 2): "strikethrough",
    ("=", 2): "highlight",
    ("^", 1): "superscript",
}


@dataclass(slots=True)
class _Text:
    text: str


@dataclass(slots=True)
class _Delimiter:
    char: str
    count: int
    can_open: bool
    can_close: bool


@dataclass(slots=True)
class _Atom:
    runs: List[StyleRun]


@dataclass(slots=True)
class _Span:
    flag: str
    children: List["_Node"] = field(default_factory=list)


_Node = Union[_Text, _Delimiter, _Atom, _Span]


def replace_emoji(text: str) -> str:
    """Swap ``:shortcode:`` spellings for their emoji characters."""
    return EMOJI_PATTERN.sub(lambda match: EMOJI_MAP[match.group(0)], text)


class InlineFormatter:
    """Turns one span of inline Markdown into a list of :class:`StyleRun`."""

    def __init__(self, footnotes: Optional[FootnoteTable] = None, preserve_formatting: bool = True) -> None:
        self._footnotes = footnotes if footnotes is not None else FootnoteTable()
        self._preserve_formatting = preserve_formatting

    def format(self, text: str, base: RunStyle = PLAIN) -> List[StyleRun]:
        if not text:
            return []
        if not self._preserve_formatting:
            return [StyleRun(text, base)]
        nodes = self._scan(text)
        self._resolve_emphasis(nodes)
        runs = self._flatten(nodes, base)
        return _merge_runs(_finish_text(runs))

    def _format_nested(self, text: str) -> List[StyleRun]:
        nodes = self._scan(text)
        self._resolve_emphasis(nodes)
        return self._flatten(nodes, PLAIN)

    # Scanning ----------------------------------------------------------------

    def _scan(self, text: str) -> List[_Node]:
        nodes: List[_Node] = []
        code_spans = _find_code_spans(text)
        buffer: List[str] = []

        def flush() -> None:
            if buffer:
                nodes.append(_Text("".join(buffer)))
                buffer.clear()

        position = 0
        length = len(text)
        while position < length:
            char = text[position]

            if char == "\\" and position + 1 < length and text[position + 1] in ESCAPABLE:
                buffer.append(text[position + 1])
                position += 2
                continue

            if char == "`":
                span = code_spans.get(position)
                if span is not None:
                    end, content = span
                    flush()
                    nodes.append(_Atom([StyleRun(content, RunStyle(code=True))]))
                    position = end
                    continue
                run_end = _run_end(text, position, "`")
                buffer.append(text[position:run_end])
                position = run_end
                continue

            if char == "!" and text.startswith("![", position):
                image = IMAGE.match(text, position)
                if image and not _crosses_code(image.end(), code_spans):
                    flush()
                    nodes.append(_Text(image.group(1)))
                    position = image.end()
                    continue

            if char == "[":
                footnote = FOOTNOTE_REF.match(text, position)
                if footnote:
                    flush()
                    number = self._footnotes.reference(footnote.group(1))
                    nodes.append(_Atom([StyleRun(str(number), RunStyle(superscript=True))]))
                    position = footnote.end()
                    continue
                link = LINK.match(text, position)
                if link and not _crosses_code(link.end(), code_spans):
                    flush()
                    target = link.group(2)
                    inner = self._format_nested(link.group(1)) or [StyleRun(target)]
                    nodes.append(_Atom([_combine(RunStyle(link=target), run) for run in inner]))
                    position = link.end()
                    continue

            if char == "<":
                consumed = self._scan_html(text, position, nodes, flush)
                if consumed:
                    position = consumed
                    continue

            if char in DELIMITER_CHARS:
                run_end = _run_end(text, position, char)
                count = run_end - position
                if char == "=" and count < 2:
                    buffer.append(char)
                    position = run_end
                    continue
                flush()
                before = text[position - 1] if position > 0 else " "
                after = text[run_end] if run_end < length else " "
                can_open, can_close = _flanking(char, before, after)
                nodes.append(_Delimiter(char, count, can_open, can_close))
                position = run_end
                continue

            buffer.append(char)
            position += 1

        flush()
        return nodes

    def _scan_html(self, text: str, position: int, nodes: List[_Node], flush) -> int:
        """Consume an HTML tag at ``position``; return the new position or 0."""
        tag = HTML_TAG.match(text, position)
        if tag is None:
            return 0
        closing, name = tag.group(1) == "/", tag.group(2).lower()
        if name == "br":
            flush()
            nodes.append(_Text(" "))
            return tag.end()
        if name in DROPPED_TAGS:
            return tag.end()
        if closing or (name not in HTML_FLAGS and name != "code"):
            return 0

        close_start, close_end = _matching_close(text, tag.end(), name)
        if close_start < 0:
            return 0
        flush()
        content = text[tag.end():close_start]
        if name == "code":
            nodes.append(_Atom([StyleRun(html.unescape(content), RunStyle(code=True))]))
        else:
            flag_style = PLAIN.merged(**HTML_FLAGS[name])
            nodes.append(_Atom([_combine(flag_style, run) for run in self._format_nested(content)]))
        return close_end

    # Emphasis ------------------------------------------------------------------

    @staticmethod
    def _resolve_emphasis(nodes: List[_Node]) -> None:
        index = 0
        while index < len(nodes):
            closer = nodes[index]
            if not isinstance(closer, _Delimiter) or not closer.can_close or closer.count == 0:
                index += 1
                continue

            match: Optional[Tuple[int, int]] = None
            for candidate in range(index - 1, -1, -1):
                opener = nodes[candidate]
                if not isinstance(opener, _Delimiter) or opener.char != closer.char:
                    continue
                if not opener.can_open or opener.count == 0:
                    continue
                use = _delimiter_use(opener, closer)
                if use and _content_allowed(closer.char, use, nodes[candidate + 1:index]):
                    match = (candidate, use)
                    break

            if match is None:
                index += 1
                continue

            opener_index, use = match
            opener = nodes[opener_index]
            assert isinstance(opener, _Delimiter)
            span = _Span(_FLAG_FOR_DELIMITER[(closer.char, use)], nodes[opener_index + 1:index])
            opener.count -= use
            closer.count -= use
            replacement: List[_Node] = []
            if opener.count:
                replacement.append(opener)
            replacement.append(span)
            if closer.count:
                replacement.append(closer)
            nodes[opener_index:index + 1] = replacement
            index = opener_index + len(replacement) - (1 if closer.count else 0)

    # Flattening ----------------------------------------------------------------

    def _flatten(self, nodes: List[_Node], style: RunStyle) -> List[StyleRun]:
        runs: List[StyleRun] = []
        for node in nodes:
            if isinstance(node, _Text):
                runs.append(StyleRun(node.text, style))
            elif isinstance(node, _Delimiter):
                if node.count:
                    runs.append(StyleRun(node.char * node.count, style))
            elif isinstance(node, _Atom):
                runs.extend(_combine(style, run) for run in node.runs)
            else:
                runs.extend(self._flatten(node.children, style.merged(**{node.flag: True})))
        return runs


def _combine(outer: RunStyle, inner: StyleRun) -> StyleRun:
    """Apply an enclosing style to a run; code keeps its own look apart from links."""
    link = inner.style.link or outer.link
    if inner.style.code:
        return StyleRun(inner.text, RunStyle(code=True, link=link))
    if outer.code:
        return StyleRun(inner.text, RunStyle(code=True, link=link))
    flags = {
        name: getattr(outer, name) or getattr(inner.style, name)
        for name in ("bold", "italic", "strikethrough", "highlight", "underline", "superscript", "subscript")
    }
    return StyleRun(inner.text, RunStyle(link=link, **flags))


def _finish_text(runs: List[StyleRun]) -> List[StyleRun]:
    finished: List[StyleRun] = []
    for run in runs:
        text = run.text if run.style.code else replace_emoji(html.unescape(run.text))
        if text:
            finished.append(StyleRun(text, run.style))
    return finished


def _merge_runs(runs: List[StyleRun]) -> List[StyleRun]:
    merged: List[StyleRun] = []
    for run in runs:
        if merged and merged[-1].style == run.style:
            merged[-1] = StyleRun(merged[-1].text + run.text, run.style)
        else:
            merged.append(run)
    return merged


def _run_end(text: str, position: int, char: str) -> int:
    end = position
    while end < len(text) and text[end] == char:
        end += 1
    return end


def _find_code_spans(text: str) -> Dict[int, Tuple[int, str]]:
    """Map each opening backtick position to (end, content) for matched code spans."""
    spans: Dict[int, Tuple[int, str]] = {}
    position = 0
    while position < len(text):
        if text[position] == "\\":
            position += 2
            continue
        if text[position] != "`":
            position += 1
            continue
        opening_end = _run_end(text, position, "`")
        width = opening_end - position
        search = opening_end
        closing = -1
        while search < len(text):
            found = text.find("`", search)
            if found < 0:
                break
            found_end = _run_end(text, found, "`")
            if found_end - found == width:
                closing = found
                break
            search = found_end
        if closing < 0:
            position = opening_end
            continue
        content = text[opening_end:closing]
        if len(content) > 2 and content.startswith(" ") and content.endswith(" ") and content.strip():
            content = content[1:-1]
        spans[position] = (closing + width, content)
        position = closing + width
    return spans


def _crosses_code(end: int, code_spans: Dict[int, Tuple[int, str]]) -> bool:
    """True when a construct ending at ``end`` would cut through a code span."""
    return any(start < end < span_end for start, (span_end, _) in code_spans.items())


def _matching_close(text: str, start: int, name: str) -> Tuple[int, int]:
    depth = 1
    for tag in HTML_TAG.finditer(text, start):
        if tag.group(2).lower() != name:
            continue
        if tag.group(1) == "/":
            depth -= 1
            if depth == 0:
                return tag.start(), tag.end()
        elif not tag.group(3):
            depth += 1
    return -1, -1


def _is_punctuation(char: str) -> bool:
    return char in ESCAPABLE


def _flanking(char: str, before: str, after: str) -> Tuple[bool, bool]:
    left = not after.isspace() and (
        not _is_punctuation(after) or before.isspace() or _is_punctuation(before)
    )
    right = not before.isspace() and (
        not _is_punctuation(before) or after.isspace() or _is_punctuation(after)
    )
    if char == "_":
        return left and (not right or _is_punctuation(before)), right and (not left or _is_punctuation(after))
    return left, right


def _delimiter_use(opener: _Delimiter, closer: _Delimiter) -> int:
    if opener.char in "*_":
        return 2 if opener.count >= 2 and closer.count >= 2 else 1
    if opener.char == "~":
        if opener.count >= 2 and closer.count >= 2:
            return 2
        if opener.count == 1 and closer.count == 1:
            return 1
        return 0
    if opener.char == "=":
        return 2 if opener.count >= 2 and closer.count >= 2 else 0
    return 1


def _content_allowed(char: str, use: int, inner: List[_Node]) -> bool:
    """Superscript and subscript spans may not contain whitespace; no span may be empty."""
    if not inner:
        return False
    if (char, use) in {("^", 1), ("~", 1)}:
        return all(isinstance(node, _Text) and not any(c.isspace() for c in node.text) for node in inner)
    return True
