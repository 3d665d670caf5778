"""Colour code blocks with Pygments token classes mapped onto a fixed palette."""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from pygments.lexers import get_lexer_by_name
from pygments.token import Comment, Keyword, Name, Number, String, Token
from pygments.util import ClassNotFound

from markdown_docx.utils.logger import get_logger

LOGGER = get_logger(__name__)

PALETTE: Dict[str, str] = {
    "keyword": "0000FF",
    "string": "DD1144",
    "comment": "008000",
    "number": "800080",
    "function": "B07219",
    "variable": "36BCF7",
    "type": "267F99",
    "tag": "DD1144",
    "meta": "B07219",
}
DEFAULT_INK = "2F3337"
TokenType = type(Token)

# First match wins, so subtypes precede their parents
_TOKEN_CLASSES: List[Tuple[TokenType, str]] = [
    (Comment.Preproc, "meta"),
    (Name.Decorator, "meta"),
    (Keyword.Type, "type"),
    (Name.Class, "type"),
    (Name.Builtin, "type"),
    (Keyword, "keyword"),
    (String, "string"),
    (Comment, "comment"),
    (Number, "number"),
    (Name.Function, "function"),
    (Name.Tag, "tag"),
    (Name.Attribute, "variable"),
    (Name.Variable, "variable"),
]

HighlightedLine = List[Tuple[str, str]]


def color_for(token_type: TokenType) -> str:
    for parent, css_class in _TOKEN_CLASSES:
        if token_type in parent:
            return PALETTE[css_class]
    return DEFAULT_INK


class SyntaxHighlighter:
    """Tokenizes code into coloured segments, one list per source line."""

    def highlight(self, code: str, language: Optional[str]) -> Optional[List[HighlightedLine]]:
        """Return ``[(text, hex_color), ...]`` per line, or ``None`` to render plain."""
        if not language:
            return None
        try:
            lexer = get_lexer_by_name(language.strip().lower(), stripnl=False, ensurenl=False)
        except ClassNotFound:
            LOGGER.debug("No lexer for language %r", language)
            return None

        lines: List[HighlightedLine] = [[]]
        try:
            for token_type, value in lexer.get_tokens(code):
                color = color_for(token_type) if token_type is not Token.Text else DEFAULT_INK
                parts = value.split("\n")
                for index, part in enumerate(parts):
                    if index:
                        lines.append([])
                    if part:
                        _append(lines[-1], part, color)
        except Exception as exc:  # plain text fallback
            LOGGER.warning("Highlighting %s code failed: %s", language, exc)
            return None
        return lines


def _append(line: HighlightedLine, text: str, color: str) -> None:
    if line and line[-1][1] == color:
        line[-1] = (line[-1][0] + text, color)
    else:
        line.append((text, color))
