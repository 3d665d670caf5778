"""In-memory representation of parsed Markdown blocks and styled inline runs."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass(slots=True)
class Paragraph:
    """Plain paragraph whose text still carries inline Markdown."""

    text: str


@dataclass(slots=True)
class Heading:
    text: str
    level: int = 1

    def __post_init__(self) -> None:
        self.level = max(1, min(6, int(self.level)))


@dataclass(slots=True)
class ListItem:
    text: str
    level: int = 0


@dataclass(slots=True)
class ListBlock:
    """Run of consecutive list items sharing the same ordered-ness."""

    ordered: bool
    items: List[ListItem] = field(default_factory=list)


@dataclass(slots=True)
class TaskItem:
    checked: bool
    text: str


@dataclass(slots=True)
class TaskList:
    items: List[TaskItem] = field(default_factory=list)


@dataclass(slots=True)
class Table:
    """Pipe table; ``alignments`` holds one of left/center/right per column."""

    rows: List[List[str]] = field(default_factory=list)
    alignments: List[str] = field(default_factory=list)

    @property
    def column_count(self) -> int:
        if self.alignments:
            return len(self.alignments)
        return max((len(row) for row in self.rows), default=0)


@dataclass(slots=True)
class CodeBlock:
    text: str
    language: Optional[str] = None


@dataclass(slots=True)
class Blockquote:
    """Quoted text; lines of the same depth are joined with newlines."""

    text: str
    level: int = 1


@dataclass(slots=True)
class HorizontalRule:
    pass


@dataclass(slots=True)
class Image:
    """Image reference; ``data`` is filled in once the bytes are resolved."""

    alt_text: str
    source: str
    data: Optional[bytes] = None
    explicit_width: Optional[int] = None
    explicit_height: Optional[int] = None


@dataclass(slots=True)
class Break:
    pass


DocumentElement = Union[
    Paragraph,
    Heading,
    ListBlock,
    TaskList,
    Table,
    CodeBlock,
    Blockquote,
    HorizontalRule,
    Image,
    Break,
]


@dataclass(frozen=True, slots=True)
class RunStyle:
    """Inline formatting flags applied to a run of text."""

    bold: bool = False
    italic: bool = False
    strikethrough: bool = False
    code: bool = False
    highlight: bool = False
    underline: bool = False
    superscript: bool = False
    subscript: bool = False
    link: Optional[str] = None

    def merged(self, **flags: object) -> "RunStyle":
        """Return a copy with the given flags switched on (or the link replaced)."""
        values = {name: getattr(self, name) for name in self.__slots__}
        values.update(flags)
        return RunStyle(**values)  # type: ignore[arg-type]


PLAIN = RunStyle()


@dataclass(slots=True)
class StyleRun:
    text: str
    style: RunStyle = PLAIN


@dataclass(slots=True)
class ImageRelationship:
    """Embedded media part owned by a single conversion."""

    relationship_id: str
    data: bytes
    extension: str
    media_index: int

    @property
    def part_name(self) -> str:
        return f"media/image{self.media_index}.{self.extension}"


@dataclass(slots=True)
class HyperlinkRelationship:
    relationship_id: str
    target: str


@dataclass(slots=True)
class SectionProperties:
    """Page setup written into the body's closing ``sectPr`` (all values in twips)."""

    page_width: int
    page_height: int
    margin_top: int = 1440
    margin_bottom: int = 1440
    margin_left: int = 1440
    margin_right: int = 1440
    margin_header: int = 720
    margin_footer: int = 720

    @property
    def content_width(self) -> int:
        return self.page_width - self.margin_left - self.margin_right


def element_kind(element: object) -> str:
    """Human-readable kind name used in reports and error placeholders."""
    return type(element).__name__.lower()

