"""Per-conversion state: footnotes, relationships, numbering and the outcome report."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, Union

from markdown_docx.config import ConversionSettings, ResolvedTypography
from markdown_docx.model.elements import DocumentElement
from markdown_docx.model.numbering_model import NumberingCatalog

if TYPE_CHECKING:
    from markdown_docx.renderer.relationships import RelationshipTable

ResourceLoader = Callable[[str], Union[Optional[bytes], Awaitable[Optional[bytes]]]]


@dataclass(slots=True)
class FootnoteTable:
    """Footnote definitions plus the order in which labels were first referenced."""

    definitions: Dict[str, str] = field(default_factory=dict)
    order: List[str] = field(default_factory=list)

    def reference(self, label: str) -> int:
        """Register a reference to ``label`` and return its display number."""
        if label not in self.order:
            self.order.append(label)
        return self.order.index(label) + 1

    def text_for(self, label: str) -> str:
        if label in self.definitions:
            return self.definitions[label]
        return f"[Missing footnote: {label}]"

    def __bool__(self) -> bool:
        return bool(self.order)


@dataclass(slots=True)
class ElementOutcome:
    index: int
    kind: str
    error: str


@dataclass(slots=True)
class ChunkOutcome:
    index: int
    length: int
    error: str


@dataclass(slots=True)
class ConversionReport:
    """Everything that degraded during one conversion."""

    element_failures: List[ElementOutcome] = field(default_factory=list)
    chunk_failures: List[ChunkOutcome] = field(default_factory=list)
    missing_images: List[str] = field(default_factory=list)
    highlight_fallbacks: List[str] = field(default_factory=list)
    chunk_count: int = 0
    element_count: int = 0

    @property
    def degraded(self) -> bool:
        return bool(
            self.element_failures or self.chunk_failures or self.missing_images or self.highlight_fallbacks
        )


@dataclass(slots=True)
class ConversionContext:
    """Mutable state of one conversion call; never shared between calls."""

    settings: ConversionSettings
    typography: ResolvedTypography
    relationships: "RelationshipTable"
    numbering: NumberingCatalog
    footnotes: FootnoteTable = field(default_factory=FootnoteTable)
    report: ConversionReport = field(default_factory=ConversionReport)
    resource_loader: Optional[ResourceLoader] = None
    http_client: Any = None


@dataclass(slots=True)
class ConversionResult:
    data: bytes
    report: ConversionReport
    elements: List[DocumentElement] = field(default_factory=list)
