"""Style model captures the Word style definitions emitted into styles.xml."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, Optional


@dataclass(slots=True)
class StyleDefinition:
    """One ``w:style`` entry.

    ``paragraph`` and ``run`` hold normalized formatting keys understood by the
    styles writer (e.g. ``spacing_before``, ``keep_next``, ``font``, ``size``).
    Sizes are points; spacing and indents are twips.
    """

    style_id: str
    style_type: str
    name: str
    paragraph: Dict[str, object] = field(default_factory=dict)
    run: Dict[str, object] = field(default_factory=dict)
    based_on: Optional[str] = None
    next_style: Optional[str] = None
    is_default: bool = False
    ui_priority: Optional[int] = None
    is_primary: bool = False


class StylesCatalog:
    """Style definitions keyed by identifier; iteration follows insertion order."""

    def __init__(self, styles: Iterable[StyleDefinition], defaults: Optional[Dict[str, Dict[str, object]]] = None):
        self._styles: Dict[str, StyleDefinition] = {}
        for style in styles:
            if style.style_id in self._styles:
                raise ValueError(f"Duplicate style id {style.style_id!r}")
            self._styles[style.style_id] = style
        self.defaults = defaults or {"paragraph": {}, "run": {}}

    def __iter__(self) -> Iterator[StyleDefinition]:
        return iter(self._styles.values())

    def __len__(self) -> int:
        return len(self._styles)

    def get(self, style_id: Optional[str]) -> Optional[StyleDefinition]:
        if style_id is None:
            return None
        return self._styles.get(style_id)

    def default_for(self, style_type: str) -> Optional[StyleDefinition]:
        """Return the default style for the given style type if defined."""
        for style in self._styles.values():
            if style.style_type == style_type and style.is_default:
                return style
        return None
