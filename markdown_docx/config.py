"""Conversion settings and host font profile."""
from __future__ import annotations

import os
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Page dimensions in twips (width, height)
PAGE_SIZES: Dict[str, Tuple[int, int]] = {
    "A4": (11906, 16838),
    "A5": (8391, 11906),
    "A3": (16838, 23811),
    "Letter": (12240, 15840),
    "Legal": (12240, 20160),
    "Tabloid": (15840, 24480),
}

DEFAULT_MONOSPACE_FONT = "Courier New"
HEADING_SCALE: List[float] = [2.0, 1.6, 1.4, 1.2, 1.1, 1.0]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class ConversionSettings(BaseModel):
    model_config = ConfigDict(validate_default=True)

    font_family: str = Field(default_factory=lambda: os.getenv("MD2DOCX_FONT_FAMILY", "Calibri"))
    font_size: int = Field(default_factory=lambda: _env_int("MD2DOCX_FONT_SIZE", 11))
    include_metadata: bool = Field(default_factory=lambda: _env_bool("MD2DOCX_INCLUDE_METADATA", False))
    preserve_formatting: bool = Field(default_factory=lambda: _env_bool("MD2DOCX_PRESERVE_FORMATTING", True))
    match_host_appearance: bool = Field(default_factory=lambda: _env_bool("MD2DOCX_MATCH_HOST_APPEARANCE", False))
    include_title_as_heading: bool = Field(
        default_factory=lambda: _env_bool("MD2DOCX_INCLUDE_TITLE_AS_HEADING", False)
    )
    page_size: str = Field(default_factory=lambda: os.getenv("MD2DOCX_PAGE_SIZE", "A4"))
    chunking_threshold: int = Field(default_factory=lambda: _env_int("MD2DOCX_CHUNKING_THRESHOLD", 100000))
    chunk_size: int = Field(default_factory=lambda: _env_int("MD2DOCX_CHUNK_SIZE", 50000))
    enable_preprocessing: bool = Field(default_factory=lambda: _env_bool("MD2DOCX_ENABLE_PREPROCESSING", True))

    @field_validator("page_size")
    @classmethod
    def _known_page_size(cls, value: str) -> str:
        for name in PAGE_SIZES:
            if name.lower() == value.strip().lower():
                return name
        raise ValueError(f"Unknown page size {value!r}; expected one of {', '.join(PAGE_SIZES)}")

    @field_validator("font_size", "chunking_threshold", "chunk_size")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @property
    def page_dimensions(self) -> Tuple[int, int]:
        return PAGE_SIZES[self.page_size]


class FontProfile(BaseModel):
    """Typography read from the host application when matching its appearance."""

    text_font: str
    monospace_font: str = DEFAULT_MONOSPACE_FONT
    base_size: float = 11
    heading_sizes: List[float] = Field(default_factory=list)
    line_height: float = 1.15

    @field_validator("monospace_font")
    @classmethod
    def _usable_monospace(cls, value: str) -> str:
        # Hosts report "??" for fonts they could not resolve
        if not value.strip() or "??" in value:
            return DEFAULT_MONOSPACE_FONT
        return value


class ResolvedTypography(BaseModel):
    """Fonts and sizes (points) actually written into styles.xml."""

    text_font: str
    monospace_font: str
    base_size: float
    heading_sizes: List[float]
    line_height: Optional[float] = None


def resolve_typography(settings: ConversionSettings, fonts: Optional[FontProfile] = None) -> ResolvedTypography:
    """Pick the host profile when requested, otherwise derive sizes from the settings."""
    if settings.match_host_appearance and fonts is not None:
        headings = list(fonts.heading_sizes[:6])
        while len(headings) < 6:
            headings.append(fonts.base_size * HEADING_SCALE[len(headings)])
        return ResolvedTypography(
            text_font=fonts.text_font,
            monospace_font=fonts.monospace_font,
            base_size=fonts.base_size,
            heading_sizes=headings,
            line_height=fonts.line_height,
        )
    return ResolvedTypography(
        text_font=settings.font_family,
        monospace_font=DEFAULT_MONOSPACE_FONT,
        base_size=settings.font_size,
        heading_sizes=[settings.font_size * factor for factor in HEADING_SCALE],
    )


@lru_cache(maxsize=1)
def _cached_settings() -> ConversionSettings:
    return ConversionSettings()


def load_settings(**overrides: object) -> ConversionSettings:
    """Return settings from ``MD2DOCX_*`` environment variables, with keyword overrides applied."""
    if not overrides:
        return _cached_settings()
    base = _cached_settings().model_dump()
    base.update({key: value for key, value in overrides.items() if value is not None})
    return ConversionSettings(**base)
