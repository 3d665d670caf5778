"""
Text normalization utilities for Markdown input and emitted run text.

Handles special character cleanup for source text and removal of characters
that are not allowed inside XML text nodes.
"""

import re
from typing import Optional


class TextNormalizer:
    """Normalizes Markdown source text before block parsing."""

    # Typographic characters that editors and web clippers tend to leave behind
    SPECIAL_CHARS = {
        '\ufeff': '',       # Byte order mark → remove
        '\u00a0': ' ',      # Non-breaking space → regular space
        '\u2009': ' ',      # Thin space → regular space
        '\u2007': ' ',      # Figure space → regular space
        '\u2008': ' ',      # Punctuation space → regular space
        '\u200b': '',       # Zero-width space → remove
        '\u200c': '',       # Zero-width non-joiner → remove
        '\u200d': '',       # Zero-width joiner → remove
        '\u2018': "'",      # Left single quotation mark
        '\u2019': "'",      # Right single quotation mark
        '\u201c': '"',      # Left double quotation mark
        '\u201d': '"',      # Right double quotation mark
    }

    # Line breaks spelled as HTML, in any of their common shapes
    BREAK_PATTERN = re.compile(r'<br\s*/?>', re.IGNORECASE)

    WHITESPACE_PATTERN = re.compile(r'[ \t]+')

    # Characters that are illegal in XML 1.0 text (tabs, newlines, carriage returns allowed)
    CONTROL_CHARS_PATTERN = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]')

    def __init__(self, preserve_whitespace: bool = True):
        """Initialize text normalizer.

        Args:
            preserve_whitespace: If True, keep runs of spaces and tabs as they are.
                                If False, collapse them to single spaces.
        """
        self.preserve_whitespace = preserve_whitespace

    def normalize_text(self, text: str) -> str:
        """Normalize Markdown source text."""
        if not text:
            return text

        normalized = self._replace_special_chars(text)
        normalized = self.BREAK_PATTERN.sub('<br>', normalized)
        normalized = strip_control_chars(normalized)

        if not self.preserve_whitespace:
            normalized = self.WHITESPACE_PATTERN.sub(' ', normalized)

        return normalized

    def _replace_special_chars(self, text: str) -> str:
        for original, replacement in self.SPECIAL_CHARS.items():
            text = text.replace(original, replacement)
        return text


def strip_control_chars(text: Optional[str]) -> str:
    """Remove characters that cannot be written into an XML text node."""
    if not text:
        return ""
    return TextNormalizer.CONTROL_CHARS_PATTERN.sub('', text)
