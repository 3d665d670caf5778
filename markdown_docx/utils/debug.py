"""Helpers to persist intermediate representations for debugging."""
from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, List

from markdown_docx.model.document_model import ConversionReport
from markdown_docx.model.elements import DocumentElement, element_kind


class DebugDumper:
    """Writes intermediate artifacts onto disk for inspection."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def dump(self, elements: List[DocumentElement], report: ConversionReport) -> Path:
        """Persist the parsed elements and the conversion report as JSON."""
        self.directory.mkdir(parents=True, exist_ok=True)
        payload = {
            "elements": [{"kind": element_kind(element), **self._serialize(element)} for element in elements],
            "report": {**self._serialize(report), "degraded": report.degraded},
        }
        target = self.directory / "conversion.json"
        target.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        return target

    def _serialize(self, value: Any) -> Any:
        if is_dataclass(value):
            return {k: self._serialize(v) for k, v in asdict(value).items()}
        if isinstance(value, dict):
            return {k: self._serialize(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._serialize(v) for v in value]
        if isinstance(value, bytes):
            return f"<{len(value)} bytes>"
        return value
