"""Entry-point for the Markdown to DOCX pipeline."""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, Optional

from markdown_docx.config import load_settings
from markdown_docx.converter import MarkdownToDocxConverter
from markdown_docx.model.document_model import ConversionResult
from markdown_docx.utils.debug import DebugDumper
from markdown_docx.utils.logger import get_logger

LOGGER = get_logger(__name__)


def filesystem_loader(base_dir: Path) -> Callable[[str], Optional[bytes]]:
    """Resolve image references relative to ``base_dir``, then by file name below it."""
    base_dir = base_dir.resolve()

    def load(reference: str) -> Optional[bytes]:
        candidate = (base_dir / reference).resolve()
        if candidate.is_file():
            return candidate.read_bytes()
        name = Path(reference).name
        for match in base_dir.rglob(name):
            if match.is_file():
                LOGGER.debug("Resolved %s to %s", reference, match)
                return match.read_bytes()
        return None

    return load


def convert_file(
    markdown_file: str,
    output_file: Optional[str] = None,
    *,
    title: Optional[str] = None,
    chunked: bool = False,
    debug: bool = False,
    **settings_overrides: object,
) -> ConversionResult:
    """Convert a Markdown file on disk and write the DOCX next to it (or to ``output_file``)."""
    markdown_path = Path(markdown_file).resolve()
    if not markdown_path.exists():
        raise FileNotFoundError(f"Markdown file not found: {markdown_path}")

    converter = MarkdownToDocxConverter(load_settings(**settings_overrides))
    markdown = markdown_path.read_text(encoding="utf-8")
    loader = filesystem_loader(markdown_path.parent)
    title = title if title is not None else markdown_path.stem

    LOGGER.info("Converting %s", markdown_path.name)
    if chunked:
        result = asyncio.run(converter.convert_with_chunking(markdown, title, resource_loader=loader))
    else:
        result = converter.convert_sync(markdown, title, resource_loader=loader)

    output_path = Path(output_file).resolve() if output_file else markdown_path.with_suffix(".docx")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(result.data)
    LOGGER.info("Wrote %s (%d bytes)", output_path, len(result.data))

    if debug:
        DebugDumper(output_path.parent / f"{output_path.stem}_debug").dump(result.elements, result.report)
    return result


def main(argv: Optional[list] = None) -> int:
    import argparse

    parser = argparse.ArgumentParser(description="Convert Markdown files into DOCX documents")
    parser.add_argument("markdown_file", help="Path to the input .md file")
    parser.add_argument("--output", help="Path of the .docx file to write")
    parser.add_argument("--title", help="Document title (defaults to the file name)")
    parser.add_argument("--page-size", help="A4, A5, A3, Letter, Legal or Tabloid")
    parser.add_argument("--font", dest="font_family", help="Body text font family")
    parser.add_argument("--font-size", type=int, help="Body text size in points")
    parser.add_argument("--no-preprocess", action="store_true", help="Skip Obsidian syntax preprocessing")
    parser.add_argument("--include-title", action="store_true", help="Start the document with the title as Heading 1")
    parser.add_argument("--include-metadata", action="store_true", help="Render front matter as a property table")
    parser.add_argument("--chunk", action="store_true", help="Force heading-based chunked processing")
    parser.add_argument("--debug", action="store_true", help="Dump parsed elements and the report as JSON")

    args = parser.parse_args(argv)
    result = convert_file(
        args.markdown_file,
        args.output,
        title=args.title,
        chunked=args.chunk,
        debug=args.debug,
        page_size=args.page_size,
        font_family=args.font_family,
        font_size=args.font_size,
        enable_preprocessing=False if args.no_preprocess else None,
        include_title_as_heading=True if args.include_title else None,
        include_metadata=True if args.include_metadata else None,
    )
    if result.report.degraded:
        LOGGER.warning("Output written with degraded content; rerun with --debug for details")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
