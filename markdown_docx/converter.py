"""Markdown to DOCX conversion pipeline."""
from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

import httpx

from markdown_docx.config import ConversionSettings, FontProfile, load_settings, resolve_typography
from markdown_docx.model.document_model import (
    ChunkOutcome,
    ConversionContext,
    ConversionReport,
    ConversionResult,
    FootnoteTable,
    ResourceLoader,
)
from markdown_docx.model.elements import Break, DocumentElement, Heading, Table
from markdown_docx.model.numbering_model import NumberingCatalog
from markdown_docx.parser.chunker import split_by_headings
from markdown_docx.parser.document_parser import DocumentParser
from markdown_docx.parser.footnotes import extract_footnotes
from markdown_docx.parser.media_extractor import ImageResolver
from markdown_docx.parser.preprocessor import preprocess, split_frontmatter
from markdown_docx.renderer.document_renderer import DocumentRenderer
from markdown_docx.renderer.numbering_writer import NumberingWriter
from markdown_docx.renderer.package_writer import DocxParts, PackagingError, write_package
from markdown_docx.renderer.relationships import RelationshipTable
from markdown_docx.renderer.styles_writer import StylesWriter, build_styles_catalog
from markdown_docx.utils.logger import get_logger

LOGGER = get_logger(__name__)


class MarkdownToDocxConverter:
    """Converts Markdown text into DOCX bytes.

    The converter only holds configuration. Each call builds its own
    :class:`ConversionContext`, so one instance can serve concurrent calls.
    """

    def __init__(
        self,
        settings: Optional[ConversionSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings or load_settings()
        self._http_client = http_client

    async def convert(
        self,
        markdown: str,
        title: str = "",
        fonts: Optional[FontProfile] = None,
        resource_loader: Optional[ResourceLoader] = None,
    ) -> ConversionResult:
        """Convert ``markdown``; chunking engages above ``chunking_threshold`` characters."""
        return await self._run(markdown, title, fonts, resource_loader, force_chunking=False)

    async def convert_with_chunking(
        self,
        markdown: str,
        title: str = "",
        fonts: Optional[FontProfile] = None,
        resource_loader: Optional[ResourceLoader] = None,
    ) -> ConversionResult:
        """Convert ``markdown`` heading-chunk by heading-chunk regardless of its size."""
        return await self._run(markdown, title, fonts, resource_loader, force_chunking=True)

    def convert_sync(
        self,
        markdown: str,
        title: str = "",
        fonts: Optional[FontProfile] = None,
        resource_loader: Optional[ResourceLoader] = None,
    ) -> ConversionResult:
        return asyncio.run(self.convert(markdown, title, fonts, resource_loader))

    # ------------------------------------------------------------------
    async def _run(
        self,
        markdown: str,
        title: str,
        fonts: Optional[FontProfile],
        resource_loader: Optional[ResourceLoader],
        force_chunking: bool,
    ) -> ConversionResult:
        context = self._new_context(fonts, resource_loader)
        settings = context.settings

        metadata, body = split_frontmatter(markdown)
        if settings.enable_preprocessing:
            body = preprocess(body)
        body, definitions = extract_footnotes(body)
        context.footnotes = FootnoteTable(definitions=definitions)

        elements = self._leading_elements(title, metadata)
        if force_chunking or len(body) > settings.chunking_threshold:
            chunks = split_by_headings(body, settings.chunk_size)
            LOGGER.info("Processing %d chunks of up to %d characters", len(chunks), settings.chunk_size)
        else:
            chunks = [body]
        elements.extend(await self._parse_chunks(chunks, context.report))

        await ImageResolver(resource_loader, client=context.http_client).resolve_all(elements, context.report)

        data = self._package(elements, context)
        if context.report.degraded:
            LOGGER.warning(
                "Conversion degraded: %d element failures, %d chunk failures, %d missing images",
                len(context.report.element_failures),
                len(context.report.chunk_failures),
                len(context.report.missing_images),
            )
        return ConversionResult(data=data, report=context.report, elements=elements)

    def _new_context(self, fonts: Optional[FontProfile], resource_loader: Optional[ResourceLoader]) -> ConversionContext:
        return ConversionContext(
            settings=self.settings,
            typography=resolve_typography(self.settings, fonts),
            relationships=RelationshipTable(),
            numbering=NumberingCatalog.default(),
            resource_loader=resource_loader,
            http_client=self._http_client,
        )

    def _leading_elements(self, title: str, metadata: Dict[str, str]) -> List[DocumentElement]:
        elements: List[DocumentElement] = []
        if self.settings.include_title_as_heading and title.strip():
            elements.append(Heading(title.strip(), 1))
        if self.settings.include_metadata and metadata:
            rows = [["Property", "Value"]] + [[key, value] for key, value in metadata.items()]
            elements.append(Table(rows=rows, alignments=["left", "left"]))
            elements.append(Break())
        return elements

    @staticmethod
    async def _parse_chunks(chunks: List[str], report: ConversionReport) -> List[DocumentElement]:
        elements: List[DocumentElement] = []
        for index, chunk in enumerate(chunks):
            if index:
                await asyncio.sleep(0)
            try:
                elements.extend(DocumentParser().parse(chunk))
            except Exception as exc:  # recorded as a ChunkOutcome
                LOGGER.warning("Skipping chunk %d (%d characters): %s", index, len(chunk), exc)
                report.chunk_failures.append(ChunkOutcome(index, len(chunk), str(exc)))
        report.chunk_count = len(chunks)
        return elements

    @staticmethod
    def _package(elements: List[DocumentElement], context: ConversionContext) -> bytes:
        try:
            document_xml = DocumentRenderer(context).render(elements)
            parts = DocxParts(
                document_xml=document_xml,
                styles_xml=StylesWriter(build_styles_catalog(context.typography)).to_xml(),
                numbering_xml=NumberingWriter(context.numbering).to_xml(),
                relationships=context.relationships,
            )
        except Exception as exc:
            raise PackagingError(f"Failed to serialize document: {exc}") from exc
        return write_package(parts)
