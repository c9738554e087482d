"""
PDF document metadata extraction using PyMuPDF.

Only applies to PDFs (by MIME type hint, or by .pdf suffix when the
baseline could not determine a type).
"""

import logging
from pathlib import Path
from typing import Optional, TYPE_CHECKING

import fitz

from ..metadata.builder import SectionBuilder
from ..metadata.errors import ExtractionError
from ..metadata.models import InspectionRequest
from .base import (
    EnrichmentExtractor,
    EnrichmentResult,
    ExtractionConfig,
    ExtractorCategory,
    run_blocking,
)

if TYPE_CHECKING:
    from ..inspection.cancellation import CancellationToken

logger = logging.getLogger(__name__)


PDF_MIME_TYPE = "application/pdf"


def is_pdf(path: str, type_hint: Optional[str]) -> bool:
    if type_hint is not None:
        return type_hint == PDF_MIME_TYPE
    return Path(path).suffix.lower() == ".pdf"


def read_pdf_metadata(path: str) -> EnrichmentResult:
    """
    Read document attributes from a PDF.

    Args:
        path: PDF file path

    Returns:
        EnrichmentResult with a single "PDF" section

    Raises:
        ExtractionError: If the document cannot be opened or parsed
    """
    try:
        doc = fitz.open(path)
    except (fitz.FileDataError, RuntimeError, OSError) as e:
        raise ExtractionError("document", path, str(e))

    with doc:
        metadata = doc.metadata or {}
        builder = SectionBuilder()
        builder.append_section(
            "PDF",
            "doc.richtext",
            SectionBuilder.fields([
                ("Page Count", str(doc.page_count)),
                ("Title", metadata.get("title")),
                ("Author", metadata.get("author")),
                ("Subject", metadata.get("subject")),
                ("Creator", metadata.get("creator")),
                ("Producer", metadata.get("producer")),
                ("Encrypted", "Yes" if doc.is_encrypted else None),
            ]),
        )

    return EnrichmentResult(sections=builder.sections)


class DocumentExtractor(EnrichmentExtractor):
    """PDF page count and document information dictionary."""

    @property
    def category(self) -> ExtractorCategory:
        return ExtractorCategory.DOCUMENT

    async def extract(
        self,
        request: InspectionRequest,
        config: ExtractionConfig,
        token: "CancellationToken",
    ) -> Optional[EnrichmentResult]:
        if not is_pdf(request.source_path, config.type_hint):
            return None
        return await run_blocking(read_pdf_metadata, request.source_path)
