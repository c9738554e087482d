"""
Metadata aggregation model.

Normalizes heterogeneous extractor outputs into a uniform report made of
ordered sections of key/value fields.

Usage:
    from metainspect.metadata import SectionBuilder, formatting

    builder = SectionBuilder()
    builder.append_section("General", "doc", SectionBuilder.fields([
        ("Name", "clip.mov"),
        ("File Size", formatting.file_size(238_000_000)),
    ]))
"""

from .errors import (
    MetadataError,
    UnreadableSourceError,
    ExtractionError,
    ToolNotFoundError,
)
from .models import (
    ESSENTIAL_SECTIONS,
    Field,
    InputChannel,
    InspectionRequest,
    Report,
    Section,
    essential_sections,
)
from .builder import SectionBuilder
from . import formatting

__all__ = [
    # Errors
    "MetadataError",
    "UnreadableSourceError",
    "ExtractionError",
    "ToolNotFoundError",
    # Models
    "ESSENTIAL_SECTIONS",
    "Field",
    "InputChannel",
    "InspectionRequest",
    "Report",
    "Section",
    "essential_sections",
    # Builder
    "SectionBuilder",
    "formatting",
]
