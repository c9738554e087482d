"""
Metadata extractors.

Concrete implementations of the extractor capability interfaces used by
the inspection engine. Each one delegates decoding to a third-party tool:

- FilesystemExtractor: os.stat / mimetypes (baseline)
- MediaExtractor: ffprobe
- ImageExtractor: Pillow
- DocumentExtractor: PyMuPDF
- LibraryAssetExtractor: injected AssetCatalog
- DefaultPreviewGenerator: Pillow / PyMuPDF / ffmpeg
"""

from typing import List, Optional

from .base import (
    BaselineExtractor,
    EnrichmentExtractor,
    EnrichmentResult,
    ExtractionConfig,
    ExtractorCategory,
    PreviewGenerator,
)
from .filesystem import FilesystemExtractor
from .media import MediaExtractor, check_ffprobe_available
from .image import ImageExtractor
from .document import DocumentExtractor
from .library import (
    AssetCatalog,
    AssetRecord,
    InMemoryAssetCatalog,
    JsonAssetCatalog,
    LibraryAssetExtractor,
)
from .preview import DefaultPreviewGenerator


def default_extractors(catalog: Optional[AssetCatalog] = None) -> List[EnrichmentExtractor]:
    """
    Build the standard enrichment capability set in priority order.

    Args:
        catalog: Library asset catalog; the library-asset extractor is
            omitted when None
    """
    extractors: List[EnrichmentExtractor] = [
        MediaExtractor(),
        ImageExtractor(),
        DocumentExtractor(),
    ]
    if catalog is not None:
        extractors.append(LibraryAssetExtractor(catalog))
    return extractors


__all__ = [
    # Interfaces
    "BaselineExtractor",
    "EnrichmentExtractor",
    "EnrichmentResult",
    "ExtractionConfig",
    "ExtractorCategory",
    "PreviewGenerator",
    # Implementations
    "FilesystemExtractor",
    "MediaExtractor",
    "check_ffprobe_available",
    "ImageExtractor",
    "DocumentExtractor",
    "AssetCatalog",
    "AssetRecord",
    "InMemoryAssetCatalog",
    "JsonAssetCatalog",
    "LibraryAssetExtractor",
    "DefaultPreviewGenerator",
    "default_extractors",
]
