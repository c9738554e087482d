"""
Extractor capability interfaces.

The inspection engine never talks to a concrete parser. It receives an
injected capability set:

- one BaselineExtractor (filesystem/type attributes, fatal on failure)
- zero or more EnrichmentExtractors (format-specific, each optional)
- an optional PreviewGenerator (best effort)

Contract for enrichment extractors:
- Return None (or an empty result) when the format is not applicable
- Raise ExtractionError only for genuine I/O or decoding failures
- Any other exception is treated as unexpected and fails the run
"""

import asyncio
import functools
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Optional, Tuple, TypeVar, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from ..metadata.models import InspectionRequest, Report, Section

if TYPE_CHECKING:
    from ..inspection.cancellation import CancellationToken

T = TypeVar("T")


class ExtractorCategory(str, Enum):
    """
    Enrichment categories.

    Declaration order is merge priority: output section order is decided
    here, never by which extractor finishes first.
    """

    MEDIA = "media"
    IMAGE = "image"
    DOCUMENT = "document"
    LIBRARY_ASSET = "library_asset"

    @property
    def priority(self) -> int:
        return list(ExtractorCategory).index(self)


class ExtractionConfig(BaseModel):
    """Options handed to every enrichment extractor for one run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    include_raw_metadata: bool = False
    type_hint: Optional[str] = None  # MIME type from the baseline report


class EnrichmentResult(BaseModel):
    """Sections and warnings contributed by one extractor, merged atomically."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    sections: Tuple[Section, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.sections and not self.warnings


class BaselineExtractor(ABC):
    """Produces the first Report from filesystem-class attributes."""

    @abstractmethod
    async def extract(self, request: InspectionRequest) -> Report:
        """
        Build the baseline report.

        Raises:
            UnreadableSourceError: If the source cannot be accessed or identified
        """
        pass


class EnrichmentExtractor(ABC):
    """Adds format-specific sections to an existing report."""

    @property
    @abstractmethod
    def category(self) -> ExtractorCategory:
        pass

    @property
    def name(self) -> str:
        """Human-readable extractor name for logs."""
        return self.category.value

    @abstractmethod
    async def extract(
        self,
        request: InspectionRequest,
        config: ExtractionConfig,
        token: "CancellationToken",
    ) -> Optional[EnrichmentResult]:
        pass


class PreviewGenerator(ABC):
    """Renders a small preview image for the inspected item."""

    @abstractmethod
    async def generate(self, source_path: str, type_hint: Optional[str]) -> Optional[bytes]:
        pass


async def run_blocking(func: Callable[..., T], *args: Any) -> T:
    """Run a blocking parser call in the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args))
