"""
Library asset location lookup.

Items picked from a photo library carry an asset identifier. The library's
own record for that asset (creation date, GPS position) is looked up in an
AssetCatalog and reported as a "Photos Asset" section.

The catalog is injected. JsonAssetCatalog reads a library export of the form:

    {"assets": [{"identifier": "...", "created_at": "...",
                 "latitude": 40.7, "longitude": -74.0}]}
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, ValidationError

from ..metadata import formatting
from ..metadata.builder import SectionBuilder
from ..metadata.errors import ExtractionError
from ..metadata.models import InspectionRequest, Section
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


class AssetRecord(BaseModel):
    """Library-side record for one asset."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    identifier: str
    created_at: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class AssetCatalog(ABC):
    """Lookup of library assets by identifier."""

    @abstractmethod
    def lookup(self, identifier: str) -> Optional[AssetRecord]:
        """
        Find an asset.

        Returns:
            The record, or None if the library has no such asset

        Raises:
            ExtractionError: If the library itself cannot be read
        """
        pass


class InMemoryAssetCatalog(AssetCatalog):
    """Catalog backed by a dict; used when records are already loaded."""

    def __init__(self, records: Iterable[AssetRecord] = ()):
        self._records: Dict[str, AssetRecord] = {r.identifier: r for r in records}

    def add(self, record: AssetRecord) -> None:
        self._records[record.identifier] = record

    def lookup(self, identifier: str) -> Optional[AssetRecord]:
        return self._records.get(identifier)


class JsonAssetCatalog(AssetCatalog):
    """Catalog read from a JSON library export. Loaded lazily, once."""

    def __init__(self, path: str):
        self.path = Path(path)
        self._records: Optional[Dict[str, AssetRecord]] = None

    def _load(self) -> Dict[str, AssetRecord]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            records: List[AssetRecord] = [
                AssetRecord.model_validate(entry) for entry in data.get("assets", [])
            ]
        except (OSError, json.JSONDecodeError, AttributeError, ValidationError) as e:
            raise ExtractionError("library_asset", str(self.path), f"Unreadable asset catalog: {e}")

        logger.debug(f"Loaded {len(records)} assets from {self.path}")
        return {r.identifier: r for r in records}

    def lookup(self, identifier: str) -> Optional[AssetRecord]:
        if self._records is None:
            self._records = self._load()
        return self._records.get(identifier)


def asset_section(record: AssetRecord) -> Optional[Section]:
    location = None
    if record.latitude is not None and record.longitude is not None:
        location = formatting.coordinate(record.latitude, record.longitude)

    builder = SectionBuilder()
    builder.append_section(
        "Photos Asset",
        "photo.stack",
        SectionBuilder.fields([
            ("Asset Identifier", record.identifier),
            ("Created", formatting.timestamp(record.created_at)),
            ("Location", location),
        ]),
    )
    return builder.sections[0] if builder.sections else None


class LibraryAssetExtractor(EnrichmentExtractor):
    """Creation date and location recorded by the library for a picked asset."""

    def __init__(self, catalog: AssetCatalog):
        self.catalog = catalog

    @property
    def category(self) -> ExtractorCategory:
        return ExtractorCategory.LIBRARY_ASSET

    async def extract(
        self,
        request: InspectionRequest,
        config: ExtractionConfig,
        token: "CancellationToken",
    ) -> Optional[EnrichmentResult]:
        if not request.asset_identifier:
            return None

        record = await run_blocking(self.catalog.lookup, request.asset_identifier)
        if record is None:
            logger.debug(f"Asset {request.asset_identifier} not found in library")
            return None

        section = asset_section(record)
        if section is None:
            return None
        return EnrichmentResult(sections=(section,))
