"""
Tests for library asset lookups.
"""

import json
from datetime import datetime

import pytest

from metainspect.extractors import (
    AssetRecord,
    InMemoryAssetCatalog,
    JsonAssetCatalog,
    LibraryAssetExtractor,
)
from metainspect.extractors.base import ExtractionConfig
from metainspect.extractors.library import asset_section
from metainspect.inspection import CancellationToken
from metainspect.metadata import ExtractionError, InputChannel, InspectionRequest


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "library.json"
    path.write_text(json.dumps({
        "assets": [
            {
                "identifier": "A1B2-C3",
                "created_at": "2024-06-01T09:30:00",
                "latitude": 40.7128,
                "longitude": -74.006,
            },
            {"identifier": "NO-GPS"},
        ]
    }))
    return path


class TestJsonAssetCatalog:
    def test_lookup(self, catalog_file):
        catalog = JsonAssetCatalog(str(catalog_file))

        record = catalog.lookup("A1B2-C3")

        assert record.created_at == datetime(2024, 6, 1, 9, 30)
        assert record.latitude == pytest.approx(40.7128)

    def test_unknown_asset(self, catalog_file):
        assert JsonAssetCatalog(str(catalog_file)).lookup("missing") is None

    def test_unreadable_catalog(self, tmp_path):
        path = tmp_path / "library.json"
        path.write_text("{broken")

        with pytest.raises(ExtractionError):
            JsonAssetCatalog(str(path)).lookup("A1B2-C3")

    def test_missing_catalog(self, tmp_path):
        with pytest.raises(ExtractionError):
            JsonAssetCatalog(str(tmp_path / "nope.json")).lookup("A1B2-C3")


class TestAssetSection:
    def test_full_record(self):
        record = AssetRecord(
            identifier="A1B2-C3",
            created_at=datetime(2024, 6, 1, 9, 30),
            latitude=40.7128,
            longitude=-74.006,
        )

        section = asset_section(record)

        assert section.title == "Photos Asset"
        assert section.value_for("Asset Identifier") == "A1B2-C3"
        assert section.value_for("Created") == "Jun 01, 2024 09:30:00"
        assert section.value_for("Location") == "40.712800, -74.006000"

    def test_record_without_location(self):
        section = asset_section(AssetRecord(identifier="NO-GPS"))
        assert section.value_for("Location") is None
        assert [f.key for f in section.fields] == ["Asset Identifier"]


class TestLibraryAssetExtractor:
    def setup_method(self):
        self.catalog = InMemoryAssetCatalog([AssetRecord(identifier="A1B2-C3", latitude=1.0, longitude=2.0)])
        self.extractor = LibraryAssetExtractor(self.catalog)

    @pytest.mark.asyncio
    async def test_without_asset_identifier(self):
        result = await self.extractor.extract(
            InspectionRequest(source_path="/tmp/a.jpg"), ExtractionConfig(), CancellationToken()
        )
        assert result is None

    @pytest.mark.asyncio
    async def test_with_asset_identifier(self):
        request = InspectionRequest(
            source_path="/tmp/a.jpg", channel=InputChannel.PHOTOS, asset_identifier="A1B2-C3"
        )

        result = await self.extractor.extract(request, ExtractionConfig(), CancellationToken())

        assert result.sections[0].value_for("Location") == "1.000000, 2.000000"

    @pytest.mark.asyncio
    async def test_unknown_asset(self):
        request = InspectionRequest(source_path="/tmp/a.jpg", asset_identifier="ZZZ")
        result = await self.extractor.extract(request, ExtractionConfig(), CancellationToken())
        assert result is None
