"""
Tests for baseline filesystem extraction.

Uses real files under tmp_path; no mocks.
"""

import pytest

from metainspect.extractors import FilesystemExtractor
from metainspect.extractors.filesystem import PHOTO_LIBRARY_LOCATION, category_list
from metainspect.metadata import InputChannel, InspectionRequest, UnreadableSourceError


@pytest.fixture
def text_file(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello world")
    return path


class TestBaselineReport:
    """General and Type sections from os.stat and the file name."""

    def setup_method(self):
        self.extractor = FilesystemExtractor()

    def test_general_section(self, text_file):
        report = self.extractor.build_report(InspectionRequest(source_path=str(text_file)))

        general = report.section("General")
        assert general.value_for("Name") == "notes.txt"
        assert general.value_for("Location") == str(text_file.parent.resolve())
        assert general.value_for("Channel") == "Files"
        assert general.value_for("File Size") == "11 bytes"
        assert general.value_for("Modified") is not None

    def test_type_section(self, text_file):
        report = self.extractor.build_report(InspectionRequest(source_path=str(text_file)))

        type_section = report.section("Type")
        assert type_section.value_for("MIME Type") == "text/plain"
        assert type_section.value_for("Extension") == "txt"
        assert type_section.value_for("Category") == "Text"
        assert type_section.value_for("Readable") == "Yes"
        assert type_section.value_for("Hidden") == "No"

    def test_report_header(self, text_file):
        report = self.extractor.build_report(InspectionRequest(source_path=str(text_file)))

        assert report.item_name == "notes.txt"
        assert report.item_subtitle == "11 bytes • Files • TXT Text"
        assert report.channel == InputChannel.FILES
        assert report.section_titles == ("General", "Type")
        assert report.warnings == ()

    def test_photos_channel_uses_library_location(self, text_file):
        request = InspectionRequest(source_path=str(text_file), channel=InputChannel.PHOTOS)

        report = self.extractor.build_report(request)

        assert report.section("General").value_for("Location") == PHOTO_LIBRARY_LOCATION
        assert report.section("General").value_for("Channel") == "Photos"

    def test_unknown_type_is_reported(self, tmp_path):
        path = tmp_path / ".hidden"
        path.write_bytes(b"\x00\x01")

        report = self.extractor.build_report(InspectionRequest(source_path=str(path)))

        type_section = report.section("Type")
        assert type_section.value_for("MIME Type") is None
        assert type_section.value_for("Category") == "Unknown"
        assert type_section.value_for("Hidden") == "Yes"
        assert "Unknown type" in report.item_subtitle

    @pytest.mark.asyncio
    async def test_async_extract(self, text_file):
        report = await self.extractor.extract(InspectionRequest(source_path=str(text_file)))
        assert report.item_name == "notes.txt"


class TestUnreadableSource:
    """Baseline failures are fatal and carry the user-facing message."""

    def setup_method(self):
        self.extractor = FilesystemExtractor()

    def test_missing_file(self, tmp_path):
        with pytest.raises(UnreadableSourceError) as exc_info:
            self.extractor.build_report(InspectionRequest(source_path=str(tmp_path / "gone.mov")))

        assert str(exc_info.value) == "Could not access the selected file."

    def test_directory_is_not_inspectable(self, tmp_path):
        with pytest.raises(UnreadableSourceError):
            self.extractor.build_report(InspectionRequest(source_path=str(tmp_path)))


class TestCategoryList:
    def test_categories(self):
        assert category_list("video/mp4") == "Audiovisual, Video"
        assert category_list("audio/mpeg") == "Audio, Audiovisual"
        assert category_list("image/jpeg") == "Image"
        assert category_list("application/pdf") == "PDF"
        assert category_list("application/zip") == "Archive"
        assert category_list("application/ld+json") == "JSON"
        assert category_list("application/octet-stream") == "General"
        assert category_list(None) == "Unknown"
