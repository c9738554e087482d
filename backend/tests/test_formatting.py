"""
Tests for human-readable value formatting.

All formatters are total: bad input yields "Unknown", never an exception.
"""

from datetime import datetime

from metainspect.metadata import formatting
from metainspect.metadata.formatting import UNKNOWN


class TestFileSize:
    """Decimal (1000-based) file size strings."""

    def test_bytes(self):
        assert formatting.file_size(0) == "0 bytes"
        assert formatting.file_size(1) == "1 byte"
        assert formatting.file_size(999) == "999 bytes"

    def test_kilobytes_have_no_decimals(self):
        assert formatting.file_size(1000) == "1 KB"
        assert formatting.file_size(2048) == "2 KB"

    def test_megabytes_and_gigabytes(self):
        assert formatting.file_size(1_500_000) == "1.5 MB"
        assert formatting.file_size(1_000_000) == "1 MB"
        assert formatting.file_size(2_350_000_000) == "2.35 GB"

    def test_rounding_carries_into_next_unit(self):
        assert formatting.file_size(999_999) == "1 MB"

    def test_invalid_input(self):
        assert formatting.file_size(None) == UNKNOWN
        assert formatting.file_size(-5) == UNKNOWN


class TestBitrate:
    def test_units(self):
        assert formatting.bitrate(800) == "800 bps"
        assert formatting.bitrate(640_000) == "640.00 Kbps"
        assert formatting.bitrate(12_500_000) == "12.50 Mbps"
        assert formatting.bitrate(2_000_000_000) == "2.00 Gbps"

    def test_missing_or_zero(self):
        assert formatting.bitrate(None) == UNKNOWN
        assert formatting.bitrate(0) == UNKNOWN
        assert formatting.bitrate(-1) == UNKNOWN

    def test_non_finite(self):
        assert formatting.bitrate(float("inf")) == UNKNOWN
        assert formatting.bitrate(float("nan")) == UNKNOWN


class TestDuration:
    """Abbreviated h/m/s with leading zero units dropped."""

    def test_breakdowns(self):
        assert formatting.duration(48) == "48s"
        assert formatting.duration(75) == "1m 15s"
        assert formatting.duration(3605) == "1h 0m 5s"

    def test_rounds_to_nearest_second(self):
        assert formatting.duration(59.6) == "1m 0s"

    def test_invalid(self):
        assert formatting.duration(None) == UNKNOWN
        assert formatting.duration(0) == UNKNOWN
        assert formatting.duration(float("nan")) == UNKNOWN
        assert formatting.duration(float("inf")) == UNKNOWN


class TestMisc:
    def test_coordinate_has_six_decimals(self):
        assert formatting.coordinate(40.7128, -74.006) == "40.712800, -74.006000"

    def test_timestamp(self):
        value = datetime(2026, 10, 19, 14, 3, 51)
        assert formatting.timestamp(value) == "Oct 19, 2026 14:03:51"
        assert formatting.timestamp(None) is None

    def test_yes_no(self):
        assert formatting.yes_no(True) == "Yes"
        assert formatting.yes_no(False) == "No"
        assert formatting.yes_no(None) is None

    def test_dimensions(self):
        assert formatting.dimensions(1920, 1080) == "1920 x 1080"
        assert formatting.dimensions(None, 1080) is None
