"""
Image metadata extraction using Pillow.

Produces Image, Capture (EXIF camera settings) and Location (EXIF GPS)
sections. Files Pillow cannot identify are "not applicable".
"""

import io
import json
import logging
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

from PIL import ExifTags, Image, ImageCms, UnidentifiedImageError

from ..metadata import formatting
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


NO_GPS_WARNING = "No embedded GPS metadata found in image."

# Raw payload is cut at this many characters
RAW_PAYLOAD_LIMIT = 3000


def _as_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None


def dms_to_degrees(value: Any) -> Optional[float]:
    """Convert an EXIF (degrees, minutes, seconds) triple to decimal degrees."""
    if isinstance(value, (tuple, list)) and len(value) == 3:
        parts = [_as_float(v) for v in value]
        if any(p is None for p in parts):
            return None
        degrees, minutes, seconds = parts
        return degrees + minutes / 60.0 + seconds / 3600.0
    return _as_float(value)


def signed_coordinate(value: Optional[float], ref: Optional[str]) -> Optional[float]:
    """Negate southern/western coordinates."""
    if value is None:
        return None
    if ref and ref.strip().upper() in ("S", "W"):
        return -abs(value)
    return value


def _profile_name(img: Image.Image) -> Optional[str]:
    icc = img.info.get("icc_profile")
    if not icc:
        return None
    try:
        profile = ImageCms.ImageCmsProfile(io.BytesIO(icc))
        return ImageCms.getProfileDescription(profile).strip() or None
    except (ImageCms.PyCMSError, OSError, ValueError):
        return "Embedded ICC profile"


def _first(value: Any) -> Any:
    if isinstance(value, (tuple, list)):
        return value[0] if value else None
    return value


def _raw_payload(exif: Dict[int, Any], info: Dict[str, Any]) -> str:
    payload = {k: str(v) for k, v in info.items() if k != "icc_profile" and not isinstance(v, bytes)}
    for tag, value in exif.items():
        payload[ExifTags.TAGS.get(tag, f"tag_{tag}")] = str(value)
    text = json.dumps(payload, indent=2, sort_keys=True, default=str)
    if len(text) <= RAW_PAYLOAD_LIMIT:
        return text
    return text[:RAW_PAYLOAD_LIMIT] + "…"


# Pillow failures on an identified image: truncated data, bad chunks,
# oversized dimensions
_DECODE_ERRORS = (Image.DecompressionBombError, OSError, ValueError, SyntaxError, EOFError)


def read_image_metadata(path: str, include_raw_metadata: bool) -> Optional[EnrichmentResult]:
    """
    Read image properties, EXIF and GPS from a file.

    Args:
        path: Image file path
        include_raw_metadata: Add a "Raw Image Metadata" JSON payload section

    Returns:
        EnrichmentResult, or None if Pillow cannot identify the file

    Raises:
        ExtractionError: If the image is identified but cannot be read,
            including images over Pillow's decompression bomb limit
    """
    try:
        img = Image.open(path)
    except UnidentifiedImageError:
        return None
    except _DECODE_ERRORS as e:
        raise ExtractionError("image", path, str(e))

    with img:
        try:
            return _describe_image(img, path, include_raw_metadata)
        except _DECODE_ERRORS as e:
            raise ExtractionError("image", path, str(e))


def _describe_image(img: Image.Image, path: str, include_raw_metadata: bool) -> EnrichmentResult:
    warnings: List[str] = []
    builder = SectionBuilder()

    try:
        exif = img.getexif()
        exif_ifd = exif.get_ifd(ExifTags.IFD.Exif) if exif else {}
        gps_ifd = exif.get_ifd(ExifTags.IFD.GPSInfo) if exif else {}
    except (OSError, SyntaxError, ValueError) as e:
        raise ExtractionError("image", path, f"Unreadable EXIF block: {e}")

    width, height = img.size
    builder.append_section(
        "Image",
        "photo",
        SectionBuilder.fields([
            ("Dimensions", formatting.dimensions(width, height)),
            ("Format", img.format),
            ("Color Model", img.mode),
            ("Profile", _profile_name(img)),
            ("Frame Count", str(getattr(img, "n_frames", 1))),
        ]),
    )

    if exif:
        iso = _first(exif_ifd.get(ExifTags.Base.ISOSpeedRatings))
        exposure = _as_float(exif_ifd.get(ExifTags.Base.ExposureTime))
        builder.append_section(
            "Capture",
            "camera",
            SectionBuilder.fields([
                ("Camera Make", _clean_text(exif.get(ExifTags.Base.Make))),
                ("Camera Model", _clean_text(exif.get(ExifTags.Base.Model))),
                ("ISO", str(iso) if iso is not None else None),
                ("Exposure", f"{exposure:.5f} s" if exposure is not None else None),
            ]),
        )

    if gps_ifd:
        latitude, longitude, altitude = _gps_position(gps_ifd)
        builder.append_section(
            "Location",
            "location",
            SectionBuilder.fields([
                ("Coordinates", formatting.coordinate(latitude, longitude)
                    if latitude is not None and longitude is not None else None),
                ("Altitude", f"{altitude:.2f} m" if altitude is not None else None),
            ]),
        )
    else:
        warnings.append(NO_GPS_WARNING)

    if include_raw_metadata:
        builder.append_section(
            "Raw Image Metadata",
            "text.alignleft",
            SectionBuilder.fields([("Payload", _raw_payload(dict(exif), img.info))]),
        )

    return EnrichmentResult(sections=builder.sections, warnings=tuple(warnings))


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip("\x00 ")


def _gps_position(gps: Dict[int, Any]) -> Tuple[Optional[float], Optional[float], Optional[float]]:
    latitude = signed_coordinate(
        dms_to_degrees(gps.get(ExifTags.GPS.GPSLatitude)),
        gps.get(ExifTags.GPS.GPSLatitudeRef),
    )
    longitude = signed_coordinate(
        dms_to_degrees(gps.get(ExifTags.GPS.GPSLongitude)),
        gps.get(ExifTags.GPS.GPSLongitudeRef),
    )
    altitude = _as_float(gps.get(ExifTags.GPS.GPSAltitude))
    if altitude is not None and gps.get(ExifTags.GPS.GPSAltitudeRef) in (1, b"\x01"):
        altitude = -altitude
    return latitude, longitude, altitude


class ImageExtractor(EnrichmentExtractor):
    """Still image properties, EXIF capture settings and GPS position."""

    @property
    def category(self) -> ExtractorCategory:
        return ExtractorCategory.IMAGE

    async def extract(
        self,
        request: InspectionRequest,
        config: ExtractionConfig,
        token: "CancellationToken",
    ) -> Optional[EnrichmentResult]:
        if config.type_hint and not config.type_hint.startswith("image/"):
            return None
        return await run_blocking(
            read_image_metadata, request.source_path, config.include_raw_metadata
        )
