"""
Media metadata extraction using ffprobe.

This module uses ffprobe (part of ffmpeg) to read container and track
metadata from audio/video files. Extraction is read-only and non-destructive.

Inputs ffprobe cannot open are "not applicable" (None), not errors.
Unparseable ffprobe output and timeouts raise ExtractionError.
"""

import json
import logging
import shutil
import subprocess
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from ..metadata import formatting
from ..metadata.builder import SectionBuilder
from ..metadata.errors import ExtractionError, ToolNotFoundError
from ..metadata.models import Field, InspectionRequest
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


FFPROBE_TIMEOUT_SECONDS = 30

# Number of container tags shown in the raw metadata section
RAW_TAG_LIMIT = 20

# MIME types ffprobe would happily (and uselessly) open as a one-frame video
_SKIPPED_MAJOR_TYPES = {"image", "text"}
_SKIPPED_TYPES = {"application/pdf", "application/json", "application/xml"}


# Cache ffprobe availability check
_ffprobe_available: Optional[bool] = None


def check_ffprobe_available() -> bool:
    """
    Check if ffprobe is available on the system.

    Result is cached after first call.
    """
    global _ffprobe_available

    if _ffprobe_available is None:
        _ffprobe_available = shutil.which("ffprobe") is not None

    return _ffprobe_available


def run_ffprobe(filepath: str) -> Optional[Dict[str, Any]]:
    """
    Run ffprobe and return parsed JSON output.

    Args:
        filepath: Path to media file

    Returns:
        Parsed ffprobe JSON output, or None if ffprobe cannot open the file

    Raises:
        ExtractionError: If ffprobe times out or prints invalid JSON
        ToolNotFoundError: If the ffprobe binary cannot be executed
    """
    cmd = [
        "ffprobe",
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        filepath,
    ]

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=True,
            timeout=FFPROBE_TIMEOUT_SECONDS,
        )
    except subprocess.CalledProcessError as e:
        logger.debug(f"ffprobe exited with {e.returncode} for {filepath}")
        return None
    except subprocess.TimeoutExpired:
        raise ExtractionError("media", filepath, "ffprobe timed out")
    except OSError as e:
        logger.warning(f"ffprobe could not be executed: {e}")
        raise ToolNotFoundError("ffprobe")

    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise ExtractionError("media", filepath, f"Failed to parse ffprobe output: {e}")


def parse_rational(rational_str: Optional[str]) -> float:
    """
    Parse a rational number string (e.g., "30000/1001") to float.

    Returns:
        Float value, or 0.0 if parsing fails
    """
    if not rational_str:
        return 0.0
    try:
        if "/" in rational_str:
            num, denom = rational_str.split("/")
            if int(denom) == 0:
                return 0.0
            return int(num) / int(denom)
        return float(rational_str)
    except (ValueError, TypeError):
        return 0.0


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def _video_summary(index: int, stream: Dict[str, Any]) -> str:
    width = abs(int(stream.get("width") or 0))
    height = abs(int(stream.get("height") or 0))
    frame_rate = parse_rational(stream.get("avg_frame_rate"))
    if frame_rate <= 0:
        frame_rate = parse_rational(stream.get("r_frame_rate"))
    codec = stream.get("codec_name") or "unknown"
    return (
        f"#{index}: {width}x{height} • {frame_rate:.2f} fps • "
        f"{formatting.bitrate(_to_float(stream.get('bit_rate')))} • {codec}"
    )


def _audio_summary(index: int, stream: Dict[str, Any]) -> str:
    pieces = [
        f"#{index}",
        formatting.bitrate(_to_float(stream.get("bit_rate"))),
        stream.get("codec_name") or "unknown",
    ]
    if stream.get("channels"):
        pieces.append(f"{stream['channels']} ch")
    sample_rate = _to_float(stream.get("sample_rate"))
    if sample_rate:
        pieces.append(f"{int(sample_rate)} Hz")
    return " • ".join(pieces)


def build_media_sections(ffprobe_data: Dict[str, Any], include_raw_metadata: bool) -> Optional[EnrichmentResult]:
    """
    Turn ffprobe output into report sections.

    Args:
        ffprobe_data: Parsed ffprobe output
        include_raw_metadata: Add a "Raw Media Metadata" section with container tags

    Returns:
        EnrichmentResult, or None when ffprobe reports no media at all
    """
    format_info = ffprobe_data.get("format", {})
    streams: List[Dict[str, Any]] = ffprobe_data.get("streams", [])
    duration = _to_float(format_info.get("duration"))

    if not streams and not duration:
        return None

    total_bitrate = sum(max(_to_float(s.get("bit_rate")) or 0.0, 0.0) for s in streams)
    if total_bitrate <= 0:
        total_bitrate = _to_float(format_info.get("bit_rate")) or 0.0

    codecs = sorted({s["codec_name"] for s in streams if s.get("codec_name")})

    video_summaries: List[str] = []
    audio_summaries: List[str] = []
    for index, stream in enumerate(streams, start=1):
        if stream.get("codec_type") == "video":
            video_summaries.append(_video_summary(index, stream))
        elif stream.get("codec_type") == "audio":
            audio_summaries.append(_audio_summary(index, stream))

    container = format_info.get("format_long_name") or format_info.get("format_name")

    builder = SectionBuilder()
    builder.append_section(
        "Media",
        "film",
        SectionBuilder.fields([
            ("Duration", formatting.duration(duration)),
            ("Container", container),
            ("Playable", formatting.yes_no(bool(video_summaries or audio_summaries))),
            ("Track Count", str(len(streams))),
            ("Estimated Total Bitrate", formatting.bitrate(total_bitrate or None)),
            ("Codecs", ", ".join(codecs) if codecs else None),
        ]),
    )
    builder.append_section(
        "Video Tracks",
        "video",
        [Field(key=f"Track {i}", value=v) for i, v in enumerate(video_summaries, start=1)],
    )
    builder.append_section(
        "Audio Tracks",
        "waveform",
        [Field(key=f"Track {i}", value=v) for i, v in enumerate(audio_summaries, start=1)],
    )

    if include_raw_metadata:
        tags = format_info.get("tags") or {}
        builder.append_section(
            "Raw Media Metadata",
            "list.bullet.rectangle",
            SectionBuilder.fields(
                (str(key), str(value)) for key, value in list(tags.items())[:RAW_TAG_LIMIT]
            ),
        )

    return EnrichmentResult(sections=builder.sections)


class MediaExtractor(EnrichmentExtractor):
    """Audio/video container and track metadata via ffprobe."""

    @property
    def category(self) -> ExtractorCategory:
        return ExtractorCategory.MEDIA

    def is_applicable(self, type_hint: Optional[str]) -> bool:
        if type_hint is None:
            return True
        if type_hint in _SKIPPED_TYPES:
            return False
        return type_hint.split("/")[0] not in _SKIPPED_MAJOR_TYPES

    async def extract(
        self,
        request: InspectionRequest,
        config: ExtractionConfig,
        token: "CancellationToken",
    ) -> Optional[EnrichmentResult]:
        if not self.is_applicable(config.type_hint):
            return None

        if not check_ffprobe_available():
            raise ToolNotFoundError("ffprobe")

        ffprobe_data = await run_blocking(run_ffprobe, request.source_path)
        token.checkpoint("after ffprobe")
        if ffprobe_data is None:
            return None

        try:
            return build_media_sections(ffprobe_data, config.include_raw_metadata)
        except (ValueError, TypeError, KeyError) as e:
            raise ExtractionError("media", request.source_path, f"Failed to parse metadata: {e}")
