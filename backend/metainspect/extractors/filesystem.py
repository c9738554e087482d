"""
Baseline metadata extraction from the filesystem.

Produces the General and Type sections without decoding file content.
Failures to access the source are fatal for the run (UnreadableSourceError).
"""

import logging
import mimetypes
import os
import stat
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..metadata import formatting
from ..metadata.builder import SectionBuilder
from ..metadata.errors import UnreadableSourceError
from ..metadata.models import InputChannel, InspectionRequest, Report
from .base import BaselineExtractor, run_blocking

logger = logging.getLogger(__name__)


ARCHIVE_TYPES = {
    "application/zip",
    "application/gzip",
    "application/x-tar",
    "application/x-7z-compressed",
    "application/x-bzip2",
    "application/x-rar-compressed",
    "application/vnd.rar",
}

PHOTO_LIBRARY_LOCATION = "Photo Library"


def guess_mime_type(path: Path) -> Optional[str]:
    """MIME type from the file name, or None when unknown."""
    mime, _ = mimetypes.guess_type(path.name)
    return mime


def category_list(mime: Optional[str]) -> str:
    """
    Comma-separated content categories for a MIME type.

    Returns:
        e.g. "Audiovisual, Video", "PDF", "General", or "Unknown"
    """
    if mime is None:
        return formatting.UNKNOWN

    major, _, minor = mime.partition("/")
    categories = set()

    if major == "video":
        categories.update({"Audiovisual", "Video"})
    elif major == "audio":
        categories.update({"Audiovisual", "Audio"})
    elif major == "image":
        categories.add("Image")
    elif major == "text":
        categories.add("Text")

    if mime == "application/pdf":
        categories.add("PDF")
    if mime in ARCHIVE_TYPES:
        categories.add("Archive")
    if minor == "json" or minor.endswith("+json"):
        categories.add("JSON")
    if minor == "xml" or minor.endswith("+xml"):
        categories.add("XML")
    if mime in ("text/x-python", "text/x-c", "text/javascript", "application/javascript"):
        categories.add("Source Code")

    if not categories:
        categories.add("General")
    return ", ".join(sorted(categories))


def type_description(mime: Optional[str], path: Path) -> str:
    """Short type label used in the report subtitle."""
    if mime:
        suffix = path.suffix.lstrip(".").upper()
        label = mime.split("/")[0].capitalize()
        return f"{suffix} {label}" if suffix else mime
    return "Unknown type"


def _timestamp(epoch: Optional[float]) -> Optional[str]:
    if epoch is None:
        return None
    return formatting.timestamp(datetime.fromtimestamp(epoch))


class FilesystemExtractor(BaselineExtractor):
    """Builds the baseline report from os.stat() and the file name."""

    async def extract(self, request: InspectionRequest) -> Report:
        return await run_blocking(self.build_report, request)

    def build_report(self, request: InspectionRequest) -> Report:
        """
        Build the baseline report synchronously.

        Args:
            request: Inspection request

        Returns:
            Report with General and Type sections

        Raises:
            UnreadableSourceError: If the path is missing, not a regular file,
                or cannot be stat'ed
        """
        path = Path(request.source_path)

        try:
            st = path.stat()
        except OSError as e:
            logger.warning(f"Cannot stat {path}: {e}")
            raise UnreadableSourceError(str(path))

        if not stat.S_ISREG(st.st_mode):
            raise UnreadableSourceError(str(path))

        item_name = path.name
        mime = guess_mime_type(path)
        if request.channel == InputChannel.PHOTOS:
            location = PHOTO_LIBRARY_LOCATION
        else:
            location = str(path.resolve().parent)
        size_text = formatting.file_size(st.st_size)

        builder = SectionBuilder()
        builder.append_section(
            "General",
            "doc.text.magnifyingglass",
            SectionBuilder.fields([
                ("Name", item_name),
                ("Location", location),
                ("Channel", request.channel.value),
                ("File Size", size_text),
                ("Created", _timestamp(getattr(st, "st_birthtime", None))),
                ("Modified", _timestamp(st.st_mtime)),
            ]),
        )

        builder.append_section(
            "Type",
            "tag",
            SectionBuilder.fields([
                ("MIME Type", mime),
                ("Extension", path.suffix.lstrip(".").lower() or None),
                ("Preferred Extension", _preferred_extension(mime)),
                ("Category", category_list(mime)),
                ("Readable", formatting.yes_no(os.access(path, os.R_OK))),
                ("Writable", formatting.yes_no(os.access(path, os.W_OK))),
                ("Hidden", formatting.yes_no(item_name.startswith("."))),
            ]),
        )

        subtitle = " • ".join(
            part for part in (
                size_text,
                request.channel.value,
                type_description(mime, path),
            ) if part
        )

        return Report(
            item_name=item_name,
            item_subtitle=subtitle,
            channel=request.channel,
            sections=builder.sections,
            warnings=(),
            preview_image=None,
            inspected_at=datetime.now(),
            source_path=str(path),
        )


def _preferred_extension(mime: Optional[str]) -> Optional[str]:
    if mime is None:
        return None
    extension = mimetypes.guess_extension(mime)
    return extension.lstrip(".") if extension else None
