"""
Preview image generation.

Strategy by type:
- Images: Pillow thumbnail
- PDFs: first page rendered with PyMuPDF
- Video: single frame grabbed with ffmpeg at 0.1s

Best effort. Every failure returns None; nothing here fails a run.
"""

import io
import logging
import os
import shutil
import subprocess
from typing import Optional

import fitz
from PIL import Image, UnidentifiedImageError

from .base import PreviewGenerator, run_blocking

logger = logging.getLogger(__name__)


# Longest edge of a generated preview, in pixels
PREVIEW_MAX_EDGE = 900

FRAME_GRAB_SECONDS = 0.1
FFMPEG_TIMEOUT_SECONDS = 30


def find_ffmpeg() -> Optional[str]:
    """Find ffmpeg binary path."""
    ffmpeg_path = shutil.which("ffmpeg")
    if ffmpeg_path:
        return ffmpeg_path

    # Common install locations
    for path in ("/usr/local/bin/ffmpeg", "/usr/bin/ffmpeg", "/opt/homebrew/bin/ffmpeg"):
        if os.path.isfile(path) and os.access(path, os.X_OK):
            return path

    return None


def image_preview(source_path: str) -> Optional[bytes]:
    try:
        with Image.open(source_path) as img:
            img.thumbnail((PREVIEW_MAX_EDGE, PREVIEW_MAX_EDGE))
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            buffer = io.BytesIO()
            img.save(buffer, format="JPEG", quality=85)
            return buffer.getvalue()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.debug(f"Image preview failed for {source_path}: {e}")
        return None


def pdf_preview(source_path: str) -> Optional[bytes]:
    try:
        with fitz.open(source_path) as doc:
            if doc.page_count == 0:
                return None
            page = doc[0]
            longest = max(page.rect.width, page.rect.height, 1)
            zoom = PREVIEW_MAX_EDGE / longest
            pixmap = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom))
            return pixmap.tobytes("png")
    except (fitz.FileDataError, RuntimeError, OSError, ValueError) as e:
        logger.debug(f"PDF preview failed for {source_path}: {e}")
        return None


def video_preview(source_path: str) -> Optional[bytes]:
    ffmpeg_path = find_ffmpeg()
    if not ffmpeg_path:
        logger.debug("FFmpeg not found, cannot generate video preview")
        return None

    cmd = [
        ffmpeg_path,
        "-v", "error",
        "-ss", str(FRAME_GRAB_SECONDS),
        "-i", source_path,
        "-frames:v", "1",
        "-vf", f"scale='min({PREVIEW_MAX_EDGE},iw)':-2",
        "-f", "image2pipe",
        "-c:v", "mjpeg",
        "pipe:1",
    ]

    try:
        result = subprocess.run(cmd, capture_output=True, timeout=FFMPEG_TIMEOUT_SECONDS)
    except subprocess.TimeoutExpired:
        logger.warning(f"Video preview timed out for {source_path}")
        return None
    except OSError as e:
        logger.warning(f"Video preview failed for {source_path}: {e}")
        return None

    if result.returncode != 0 or not result.stdout:
        logger.debug(f"Video preview failed: {result.stderr.decode(errors='replace')[-500:]}")
        return None
    return result.stdout


class DefaultPreviewGenerator(PreviewGenerator):
    """Chooses a renderer from the MIME type hint."""

    async def generate(self, source_path: str, type_hint: Optional[str]) -> Optional[bytes]:
        if type_hint is None:
            return None
        if type_hint.startswith("image/"):
            return await run_blocking(image_preview, source_path)
        if type_hint == "application/pdf":
            return await run_blocking(pdf_preview, source_path)
        if type_hint.startswith("video/"):
            return await run_blocking(video_preview, source_path)
        return None
