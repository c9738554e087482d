"""
Metadata report data models.

Represents the normalized, displayable output of an inspection run.
All models use Pydantic and are frozen: a new stage produces a new Report,
it never edits the previous one in place.

Invariants:
- A Field never carries an empty or whitespace-only value
- A Section never has zero fields
- Section order reflects extraction stage order
"""

from datetime import datetime
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field as PydanticField, field_validator


class InputChannel(str, Enum):
    """Where the inspected item came from."""

    FILES = "Files"
    PHOTOS = "Photos"

    @property
    def icon(self) -> str:
        if self is InputChannel.PHOTOS:
            return "photo.on.rectangle"
        return "folder"


# Sections kept when the essential-only display filter is on.
ESSENTIAL_SECTIONS: FrozenSet[str] = frozenset({
    "General",
    "Type",
    "Media",
    "Image",
    "PDF",
    "Location",
    "Photos Asset",
})


class Field(BaseModel):
    """A single key/value line in a report section."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    key: str
    value: str

    @field_validator("value")
    @classmethod
    def validate_non_empty(cls, v: str) -> str:
        """Values must be non-empty after trimming."""
        if not v or not v.strip():
            raise ValueError("Field value cannot be empty")
        return v


class Section(BaseModel):
    """A titled group of fields, e.g. "General" or "Audio Tracks"."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    title: str
    icon: str
    fields: Tuple[Field, ...]

    @field_validator("fields")
    @classmethod
    def validate_has_fields(cls, v: Tuple[Field, ...]) -> Tuple[Field, ...]:
        """Empty sections are dropped before construction, never materialized."""
        if not v:
            raise ValueError("Section must contain at least one field")
        return v

    def value_for(self, key: str) -> Optional[str]:
        """Return the first value stored under key, or None."""
        for item in self.fields:
            if item.key == key:
                return item.value
        return None


class InspectionRequest(BaseModel):
    """
    One user-initiated inspection.

    Created once, consumed by the engine and passed to every extractor.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    source_path: str
    channel: InputChannel = InputChannel.FILES
    asset_identifier: Optional[str] = None

    @field_validator("source_path")
    @classmethod
    def validate_source_path(cls, v: str) -> str:
        """Source path must be non-empty."""
        if not v or not v.strip():
            raise ValueError("Source path cannot be empty")
        return v


class Report(BaseModel):
    """
    Accumulated metadata for one inspected item.

    Produced by the baseline extractor, then replaced by an enriched copy.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    item_name: str
    item_subtitle: str
    channel: InputChannel
    sections: Tuple[Section, ...] = ()
    warnings: Tuple[str, ...] = ()
    preview_image: Optional[bytes] = None
    inspected_at: datetime = PydanticField(default_factory=datetime.now)
    source_path: str

    def section(self, title: str) -> Optional[Section]:
        """Return the first section with the given title, or None."""
        for section in self.sections:
            if section.title == title:
                return section
        return None

    @property
    def section_titles(self) -> Tuple[str, ...]:
        return tuple(section.title for section in self.sections)

    def filtered(self, show_only_essential: bool) -> "Report":
        """
        Apply the essential-only display filter.

        Args:
            show_only_essential: When False the report is returned unchanged

        Returns:
            Report limited to ESSENTIAL_SECTIONS when the filter is on
        """
        if not show_only_essential:
            return self
        return self.model_copy(
            update={"sections": essential_sections(self.sections)}
        )


def essential_sections(sections: Tuple[Section, ...]) -> Tuple[Section, ...]:
    """Keep only the sections shown in essential-only mode, in order."""
    return tuple(s for s in sections if s.title in ESSENTIAL_SECTIONS)
