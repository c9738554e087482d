"""
InspectionSettings: configuration captured at the start of a run.

Settings are frozen. Toggling an option creates a new settings object that
applies to the NEXT run; an in-flight run always completes under the
snapshot taken at its 'started' transition.
"""

from pydantic import BaseModel, ConfigDict


class InspectionSettings(BaseModel):
    """Per-run inspection configuration."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    # Persisted user preferences
    include_raw_metadata: bool = False
    show_only_essential: bool = False

    # Engine behaviour
    concurrent_enrichment: bool = False
    generate_preview: bool = True


DEFAULT_INSPECTION_SETTINGS = InspectionSettings()
