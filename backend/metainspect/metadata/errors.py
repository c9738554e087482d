"""
Metadata-specific error types.

All errors inherit from MetadataError for easy catching.
Errors are explicit and provide actionable messages.
"""


class MetadataError(Exception):
    """Base exception for all metadata-related failures."""
    pass


class UnreadableSourceError(MetadataError):
    """
    Raised when baseline extraction cannot access or identify the source.

    Fatal for the inspection run. Surfaced to the user.
    """

    def __init__(self, source: str, reason: str = "Could not access the selected file."):
        self.source = source
        self.reason = reason
        super().__init__(reason)


class ExtractionError(MetadataError):
    """
    Raised by an enrichment extractor on a genuine I/O or decoding failure.

    Never fatal for the run: the failing category is omitted from the report.
    """

    def __init__(self, category: str, source: str, reason: str):
        self.category = category
        self.source = source
        self.reason = reason
        super().__init__(f"{category} extraction failed for {source}: {reason}")


class ToolNotFoundError(MetadataError):
    """Raised when an external command-line tool is not available on the system."""

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(
            f"{tool} not found. Please install it to enable this metadata category."
        )
