"""
Command-line error types.

Raised while turning arguments into an inspection request, before the
engine is involved.
"""


class CLIError(Exception):
    """Base exception for argument handling failures."""
    pass


class ValidationError(CLIError):
    """Raised when command-line options conflict, e.g. --asset-id without --catalog."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
