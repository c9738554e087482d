"""
Inspection workflow error types.

All errors inherit from InspectionError for easy catching.
Errors are explicit and provide actionable messages.
"""


class InspectionError(Exception):
    """Base exception for all inspection workflow failures."""
    pass


class InvalidTransitionError(InspectionError):
    """
    Raised when an event violates the workflow state machine.

    Always a defect in the caller. Never user-facing by itself.
    """

    def __init__(self, state: str, event: str):
        self.state = state
        self.event = event
        super().__init__(
            f"Invalid inspection transition: '{event}' is not allowed in state {state}. "
            "This action is not allowed in the current inspection state."
        )


class InspectionCancelled(InspectionError):
    """
    Raised at a cancellation checkpoint after the user requested cancellation.

    Not an error for the user: resolved through the 'cancelled' event.
    """

    def __init__(self, checkpoint: str):
        self.checkpoint = checkpoint
        super().__init__(f"Inspection cancelled at {checkpoint}")


class NoActiveRequestError(InspectionError):
    """Raised when rerun is requested but no item has been inspected yet."""

    def __init__(self):
        super().__init__("No item has been inspected yet; nothing to rerun.")
