"""
Cooperative cancellation token.

Requesting cancellation only sets a flag. The engine observes it at the
next checkpoint, immediately before or after an extraction call, and
unwinds from there.
"""

import threading
from typing import Optional

from .errors import InspectionCancelled


class CancellationToken:
    """
    One-shot cancellation flag for a single inspection run.

    Backed by threading.Event so cancel() may be called from any thread
    (HTTP worker threads, signal handlers) while the run awaits on the loop.
    """

    def __init__(self):
        self._event = threading.Event()
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "user request") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def checkpoint(self, name: str) -> None:
        """
        Raise if cancellation was requested.

        Args:
            name: Human-readable checkpoint label for logs

        Raises:
            InspectionCancelled: If the token has been cancelled
        """
        if self._event.is_set():
            raise InspectionCancelled(name)
