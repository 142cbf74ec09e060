"""Diagnostics sink protocol."""

from typing import Protocol


class SupportLogger(Protocol):
    """Fire-and-forget sink for runtime diagnostics.

    Implementations must never raise into the caller.
    """

    def log(self, message: str) -> None:
        """Record an informational event."""
        ...

    def error(self, message: str) -> None:
        """Record an error event."""
        ...
