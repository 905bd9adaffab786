"""
Domain-specific exception hierarchy for the slot engine.
"""


class SlotEngineError(Exception):
    """Base class for all application-level errors."""


class InvalidTimezoneError(SlotEngineError, ValueError):
    """Raised when an IANA timezone identifier is unknown to the runtime."""

    def __init__(self, timezone: object):
        self.timezone = timezone
        super().__init__(f"Unknown timezone identifier: {timezone!r}")


class SlotNoLongerAvailableError(SlotEngineError):
    """Raised by the write side when a slot was taken after it was offered."""


class OfferingNotFoundError(SlotEngineError):
    """Raised when an explicitly selected offering is unknown or inactive."""
