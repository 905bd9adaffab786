"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability_service import (
    AvailabilityService,
    BookingRequest,
    BookingSnapshotProtocol,
    BookingWriterProtocol,
    LocalizedSlot,
    select_offering,
)

__all__ = [
    "AvailabilityService",
    "BookingRequest",
    "BookingSnapshotProtocol",
    "BookingWriterProtocol",
    "LocalizedSlot",
    "select_offering",
]
