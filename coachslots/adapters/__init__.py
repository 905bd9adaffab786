"""
Adapters layer - Booking snapshot sources standing in for the document store.
"""

from .json_booking_store import JsonBookingStore
from .memory_store import InMemoryBookingStore

__all__ = ["JsonBookingStore", "InMemoryBookingStore"]
