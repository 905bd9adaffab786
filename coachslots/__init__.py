"""
coachslots - availability and slot resolution for coach bookings.
"""

__version__ = "0.1.0"
