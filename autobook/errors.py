"""
Exceptions raised by the booking core.

Routers translate these into HTTP errors; everything else lets them
propagate.
"""

from __future__ import annotations


class BookingError(Exception):
    """Base class for user-facing booking failures."""


class NoUsableAccount(BookingError):
    """A slot could be booked right now but no connected account is usable."""

    def __init__(self, message: str = "No usable booking account is connected") -> None:
        super().__init__(message)


class InvalidRecurrenceSpec(BookingError):
    """The recurrence termination rule is missing, ambiguous or out of range."""


class UnknownBooking(BookingError):
    """The booking id does not exist or is no longer cancellable."""

    def __init__(self, booking_id: object) -> None:
        super().__init__(f"Booking {booking_id} not found or already final")
        self.booking_id = booking_id


class UnknownVenue(BookingError):
    def __init__(self, venue_id: str) -> None:
        super().__init__(f"Venue {venue_id} not found")
        self.venue_id = venue_id


class SlotInPast(BookingError):
    """The requested slot has already started in venue-local time."""


class IllegalTransition(RuntimeError):
    """A state change the booking state machine does not allow.

    This is a programming error and is never caught by the core.
    """


class InvalidSlot(BookingError):
    """The time or court is not on the venue's grid."""
