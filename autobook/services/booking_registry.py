"""
Booking registry – the single owner of all Booking records.

The registry assigns nothing and decides nothing: it stores bookings,
hands out read-only snapshots and applies state changes, refusing any
change the booking state machine does not allow.

State machine::

    scheduled ──► booked ◄── watching
                  │   ▲
     weather /    ▼   │ availability tightens
     availability cancelled(availability)

    any live state ──► cancelled(manual)

A re-entrant lock guards every read and write. The monitoring engine
holds it for a whole tick, so user actions are serialized against ticks.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Iterable
from uuid import UUID

from autobook.config import CURRENCY
from autobook.errors import IllegalTransition, UnknownBooking
from autobook.models import Booking, BookingStatus, BookingSummary, CancelReason, SlotKey

logger = logging.getLogger(__name__)

_State = tuple[BookingStatus, CancelReason | None]

_ALLOWED: dict[_State, set[_State]] = {
    (BookingStatus.SCHEDULED, None): {
        (BookingStatus.BOOKED, None),
        (BookingStatus.CANCELLED, CancelReason.MANUAL),
    },
    (BookingStatus.WATCHING, None): {
        (BookingStatus.BOOKED, None),
        (BookingStatus.CANCELLED, CancelReason.MANUAL),
    },
    (BookingStatus.BOOKED, None): {
        (BookingStatus.CANCELLED, CancelReason.WEATHER),
        (BookingStatus.CANCELLED, CancelReason.AVAILABILITY),
        (BookingStatus.CANCELLED, CancelReason.MANUAL),
    },
    (BookingStatus.CANCELLED, CancelReason.AVAILABILITY): {
        (BookingStatus.BOOKED, None),
        (BookingStatus.CANCELLED, CancelReason.MANUAL),
    },
}


def _state(booking: Booking) -> _State:
    return booking.status, booking.cancel_reason


def is_monitored(booking: Booking) -> bool:
    """Whether the monitoring engine still evaluates this booking."""
    if booking.status is BookingStatus.CANCELLED:
        return booking.cancel_reason is CancelReason.AVAILABILITY and booking.auto_rebook_enabled
    return True


class BookingRegistry:
    """In-memory, thread-safe store of bookings keyed by id."""

    def __init__(self) -> None:
        self._bookings: dict[UUID, Booking] = {}
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    # ── Write ──────────────────────────────────────────────────────────

    def add_many(self, bookings: Iterable[Booking]) -> list[Booking]:
        """Insert a batch atomically: either every booking lands or none does."""
        batch = list(bookings)
        with self._lock:
            ids = [b.id for b in batch]
            if len(set(ids)) != len(ids) or any(i in self._bookings for i in ids):
                raise ValueError("Duplicate booking id in batch")
            for booking in batch:
                self._bookings[booking.id] = booking
        logger.info("Registered %d booking(s)", len(batch))
        return batch

    def add(self, booking: Booking) -> Booking:
        return self.add_many([booking])[0]

    def apply(
        self,
        booking_id: UUID,
        status: BookingStatus,
        *,
        reason: CancelReason | None = None,
        court_number: int | None = None,
        account_id: str | None = None,
    ) -> Booking:
        """
        Move a booking to a new state.

        Raises IllegalTransition for anything the state machine forbids,
        including confirming without a court or an account.
        """
        with self._lock:
            current = self._bookings.get(booking_id)
            if current is None:
                raise IllegalTransition(f"Transition on unknown booking {booking_id}")
            target: _State = (status, reason)
            if target not in _ALLOWED.get(_state(current), set()):
                raise IllegalTransition(
                    f"Booking {booking_id}: {current.status.value}"
                    f"({current.cancel_reason.value if current.cancel_reason else '-'})"
                    f" -> {status.value}({reason.value if reason else '-'}) is not allowed"
                )

            updates: dict[str, object] = {"status": status, "cancel_reason": reason}
            if status is BookingStatus.BOOKED:
                if not court_number or not account_id:
                    raise IllegalTransition(
                        f"Booking {booking_id} confirmed without a court or account"
                    )
                updates.update(court_number=court_number, account_id=account_id, scheduled_for=None)
            elif current.status is BookingStatus.SCHEDULED:
                updates["scheduled_for"] = None

            updated = current.model_copy(update=updates)
            self._bookings[booking_id] = updated
            return updated

    def cancel(self, booking_id: UUID) -> Booking:
        """
        Manually cancel a booking.

        The record stays as cancelled(manual) and is never monitored
        again. Unknown or already final bookings raise UnknownBooking.
        """
        with self._lock:
            current = self._bookings.get(booking_id)
            if current is None or not is_monitored(current):
                raise UnknownBooking(booking_id)
            return self.apply(booking_id, BookingStatus.CANCELLED, reason=CancelReason.MANUAL)

    def delete(self, booking_id: UUID) -> Booking:
        """Remove a booking record entirely."""
        with self._lock:
            booking = self._bookings.pop(booking_id, None)
        if booking is None:
            raise UnknownBooking(booking_id)
        logger.info("Deleted booking %s", booking_id)
        return booking

    # ── Read ───────────────────────────────────────────────────────────

    def get(self, booking_id: UUID) -> Booking:
        with self._lock:
            booking = self._bookings.get(booking_id)
        if booking is None:
            raise UnknownBooking(booking_id)
        return booking

    def find(self, booking_id: UUID) -> Booking | None:
        with self._lock:
            return self._bookings.get(booking_id)

    def list_bookings(
        self,
        status: BookingStatus | None = None,
        venue_id: str | None = None,
        recurring_group_id: str | None = None,
    ) -> list[Booking]:
        """Bookings in creation order, optionally filtered."""
        with self._lock:
            bookings = list(self._bookings.values())
        if status is not None:
            bookings = [b for b in bookings if b.status is status]
        if venue_id is not None:
            bookings = [b for b in bookings if b.venue_id == venue_id]
        if recurring_group_id is not None:
            bookings = [b for b in bookings if b.recurring_group_id == recurring_group_id]
        return bookings

    def monitored(self) -> list[Booking]:
        with self._lock:
            return [b for b in self._bookings.values() if is_monitored(b)]

    def held_courts(self, key: SlotKey) -> set[int]:
        """Courts currently booked by us for one slot."""
        with self._lock:
            return {
                b.court_number
                for b in self._bookings.values()
                if b.status is BookingStatus.BOOKED and b.court_number and b.slot_key == key
            }

    def summary(self) -> BookingSummary:
        with self._lock:
            bookings = list(self._bookings.values())
        counts = Counter(b.status for b in bookings)
        return BookingSummary(
            counts={status: counts.get(status, 0) for status in BookingStatus},
            confirmed_cost=sum(b.cost for b in bookings if b.status is BookingStatus.BOOKED),
            currency=CURRENCY,
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._bookings)
