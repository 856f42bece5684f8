"""
Booking classification.

Turns a booking request into Booking records, one per slot per date,
each in the strategy that fits the slot right now:

1. window not open yet          → scheduled (booked when it opens)
2. wanted court (or any) free   → booked immediately
3. otherwise                    → watching for a cancellation

The classifier never touches the registry; callers insert the returned
batch in one go, so a failure part-way leaves nothing behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from uuid import uuid4

from autobook.errors import InvalidSlot, SlotInPast
from autobook.models import (
    Booking,
    BookingRequest,
    BookingStatus,
    RecurrencePattern,
    SlotKey,
    Venue,
)
from autobook.services.accounts import AccountPool
from autobook.services.feeds import AvailabilityFeed
from autobook.services.recurrence import dates_for
from autobook.services.slot_clock import SlotClock, slot_clock

logger = logging.getLogger(__name__)


@dataclass
class _SlotPlan:
    key: SlotKey
    window_open: bool
    free: set[int]


class BookingClassifier:
    """Builds initial booking records for a request."""

    def __init__(self, clock: SlotClock = slot_clock) -> None:
        self._clock = clock

    def classify(
        self,
        request: BookingRequest,
        venue: Venue,
        availability: AvailabilityFeed,
        accounts: AccountPool,
        now: datetime,
    ) -> list[Booking]:
        """
        Classify every slot the request covers.

        Raises InvalidRecurrenceSpec, InvalidSlot, SlotInPast or
        NoUsableAccount before returning anything.
        """
        self._check_request(request, venue)
        dates = dates_for(request.date, request.recurrence)

        recurring = (
            request.recurrence is not None
            and request.recurrence.pattern is not RecurrencePattern.NONE
        )
        group_id = uuid4().hex[:12] if recurring else None
        total = len(dates)

        # Courts handed out earlier in this request
        claimed: dict[SlotKey, set[int]] = {}
        bookings: list[Booking] = []

        for index, day in enumerate(dates, start=1):
            plans = [
                self._plan(venue, day, time_slot, availability, claimed, now)
                for time_slot in self._slots_for(request)
            ]
            shared_court = self._shared_court(plans, request.court_preference)

            for plan in plans:
                booking = self._classify_slot(
                    plan,
                    request,
                    venue,
                    accounts,
                    now,
                    shared_court=shared_court,
                )
                if booking.status is BookingStatus.BOOKED:
                    claimed.setdefault(plan.key, set()).add(booking.court_number)
                if group_id is not None:
                    booking = booking.model_copy(
                        update={
                            "recurring_group_id": group_id,
                            "recurring_index": index,
                            "recurring_total": total,
                        }
                    )
                bookings.append(booking)

        logger.info(
            "Classified %s %s @ %s into %d booking(s): %s",
            venue.id,
            request.date.isoformat(),
            request.time_slot,
            len(bookings),
            ", ".join(b.status.value for b in bookings),
        )
        return bookings

    # ── Helpers ────────────────────────────────────────────────────────

    def _check_request(self, request: BookingRequest, venue: Venue) -> None:
        if not self._clock.is_valid_slot(request.time_slot):
            raise InvalidSlot(f"{request.time_slot} is not a bookable slot")
        if request.court_preference > venue.num_courts:
            raise InvalidSlot(
                f"{venue.name} has {venue.num_courts} courts, not {request.court_preference}"
            )

    def _slots_for(self, request: BookingRequest) -> list[str]:
        """The slot, plus the next one for an hour (when the day has one)."""
        slots = [request.time_slot]
        if request.duration_minutes == 60:
            following = self._clock.next_slot(request.time_slot)
            if following is not None:
                slots.append(following)
        return slots

    def _plan(
        self,
        venue: Venue,
        day: date,
        time_slot: str,
        availability: AvailabilityFeed,
        claimed: dict[SlotKey, set[int]],
        now: datetime,
    ) -> _SlotPlan:
        if self._clock.is_past(venue.timezone, day, time_slot, now):
            raise SlotInPast(f"{day.isoformat()} {time_slot} has already started at {venue.name}")
        key = SlotKey(venue.id, day, time_slot)
        window_open = self._clock.is_window_open(day, time_slot, now, venue.timezone)
        free = (availability.available_courts(key) or set()) - claimed.get(key, set())
        return _SlotPlan(key=key, window_open=window_open, free=free)

    @staticmethod
    def _shared_court(plans: list[_SlotPlan], preference: int) -> int | None:
        """For an hour on "any court", a court free in both halves."""
        if preference or len(plans) < 2 or not all(p.window_open for p in plans):
            return None
        common = set.intersection(*(p.free for p in plans))
        return min(common) if common else None

    def _classify_slot(
        self,
        plan: _SlotPlan,
        request: BookingRequest,
        venue: Venue,
        accounts: AccountPool,
        now: datetime,
        *,
        shared_court: int | None,
    ) -> Booking:
        key = plan.key
        common = dict(
            venue_id=venue.id,
            date=key.date,
            time_slot=key.time_slot,
            auto_cancel_enabled=request.auto_cancel_enabled,
            auto_rebook_enabled=request.auto_rebook_enabled,
            cost=self._clock.price(key.time_slot),
            created_at=now,
        )

        if not plan.window_open:
            return Booking(
                court_number=0,
                status=BookingStatus.SCHEDULED,
                scheduled_for=self._clock.window_opens_at(key.date, key.time_slot, venue.timezone),
                **common,
            )

        preference = request.court_preference
        if preference:
            court = preference if preference in plan.free else None
        elif shared_court is not None:
            court = shared_court
        else:
            court = min(plan.free) if plan.free else None

        if court is not None:
            return Booking(
                court_number=court,
                status=BookingStatus.BOOKED,
                account_id=accounts.pick_account(),
                **common,
            )

        return Booking(
            court_number=preference,
            status=BookingStatus.WATCHING,
            **common,
        )


# ── Module-level singleton ────────────────────────────────────────────────
booking_classifier = BookingClassifier()
