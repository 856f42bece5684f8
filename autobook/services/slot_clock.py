"""
Calendar arithmetic for half-hour court slots.

Everything here is a pure function of its inputs plus the configured
opening hours, booking-window rule and price table. "Now" is always
passed in or read once from the UTC clock and converted into the
venue's own timezone; the caller's local timezone never matters.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from autobook.config import (
    BOOKING_WINDOW_DAYS,
    BOOKING_WINDOW_HOUR,
    CLOSING_HOUR,
    OFF_PEAK_PRICE,
    OPENING_HOUR,
    PEAK_END_HOUR,
    PEAK_PRICE,
    PEAK_START_HOUR,
    SLOT_MINUTES,
)

DEFAULT_TIMEZONE = "Europe/London"


def parse_time_slot(time_slot: str) -> time:
    """Parse "HH:MM" into a time."""
    hours, minutes = time_slot.split(":")
    return time(int(hours), int(minutes))


def _zone(tz: str | ZoneInfo) -> ZoneInfo:
    return tz if isinstance(tz, ZoneInfo) else ZoneInfo(tz)


def to_local(moment: datetime, tz: str | ZoneInfo) -> datetime:
    """Express *moment* in venue-local time.

    Naive datetimes are taken to already be venue-local.
    """
    zone = _zone(tz)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=zone)
    return moment.astimezone(zone)


class SlotClock:
    """Slot grid, booking window and pricing for a venue day."""

    def __init__(
        self,
        *,
        opening_hour: int = OPENING_HOUR,
        closing_hour: int = CLOSING_HOUR,
        slot_minutes: int = SLOT_MINUTES,
        window_days: int = BOOKING_WINDOW_DAYS,
        window_hour: int = BOOKING_WINDOW_HOUR,
        peak_start_hour: int = PEAK_START_HOUR,
        peak_end_hour: int = PEAK_END_HOUR,
        peak_price: int = PEAK_PRICE,
        off_peak_price: int = OFF_PEAK_PRICE,
    ) -> None:
        self._opening_hour = opening_hour
        self._closing_hour = closing_hour
        self._slot_minutes = slot_minutes
        self._window_days = window_days
        self._window_hour = window_hour
        self._peak_start_hour = peak_start_hour
        self._peak_end_hour = peak_end_hour
        self._peak_price = peak_price
        self._off_peak_price = off_peak_price

    # ── Slot grid ──────────────────────────────────────────────────────

    def slots_for_day(self) -> list[str]:
        """Start times from opening to the last slot before closing."""
        slots: list[str] = []
        minutes = self._opening_hour * 60
        while minutes < self._closing_hour * 60:
            slots.append(f"{minutes // 60:02d}:{minutes % 60:02d}")
            minutes += self._slot_minutes
        return slots

    def is_valid_slot(self, time_slot: str) -> bool:
        return time_slot in self.slots_for_day()

    def next_slot(self, time_slot: str) -> str | None:
        """The slot that follows *time_slot*, or None at closing time."""
        slots = self.slots_for_day()
        try:
            index = slots.index(time_slot)
        except ValueError:
            return None
        if index + 1 >= len(slots):
            return None
        return slots[index + 1]

    def slot_start(
        self, slot_date: date, time_slot: str, tz: str | ZoneInfo = DEFAULT_TIMEZONE
    ) -> datetime:
        """Venue-local, timezone-aware start of a slot."""
        return datetime.combine(slot_date, parse_time_slot(time_slot), tzinfo=_zone(tz))

    def is_past(
        self,
        tz: str | ZoneInfo,
        slot_date: date,
        time_slot: str,
        now: datetime | None = None,
    ) -> bool:
        """True once the slot's start is strictly earlier than venue-local now."""
        local_now = to_local(now or datetime.now(timezone.utc), tz)
        return self.slot_start(slot_date, time_slot, tz) < local_now

    # ── Booking window ─────────────────────────────────────────────────

    def window_opens_at(
        self, slot_date: date, time_slot: str, tz: str | ZoneInfo = DEFAULT_TIMEZONE
    ) -> datetime:
        """When the slot becomes bookable: N days before its date at the window hour."""
        opens_on = slot_date - timedelta(days=self._window_days)
        return datetime.combine(opens_on, time(self._window_hour, 0), tzinfo=_zone(tz))

    def is_window_open(
        self,
        slot_date: date,
        time_slot: str,
        now: datetime,
        tz: str | ZoneInfo = DEFAULT_TIMEZONE,
    ) -> bool:
        return to_local(now, tz) >= self.window_opens_at(slot_date, time_slot, tz)

    # ── Pricing ────────────────────────────────────────────────────────

    def price(self, time_slot: str) -> int:
        """Peak rate for start hours in [peak_start, peak_end), off-peak otherwise."""
        hour = parse_time_slot(time_slot).hour
        if self._peak_start_hour <= hour < self._peak_end_hour:
            return self._peak_price
        return self._off_peak_price


# ── Module-level singleton ────────────────────────────────────────────────
slot_clock = SlotClock()
