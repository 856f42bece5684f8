"""
Booking monitoring engine.

Each tick re-evaluates every live booking against the current
availability and weather and the user's automation policy, applying at
most one transition per booking:

* scheduled → booked   once the window is open and a court is free
* watching  → booked   once the watched (or any) court is free
* booked    → cancelled(weather)       an enabled weather rule is broken
* booked    → cancelled(availability)  enough courts are free anyway
* cancelled(availability) → booked     free courts dropped back down

Missing feed data means "not this tick": nothing is cancelled or given up
on because a provider had no answer. Triggering is deterministic; the
background worker ticks on a fixed interval and immediately after the
availability feed reports a change.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from uuid import UUID

from autobook.config import MONITOR_INTERVAL, SCHEDULED_GRACE_HOURS
from autobook.errors import NoUsableAccount
from autobook.models import (
    AutoCancelSettings,
    Booking,
    BookingStatus,
    CancelReason,
    SlotKey,
    TransitionEvent,
    TransitionKind,
    Venue,
    WeatherObservation,
)
from autobook.services.accounts import AccountPool
from autobook.services.background import BackgroundWorker
from autobook.services.booking_registry import BookingRegistry
from autobook.services.feeds import AvailabilityFeed, InMemoryAvailabilityFeed, WeatherFeed
from autobook.services.notifier import NotificationSink
from autobook.services.slot_clock import SlotClock, slot_clock, to_local
from autobook.venues import get_venue

logger = logging.getLogger(__name__)


def weather_violations(settings: AutoCancelSettings, obs: WeatherObservation) -> list[str]:
    """Names of the enabled weather rules the observation breaks."""
    broken: list[str] = []
    if settings.min_temp_enabled and obs.temperature is not None and obs.temperature < settings.min_temp:
        broken.append("min_temp")
    if settings.max_temp_enabled and obs.temperature is not None and obs.temperature > settings.max_temp:
        broken.append("max_temp")
    if (
        settings.rain_probability_enabled
        and obs.rain_probability is not None
        and obs.rain_probability > settings.rain_probability
    ):
        broken.append("rain_probability")
    if (
        settings.recent_rain_enabled
        and obs.hours_since_rain is not None
        and obs.hours_since_rain <= settings.recent_rain_hours
    ):
        broken.append("recent_rain")
    if settings.max_wind_enabled and obs.wind_speed is not None and obs.wind_speed > settings.max_wind:
        broken.append("max_wind")
    return broken


@dataclass
class MonitoringStats:
    """Statistics for the monitoring engine."""
    ticks: int = 0
    transitions: int = 0
    last_tick_at: datetime | None = None
    stale_scheduled: int = 0


@dataclass
class _TickView:
    """One tick's reads of the feeds, fetched at most once per slot."""
    availability: AvailabilityFeed
    weather: WeatherFeed
    _courts: dict[SlotKey, set[int] | None] = field(default_factory=dict)
    _weather: dict[SlotKey, WeatherObservation | None] = field(default_factory=dict)

    def free_courts(self, key: SlotKey) -> set[int] | None:
        if key not in self._courts:
            self._courts[key] = self.availability.available_courts(key)
        return self._courts[key]

    def claim(self, key: SlotKey, court: int) -> None:
        courts = self.free_courts(key)
        if courts is not None:
            courts.discard(court)

    def observation(self, key: SlotKey) -> WeatherObservation | None:
        if key not in self._weather:
            self._weather[key] = self.weather.observation(key)
        return self._weather[key]


@dataclass
class _Decision:
    status: BookingStatus
    kind: TransitionKind
    reason: CancelReason | None = None
    court_number: int | None = None


class MonitoringEngine:
    """Applies policy-driven transitions to the bookings in a registry."""

    def __init__(
        self,
        registry: BookingRegistry,
        availability: AvailabilityFeed,
        weather: WeatherFeed,
        accounts: AccountPool,
        sink: NotificationSink,
        *,
        clock: SlotClock = slot_clock,
        venue_lookup: Callable[[str], Venue] = get_venue,
        scheduled_grace: timedelta = timedelta(hours=SCHEDULED_GRACE_HOURS),
    ) -> None:
        self._registry = registry
        self._availability = availability
        self._weather = weather
        self._accounts = accounts
        self._sink = sink
        self._clock = clock
        self._venue_lookup = venue_lookup
        self._scheduled_grace = scheduled_grace
        self._warned_stale: set[UUID] = set()
        self.stats = MonitoringStats()

    # ── Tick ───────────────────────────────────────────────────────────

    def tick(self, settings: AutoCancelSettings, now: datetime | None = None) -> list[TransitionEvent]:
        """
        Run one evaluation pass and return the transitions it applied.

        Holds the registry lock for the whole pass, so no user action
        interleaves with it. Notices go out after the lock is released.
        """
        now = now or datetime.now(timezone.utc)
        events: list[TransitionEvent] = []

        with self._registry.lock:
            view = _TickView(self._availability, self._weather)
            for booking in self._registry.monitored():
                venue = self._venue_lookup(booking.venue_id)
                if self._clock.is_past(venue.timezone, booking.date, booking.time_slot, now):
                    continue
                decision = self._decide(booking, venue, settings, view, now)
                if decision is None:
                    continue
                event = self._apply(booking, decision, view, now)
                if event is not None:
                    events.append(event)
            stale = self._check_stale_scheduled(now)

        self.stats.ticks += 1
        self.stats.transitions += len(events)
        self.stats.last_tick_at = now
        self.stats.stale_scheduled = stale

        if events:
            logger.info("Tick applied %d transition(s)", len(events))
        for event in events:
            self._emit(event)
        return events

    # ── Guards ─────────────────────────────────────────────────────────

    def _decide(
        self,
        booking: Booking,
        venue: Venue,
        settings: AutoCancelSettings,
        view: _TickView,
        now: datetime,
    ) -> _Decision | None:
        key = booking.slot_key
        status = booking.status

        if status is BookingStatus.SCHEDULED:
            assert booking.scheduled_for is not None, f"Scheduled booking {booking.id} has no window"
            if to_local(now, venue.timezone) < booking.scheduled_for:
                return None
            free = view.free_courts(key)
            if not free:
                return None
            return _Decision(BookingStatus.BOOKED, TransitionKind.CONFIRMED, court_number=min(free))

        if status is BookingStatus.WATCHING:
            free = view.free_courts(key)
            if not free:
                return None
            if booking.court_number:
                if booking.court_number not in free:
                    return None
                court = booking.court_number
            else:
                court = min(free)
            return _Decision(BookingStatus.BOOKED, TransitionKind.CONFIRMED, court_number=court)

        if status is BookingStatus.BOOKED:
            if not booking.auto_cancel_enabled:
                return None
            if settings.weather_enabled:
                obs = view.observation(key)
                if obs is not None:
                    broken = weather_violations(settings, obs)
                    if broken:
                        logger.info("Booking %s breaks weather rules: %s", booking.id, ", ".join(broken))
                        return _Decision(
                            BookingStatus.CANCELLED, TransitionKind.AUTO_CANCELLED, reason=CancelReason.WEATHER
                        )
            if settings.availability_enabled:
                free = view.free_courts(key)
                if free is not None and len(free) >= settings.min_available_courts:
                    return _Decision(
                        BookingStatus.CANCELLED, TransitionKind.AUTO_CANCELLED, reason=CancelReason.AVAILABILITY
                    )
            return None

        # Cancelled for availability, waiting to re-book
        if not (booking.auto_rebook_enabled and settings.auto_rebook_enabled):
            return None
        free = view.free_courts(key)
        if not free or len(free) > settings.max_available_courts_for_rebook:
            return None
        return _Decision(BookingStatus.BOOKED, TransitionKind.AUTO_REBOOKED, court_number=min(free))

    # ── Effects ────────────────────────────────────────────────────────

    def _apply(
        self, booking: Booking, decision: _Decision, view: _TickView, now: datetime
    ) -> TransitionEvent | None:
        account_id = None
        if decision.status is BookingStatus.BOOKED:
            try:
                account_id = self._accounts.pick_account()
            except NoUsableAccount:
                logger.warning("No usable account to confirm booking %s — retrying next tick", booking.id)
                return None

        updated = self._registry.apply(
            booking.id,
            decision.status,
            reason=decision.reason,
            court_number=decision.court_number,
            account_id=account_id,
        )
        if decision.court_number is not None:
            view.claim(booking.slot_key, decision.court_number)

        return TransitionEvent(
            booking_id=booking.id,
            kind=decision.kind,
            from_status=booking.status,
            to_status=updated.status,
            reason=updated.cancel_reason,
            venue_id=updated.venue_id,
            date=updated.date,
            time_slot=updated.time_slot,
            court_number=updated.court_number,
            occurred_at=now,
        )

    def _emit(self, event: TransitionEvent) -> None:
        try:
            self._sink.emit(event)
        except Exception:
            logger.exception("Notification for booking %s failed", event.booking_id)

    # ── Operator warnings ──────────────────────────────────────────────

    def _check_stale_scheduled(self, now: datetime) -> int:
        """Count (and warn once about) scheduled bookings stuck past their window."""
        stale = 0
        scheduled = self._registry.list_bookings(status=BookingStatus.SCHEDULED)
        # Only ids that are still scheduled stay warned
        self._warned_stale &= {b.id for b in scheduled}
        for booking in scheduled:
            if booking.scheduled_for is None:
                continue
            local_now = to_local(now, self._venue_lookup(booking.venue_id).timezone)
            if local_now - booking.scheduled_for < self._scheduled_grace:
                continue
            stale += 1
            if booking.id not in self._warned_stale:
                self._warned_stale.add(booking.id)
                logger.warning(
                    "Scheduled booking %s: window opened %s and still no court",
                    booking.id,
                    booking.scheduled_for.isoformat(),
                )
        return stale


class MonitoringWorker(BackgroundWorker):
    """
    Runs the engine in the background.

    Ticks every *interval* seconds, and straight away when the
    availability feed reports a change.
    """

    def __init__(
        self,
        engine: MonitoringEngine,
        settings_provider: Callable[[], AutoCancelSettings],
        *,
        feed: InMemoryAvailabilityFeed | None = None,
        interval: float = MONITOR_INTERVAL,
    ) -> None:
        super().__init__(interval=interval, name="booking-monitor")
        self._engine = engine
        self._settings_provider = settings_provider
        self._feed = feed

    async def _on_start(self) -> None:
        if self._feed is not None:
            self._feed.add_listener(self.on_availability_changed)

    async def _on_stop(self) -> None:
        if self._feed is not None:
            self._feed.remove_listener(self.on_availability_changed)

    def on_availability_changed(self, changed: list[SlotKey]) -> None:
        """Feed listener; safe to call from any thread."""
        logger.debug("Availability changed for %d slots, waking monitor", len(changed))
        self.wake()

    async def _tick(self) -> None:
        self._engine.tick(self._settings_provider())
