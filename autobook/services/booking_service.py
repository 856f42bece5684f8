"""
Booking service – the facade routers and the background worker talk to.

Owns one of each collaborator (registry, feeds, account pool, sinks,
engine) plus the current automation settings. User actions take the
registry lock, so they are linearized against monitoring ticks.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from uuid import UUID

from autobook.config import SEED_ACCOUNTS
from autobook.errors import UnknownBooking
from autobook.models import (
    AutoCancelSettings,
    Booking,
    BookingRequest,
    BookingStatus,
    BookingSummary,
    CancelReason,
    ConnectedAccount,
    DaySchedule,
    MonitorStats,
    SlotKey,
    SlotView,
    TransitionEvent,
    TransitionKind,
)
from autobook.services.accounts import ConnectedAccountPool
from autobook.services.booking_registry import BookingRegistry
from autobook.services.classifier import BookingClassifier
from autobook.services.feeds import InMemoryAvailabilityFeed, InMemoryWeatherFeed, NetAvailabilityFeed
from autobook.services.monitoring_service import MonitoringEngine, MonitoringWorker
from autobook.services.notifier import (
    FanOutNotificationSink,
    InboxNotificationSink,
    NotificationSink,
    build_default_sink,
)
from autobook.services.slot_clock import SlotClock, slot_clock
from autobook.venues import get_venue

logger = logging.getLogger(__name__)


class BookingService:
    """Wires the booking core together behind one object."""

    def __init__(
        self,
        *,
        clock: SlotClock = slot_clock,
        sink: NotificationSink | None = None,
        accounts: ConnectedAccountPool | None = None,
        settings: AutoCancelSettings | None = None,
    ) -> None:
        self.clock = clock
        self.registry = BookingRegistry()
        self.availability = InMemoryAvailabilityFeed()
        # What the classifier, engine and day view see: the site snapshot
        # minus the courts our own bookings already hold
        self.free_courts = NetAvailabilityFeed(self.availability, self.registry.held_courts)
        self.weather = InMemoryWeatherFeed()
        self.accounts = accounts if accounts is not None else ConnectedAccountPool()
        self.inbox = InboxNotificationSink()
        # The inbox always sees every notice; a given sink replaces log + email
        self.sink = (
            FanOutNotificationSink(self.inbox, sink) if sink is not None else build_default_sink(self.inbox)
        )
        self.classifier = BookingClassifier(clock)
        self.engine = MonitoringEngine(
            self.registry,
            self.free_courts,
            self.weather,
            self.accounts,
            self.sink,
            clock=clock,
        )
        self._settings = settings or AutoCancelSettings()

    # ── Automation settings ────────────────────────────────────────────

    @property
    def settings(self) -> AutoCancelSettings:
        return self._settings

    def update_settings(self, settings: AutoCancelSettings) -> AutoCancelSettings:
        self._settings = settings
        logger.info(
            "Automation settings updated (weather=%s, availability=%s, rebook=%s)",
            settings.weather_enabled,
            settings.availability_enabled,
            settings.auto_rebook_enabled,
        )
        return settings

    # ── Bookings ───────────────────────────────────────────────────────

    def classify(self, request: BookingRequest, now: datetime | None = None) -> list[Booking]:
        """Classify a request and register every resulting booking."""
        now = now or datetime.now(timezone.utc)
        venue = get_venue(request.venue_id)
        with self.registry.lock:
            bookings = self.classifier.classify(request, venue, self.free_courts, self.accounts, now)
            return self.registry.add_many(bookings)

    def cancel(self, booking_id: UUID, now: datetime | None = None) -> Booking:
        """Cancel by hand; the booking is never re-booked afterwards."""
        with self.registry.lock:
            before = self.registry.find(booking_id)
            if before is None:
                raise UnknownBooking(booking_id)
            after = self.registry.cancel(booking_id)
        self._emit(
            TransitionEvent(
                booking_id=after.id,
                kind=TransitionKind.MANUAL_CANCELLED,
                from_status=before.status,
                to_status=after.status,
                reason=CancelReason.MANUAL,
                venue_id=after.venue_id,
                date=after.date,
                time_slot=after.time_slot,
                court_number=after.court_number,
                occurred_at=now or datetime.now(timezone.utc),
            )
        )
        return after

    def delete(self, booking_id: UUID) -> Booking:
        return self.registry.delete(booking_id)

    def get(self, booking_id: UUID) -> Booking:
        return self.registry.get(booking_id)

    def list_bookings(
        self,
        status: BookingStatus | None = None,
        venue_id: str | None = None,
        recurring_group_id: str | None = None,
    ) -> list[Booking]:
        return self.registry.list_bookings(status, venue_id, recurring_group_id)

    def summary(self) -> BookingSummary:
        return self.registry.summary()

    # ── Monitoring ─────────────────────────────────────────────────────

    def tick(self, now: datetime | None = None) -> list[TransitionEvent]:
        return self.engine.tick(self._settings, now)

    def stats(self) -> MonitorStats:
        stats = self.engine.stats
        return MonitorStats(
            ticks=stats.ticks,
            transitions=stats.transitions,
            last_tick_at=stats.last_tick_at,
            monitored_bookings=len(self.registry.monitored()),
            stale_scheduled=stats.stale_scheduled,
        )

    def build_worker(self) -> MonitoringWorker:
        return MonitoringWorker(self.engine, lambda: self._settings, feed=self.availability)

    def notifications(self) -> list[TransitionEvent]:
        return self.inbox.events()

    # ── Venue day view ─────────────────────────────────────────────────

    def day_schedule(self, venue_id: str, day: date, now: datetime | None = None) -> DaySchedule:
        """Every slot of a venue day as a user would see it when picking a time."""
        now = now or datetime.now(timezone.utc)
        venue = get_venue(venue_id)
        slots: list[SlotView] = []
        for time_slot in self.clock.slots_for_day():
            key = SlotKey(venue.id, day, time_slot)
            courts = self.free_courts.available_courts(key)
            if self.clock.is_past(venue.timezone, day, time_slot, now):
                state = "past"
            elif not self.clock.is_window_open(day, time_slot, now, venue.timezone):
                state = "not_open"
            elif courts is None:
                state = "unknown"
            elif courts:
                state = "available"
            else:
                state = "fully_booked"
            slots.append(
                SlotView(
                    time_slot=time_slot,
                    state=state,
                    price=self.clock.price(time_slot),
                    free_courts=sorted(courts or ()),
                    window_opens_at=self.clock.window_opens_at(day, time_slot, venue.timezone),
                    weather=self.weather.observation(key),
                )
            )
        return DaySchedule(venue_id=venue.id, date=day, slots=slots)

    # ── Accounts ───────────────────────────────────────────────────────

    def connect_account(self, account: ConnectedAccount) -> ConnectedAccount:
        self.accounts.add(account)
        return account

    def seed_accounts(self, account_ids: list[str]) -> None:
        for account_id in account_ids:
            self.accounts.add(ConnectedAccount(id=account_id, name=account_id))

    # ── Internal ───────────────────────────────────────────────────────

    def _emit(self, event: TransitionEvent) -> None:
        try:
            self.sink.emit(event)
        except Exception:
            logger.exception("Notification for booking %s failed", event.booking_id)


def create_booking_service() -> BookingService:
    service = BookingService()
    service.seed_accounts(SEED_ACCOUNTS)
    return service


# ── Module-level singleton ────────────────────────────────────────────────
booking_service = create_booking_service()
