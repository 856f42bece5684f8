"""
End-to-end booking lifecycles through the BookingService.

Time is pinned: the slot is Monday 2 December 2024 at 18:00 in London,
whose booking window opens on Monday 25 November at 20:00 (GMT).
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from autobook.models import (
    AutoCancelSettings,
    BookingStatus,
    CancelReason,
    SlotKey,
    TransitionKind,
    WeatherObservation,
)
from tests.mocks.models import (
    AFTER_WINDOW,
    AVAILABILITY_POLICY,
    RIVERSIDE,
    SLOT_DATE,
    WINDOW_OPENS,
    make_recurrence,
    make_request,
)

KEY = SlotKey(RIVERSIDE.id, SLOT_DATE, "18:00")
NOV_20 = datetime(2024, 11, 20, 9, 0, tzinfo=timezone.utc)


def test_scheduled_booking_confirms_when_window_opens(service, sink):
    service.availability.set_courts(KEY, {2, 3})

    [booking] = service.classify(make_request(), now=NOV_20)
    assert booking.status is BookingStatus.SCHEDULED
    assert booking.scheduled_for == WINDOW_OPENS

    assert service.tick(now=WINDOW_OPENS - timedelta(minutes=1)) == []
    [event] = service.tick(now=AFTER_WINDOW)

    confirmed = service.get(booking.id)
    assert confirmed.status is BookingStatus.BOOKED
    assert confirmed.court_number == 2
    assert event.kind is TransitionKind.CONFIRMED
    assert sink.events == [event]


def test_watching_booking_confirms_when_court_frees_up(service):
    service.availability.set_courts(KEY, set())

    [booking] = service.classify(make_request(), now=AFTER_WINDOW)
    assert (booking.status, booking.court_number) == (BookingStatus.WATCHING, 0)

    assert service.tick(now=AFTER_WINDOW) == []

    service.availability.set_courts(KEY, {4})
    service.tick(now=AFTER_WINDOW + timedelta(minutes=5))

    confirmed = service.get(booking.id)
    assert (confirmed.status, confirmed.court_number) == (BookingStatus.BOOKED, 4)


def test_cancel_rebook_then_weather_cancel(service, sink):
    service.update_settings(
        AVAILABILITY_POLICY.model_copy(
            update={"weather_enabled": True, "rain_probability_enabled": True, "rain_probability": 50}
        )
    )
    service.availability.set_courts(KEY, {1})
    [booking] = service.classify(
        make_request(auto_cancel_enabled=True, auto_rebook_enabled=True), now=AFTER_WINDOW
    )
    assert booking.court_number == 1

    # Plenty of courts free: give ours back
    service.availability.set_courts(KEY, {1, 2, 3, 4})
    service.tick(now=AFTER_WINDOW)
    assert service.get(booking.id).cancel_reason is CancelReason.AVAILABILITY

    # Courts are going again: take one back
    service.availability.set_courts(KEY, {3})
    service.tick(now=AFTER_WINDOW)
    rebooked = service.get(booking.id)
    assert (rebooked.status, rebooked.court_number) == (BookingStatus.BOOKED, 3)

    # Rain forecast: cancel for good
    service.weather.set_observation(KEY, WeatherObservation(rain_probability=90))
    service.tick(now=AFTER_WINDOW)
    assert service.get(booking.id).cancel_reason is CancelReason.WEATHER

    service.weather.set_observation(KEY, WeatherObservation(rain_probability=0))
    service.availability.set_courts(KEY, {2})
    assert service.tick(now=AFTER_WINDOW) == []

    assert [e.kind for e in sink.events] == [
        TransitionKind.AUTO_CANCELLED,
        TransitionKind.AUTO_REBOOKED,
        TransitionKind.AUTO_CANCELLED,
    ]


def test_manual_cancel_stops_rebooking(service, sink):
    service.update_settings(AVAILABILITY_POLICY)
    service.availability.set_courts(KEY, {1})
    [booking] = service.classify(
        make_request(auto_cancel_enabled=True, auto_rebook_enabled=True), now=AFTER_WINDOW
    )

    service.availability.set_courts(KEY, {1, 2, 3, 4})
    service.tick(now=AFTER_WINDOW)
    service.cancel(booking.id, now=AFTER_WINDOW)

    service.availability.set_courts(KEY, {1})
    assert service.tick(now=AFTER_WINDOW) == []
    assert service.get(booking.id).cancel_reason is CancelReason.MANUAL
    assert sink.events[-1].kind is TransitionKind.MANUAL_CANCELLED


def test_second_request_gets_a_different_court(service):
    service.availability.set_courts(KEY, {2, 3})

    [first] = service.classify(make_request(), now=AFTER_WINDOW)
    [second] = service.classify(make_request(), now=AFTER_WINDOW)
    [third] = service.classify(make_request(), now=AFTER_WINDOW)

    assert (first.status, first.court_number) == (BookingStatus.BOOKED, 2)
    assert (second.status, second.court_number) == (BookingStatus.BOOKED, 3)
    assert third.status is BookingStatus.WATCHING


def test_court_confirmed_by_a_tick_is_not_handed_out_again(service):
    service.availability.set_courts(KEY, set())
    [watching] = service.classify(make_request(), now=AFTER_WINDOW)

    service.availability.set_courts(KEY, {4})
    service.tick(now=AFTER_WINDOW)
    assert service.get(watching.id).court_number == 4

    # The site snapshot still lists court 4 as free
    [later] = service.classify(make_request(), now=AFTER_WINDOW)
    assert (later.status, later.court_number) == (BookingStatus.WATCHING, 0)

    assert service.tick(now=AFTER_WINDOW) == []
    assert service.get(later.id).status is BookingStatus.WATCHING


def test_own_court_does_not_count_towards_auto_cancel(service):
    service.update_settings(AVAILABILITY_POLICY)
    service.availability.set_courts(KEY, {1})
    [booking] = service.classify(make_request(auto_cancel_enabled=True), now=AFTER_WINDOW)
    assert booking.court_number == 1

    # Three listed, but one of them is ours
    service.availability.set_courts(KEY, {1, 2, 3})
    assert service.tick(now=AFTER_WINDOW) == []
    assert service.get(booking.id).status is BookingStatus.BOOKED

    day = service.day_schedule(RIVERSIDE.id, SLOT_DATE, now=AFTER_WINDOW)
    [slot] = [s for s in day.slots if s.time_slot == "18:00"]
    assert slot.free_courts == [2, 3]


def test_cancelled_court_is_free_again(service):
    service.availability.set_courts(KEY, {1})
    [booking] = service.classify(make_request(), now=AFTER_WINDOW)
    [waiting] = service.classify(make_request(), now=AFTER_WINDOW)
    assert waiting.status is BookingStatus.WATCHING

    service.cancel(booking.id, now=AFTER_WINDOW)
    service.tick(now=AFTER_WINDOW)

    confirmed = service.get(waiting.id)
    assert (confirmed.status, confirmed.court_number) == (BookingStatus.BOOKED, 1)


def test_recurring_series_confirms_week_by_week(service):
    for week in range(3):
        day = SLOT_DATE + timedelta(weeks=week)
        service.availability.set_courts(SlotKey(RIVERSIDE.id, day, "18:00"), {2})

    bookings = service.classify(
        make_request(recurrence=make_recurrence(occurrences=3)), now=AFTER_WINDOW
    )
    assert [b.status for b in bookings] == [
        BookingStatus.BOOKED,
        BookingStatus.SCHEDULED,
        BookingStatus.SCHEDULED,
    ]

    # The second week's window opens on 2 December at 20:00
    service.tick(now=datetime(2024, 12, 2, 20, 0, tzinfo=timezone.utc))
    statuses = [service.get(b.id).status for b in bookings]
    assert statuses == [BookingStatus.BOOKED, BookingStatus.BOOKED, BookingStatus.SCHEDULED]

    siblings = service.list_bookings(recurring_group_id=bookings[0].recurring_group_id)
    assert [b.recurring_index for b in siblings] == [1, 2, 3]


def test_hour_booking_same_court(service):
    service.availability.set_courts(KEY, {1, 3})
    service.availability.set_courts(SlotKey(RIVERSIDE.id, SLOT_DATE, "18:30"), {3, 4})

    first, second = service.classify(make_request(duration_minutes=60), now=AFTER_WINDOW)
    assert first.court_number == second.court_number == 3


@pytest.mark.parametrize("slot_date", [date(2024, 12, 2), date(2024, 12, 3)])
def test_summary_tracks_confirmed_cost(service, slot_date):
    service.availability.set_courts(SlotKey(RIVERSIDE.id, slot_date, "10:00"), {1})
    service.classify(make_request(date=slot_date, time_slot="10:00"), now=datetime(2024, 11, 27, tzinfo=timezone.utc))

    summary = service.summary()
    assert summary.counts[BookingStatus.BOOKED] == 1
    assert summary.confirmed_cost == 1000


def test_settings_are_passed_into_every_tick(service):
    service.availability.set_courts(KEY, {1})
    [booking] = service.classify(make_request(auto_cancel_enabled=True), now=AFTER_WINDOW)
    service.availability.set_courts(KEY, {2, 3, 4})

    assert service.tick(now=AFTER_WINDOW) == []
    service.update_settings(AutoCancelSettings(availability_enabled=True, min_available_courts=3))
    assert len(service.tick(now=AFTER_WINDOW)) == 1
    assert service.get(booking.id).status is BookingStatus.CANCELLED
