"""Tests for turning booking requests into booked / scheduled / watching records."""

from datetime import date, datetime, timezone

import pytest

from autobook.errors import (
    InvalidRecurrenceSpec,
    InvalidSlot,
    NoUsableAccount,
    SlotInPast,
)
from autobook.models import BookingStatus, SlotKey
from autobook.services.accounts import ConnectedAccountPool
from autobook.services.classifier import BookingClassifier
from autobook.services.feeds import InMemoryAvailabilityFeed
from tests.mocks.models import (
    ACTIVE_ACCOUNT,
    AFTER_WINDOW,
    BEFORE_WINDOW,
    RIVERSIDE,
    SLOT_DATE,
    WINDOW_OPENS,
    make_recurrence,
    make_request,
)
from tests.mocks.services import EmptyAccountPool


@pytest.fixture()
def feed() -> InMemoryAvailabilityFeed:
    return InMemoryAvailabilityFeed()


@pytest.fixture()
def accounts() -> ConnectedAccountPool:
    return ConnectedAccountPool([ACTIVE_ACCOUNT])


@pytest.fixture()
def classify(feed, accounts):
    classifier = BookingClassifier()

    def _classify(request, now=AFTER_WINDOW, pool=None):
        return classifier.classify(request, RIVERSIDE, feed, pool or accounts, now)

    return _classify


def _key(time_slot: str = "18:00", day: date = SLOT_DATE) -> SlotKey:
    return SlotKey(RIVERSIDE.id, day, time_slot)


class TestStrategy:

    def test_closed_window_is_scheduled_even_with_free_courts(self, classify, feed):
        feed.set_courts(_key(), {1, 2, 3, 4})
        [booking] = classify(make_request(court_preference=2), now=BEFORE_WINDOW)

        assert booking.status is BookingStatus.SCHEDULED
        assert booking.scheduled_for == WINDOW_OPENS
        assert booking.court_number == 0
        assert booking.account_id is None

    def test_any_court_books_lowest_free(self, classify, feed):
        feed.set_courts(_key(), {3, 2})
        [booking] = classify(make_request())

        assert booking.status is BookingStatus.BOOKED
        assert booking.court_number == 2
        assert booking.account_id == ACTIVE_ACCOUNT.id
        assert booking.scheduled_for is None

    def test_preferred_court_is_booked_when_free(self, classify, feed):
        feed.set_courts(_key(), {2, 3})
        [booking] = classify(make_request(court_preference=3))
        assert (booking.status, booking.court_number) == (BookingStatus.BOOKED, 3)

    def test_preferred_court_taken_means_watching(self, classify, feed):
        feed.set_courts(_key(), {2, 3})
        [booking] = classify(make_request(court_preference=4))
        assert (booking.status, booking.court_number) == (BookingStatus.WATCHING, 4)

    def test_fully_booked_means_watching_any(self, classify, feed):
        feed.set_courts(_key(), set())
        [booking] = classify(make_request())
        assert (booking.status, booking.court_number) == (BookingStatus.WATCHING, 0)

    def test_unknown_availability_means_watching(self, classify):
        [booking] = classify(make_request())
        assert booking.status is BookingStatus.WATCHING

    def test_cost_fixed_from_slot_price(self, classify):
        [peak] = classify(make_request(time_slot="18:00"))
        [off_peak] = classify(make_request(time_slot="10:00"))
        assert (peak.cost, off_peak.cost) == (1500, 1000)

    def test_classifier_does_not_register(self, classify, feed):
        feed.set_courts(_key(), {1})
        first = classify(make_request())
        second = classify(make_request())
        assert first[0].id != second[0].id


class TestHourLongBookings:

    def test_prefers_court_free_in_both_halves(self, classify, feed):
        feed.set_courts(_key("18:00"), {1, 2})
        feed.set_courts(_key("18:30"), {2, 3})
        bookings = classify(make_request(duration_minutes=60))

        assert [b.time_slot for b in bookings] == ["18:00", "18:30"]
        assert [b.court_number for b in bookings] == [2, 2]
        assert all(b.status is BookingStatus.BOOKED for b in bookings)

    def test_halves_classified_independently(self, classify, feed):
        feed.set_courts(_key("18:00"), {1})
        feed.set_courts(_key("18:30"), set())
        first, second = classify(make_request(duration_minutes=60))

        assert (first.status, first.court_number) == (BookingStatus.BOOKED, 1)
        assert (second.status, second.court_number) == (BookingStatus.WATCHING, 0)

    def test_last_slot_of_day_books_one_slot(self, classify):
        bookings = classify(make_request(time_slot="19:30", duration_minutes=60))
        assert len(bookings) == 1


class TestRecurring:

    def test_siblings_share_group(self, classify, feed):
        feed.set_courts(_key(), {1})
        bookings = classify(make_request(recurrence=make_recurrence(occurrences=3)))

        assert [b.date for b in bookings] == [date(2024, 12, 2), date(2024, 12, 9), date(2024, 12, 16)]
        assert len({b.recurring_group_id for b in bookings}) == 1
        assert bookings[0].recurring_group_id is not None
        assert [b.recurring_index for b in bookings] == [1, 2, 3]
        assert {b.recurring_total for b in bookings} == {3}

    def test_each_date_gets_its_own_strategy(self, classify, feed):
        feed.set_courts(_key(), {1})
        bookings = classify(make_request(recurrence=make_recurrence(occurrences=3)))
        assert [b.status for b in bookings] == [
            BookingStatus.BOOKED,
            BookingStatus.SCHEDULED,
            BookingStatus.SCHEDULED,
        ]

    def test_one_off_has_no_group(self, classify):
        [booking] = classify(make_request(recurrence=make_recurrence(pattern="none", occurrences=None)))
        assert booking.recurring_group_id is None
        assert booking.recurring_index is None


class TestRejections:

    def test_no_usable_account(self, classify, feed):
        feed.set_courts(_key(), {1})
        with pytest.raises(NoUsableAccount):
            classify(make_request(), pool=EmptyAccountPool())

    def test_no_account_needed_when_nothing_books(self, classify):
        [booking] = classify(make_request(), now=BEFORE_WINDOW, pool=EmptyAccountPool())
        assert booking.status is BookingStatus.SCHEDULED

    def test_no_account_part_way_through_recurrence(self, classify, feed):
        # First date only needs to watch, the second can book right away
        feed.set_courts(_key(day=date(2024, 12, 3)), {1})
        with pytest.raises(NoUsableAccount):
            classify(
                make_request(recurrence=make_recurrence(pattern="daily", occurrences=2)),
                now=datetime(2024, 11, 26, 20, 1, tzinfo=timezone.utc),
                pool=EmptyAccountPool(),
            )

    def test_slot_in_past(self, classify):
        with pytest.raises(SlotInPast):
            classify(make_request(), now=datetime(2024, 12, 2, 18, 30, tzinfo=timezone.utc))

    def test_off_grid_time(self, classify):
        with pytest.raises(InvalidSlot):
            classify(make_request(time_slot="08:15"))

    def test_court_outside_venue(self, classify):
        with pytest.raises(InvalidSlot):
            classify(make_request(court_preference=5))

    def test_bad_recurrence(self, classify):
        with pytest.raises(InvalidRecurrenceSpec):
            classify(make_request(recurrence=make_recurrence(occurrences=None)))
