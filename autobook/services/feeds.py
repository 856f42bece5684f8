"""
Availability and weather feeds.

The monitoring engine only depends on the two protocols below. The
in-memory implementations hold the latest snapshot pushed by whatever
polls the booking site and the weather provider; both are keyed by
venue, date and slot.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from datetime import date
from typing import Protocol

from autobook.models import SlotKey, WeatherObservation

logger = logging.getLogger(__name__)

ChangeListener = Callable[[list[SlotKey]], None]


class AvailabilityFeed(Protocol):
    """Free courts per slot."""

    def available_courts(self, key: SlotKey) -> set[int] | None:
        """Free court numbers, an empty set when full, None when unknown."""
        ...


class WeatherFeed(Protocol):
    """Weather per slot."""

    def observation(self, key: SlotKey) -> WeatherObservation | None:
        """Latest observation, or None when the provider has nothing."""
        ...


class InMemoryAvailabilityFeed:
    """
    Snapshot store for court availability.

    Listeners are told which slots changed so the engine can react
    immediately instead of waiting for its next scheduled tick.
    """

    def __init__(self) -> None:
        self._courts: dict[SlotKey, frozenset[int]] = {}
        self._listeners: list[ChangeListener] = []
        self._lock = threading.Lock()

    # ── Read ───────────────────────────────────────────────────────────

    def available_courts(self, key: SlotKey) -> set[int] | None:
        with self._lock:
            courts = self._courts.get(key)
        return None if courts is None else set(courts)

    # ── Write ──────────────────────────────────────────────────────────

    def set_courts(self, key: SlotKey, courts: Iterable[int]) -> None:
        self.update({key: courts})

    def update_day(
        self, venue_id: str, day: date, slots: Mapping[str, Iterable[int]]
    ) -> None:
        """Replace the snapshot for several slots of one venue day."""
        self.update({SlotKey(venue_id, day, t): courts for t, courts in slots.items()})

    def update(self, snapshot: Mapping[SlotKey, Iterable[int]]) -> None:
        changed: list[SlotKey] = []
        with self._lock:
            for key, courts in snapshot.items():
                new = frozenset(courts)
                if self._courts.get(key) != new:
                    self._courts[key] = new
                    changed.append(key)
        if changed:
            logger.debug("Availability changed for %d slots", len(changed))
            self._notify(changed)

    def clear(self, key: SlotKey) -> None:
        """Forget a slot, so it reads as unknown again."""
        with self._lock:
            self._courts.pop(key, None)

    # ── Change listeners ───────────────────────────────────────────────

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, changed: list[SlotKey]) -> None:
        for listener in list(self._listeners):
            try:
                listener(changed)
            except Exception:
                logger.exception("Availability listener failed")


class InMemoryWeatherFeed:
    """Snapshot store for weather observations."""

    def __init__(self) -> None:
        self._observations: dict[SlotKey, WeatherObservation] = {}
        self._lock = threading.Lock()

    def observation(self, key: SlotKey) -> WeatherObservation | None:
        with self._lock:
            return self._observations.get(key)

    def set_observation(self, key: SlotKey, observation: WeatherObservation) -> None:
        with self._lock:
            self._observations[key] = observation

    def update_day(
        self, venue_id: str, day: date, slots: Mapping[str, WeatherObservation]
    ) -> None:
        with self._lock:
            for time_slot, observation in slots.items():
                self._observations[SlotKey(venue_id, day, time_slot)] = observation


class NetAvailabilityFeed:
    """
    Availability minus the courts this system already holds.

    The upstream snapshot may still list a court after we have booked
    it; reading through this view keeps a held court from being handed
    to a second booking or counted as free by the auto-cancel rule.
    """

    def __init__(self, feed: AvailabilityFeed, held: Callable[[SlotKey], set[int]]) -> None:
        self._feed = feed
        self._held = held

    def available_courts(self, key: SlotKey) -> set[int] | None:
        courts = self._feed.available_courts(key)
        if courts is None:
            return None
        return courts - self._held(key)
