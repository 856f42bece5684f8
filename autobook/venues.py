"""
Venue reference data.

The four London venues the service books at. Venues are immutable; adding
one means adding it here.
"""

from __future__ import annotations

from autobook.errors import UnknownVenue
from autobook.models import Venue

VENUES: tuple[Venue, ...] = (
    Venue(
        id="riverside",
        name="Riverside Tennis Club",
        address="123 River Road, London SW1",
        num_courts=4,
        latitude=51.4975,
        longitude=-0.1357,
        timezone="Europe/London",
    ),
    Venue(
        id="parkside",
        name="Parkside Sports Centre",
        address="456 Park Avenue, London N1",
        num_courts=4,
        latitude=51.5422,
        longitude=-0.1036,
        timezone="Europe/London",
    ),
    Venue(
        id="central",
        name="Central Courts",
        address="789 High Street, London EC1",
        num_courts=4,
        latitude=51.5174,
        longitude=-0.0927,
        timezone="Europe/London",
    ),
    Venue(
        id="westend",
        name="West End Tennis",
        address="321 Oxford Street, London W1",
        num_courts=4,
        latitude=51.5155,
        longitude=-0.1415,
        timezone="Europe/London",
    ),
)

_BY_ID: dict[str, Venue] = {v.id: v for v in VENUES}


def get_venue(venue_id: str) -> Venue:
    """Look up a venue by slug, raising UnknownVenue if it does not exist."""
    venue = _BY_ID.get(venue_id)
    if venue is None:
        raise UnknownVenue(venue_id)
    return venue


def list_venues() -> list[Venue]:
    return list(VENUES)
