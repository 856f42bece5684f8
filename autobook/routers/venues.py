"""
Venue endpoints, plus the feed snapshots the monitoring engine reads.

The PUT endpoints stand in for external availability and weather
providers: whatever pushes data into the system does it through here.
"""

from datetime import date

from fastapi import APIRouter, HTTPException, Query, status

from autobook.dependencies import Service
from autobook.errors import UnknownVenue
from autobook.models import (
    AvailabilityUpdate,
    DaySchedule,
    Venue,
    WeatherUpdate,
)
from autobook.services.slot_clock import slot_clock
from autobook.venues import get_venue, list_venues

router = APIRouter(prefix="/api/venues", tags=["venues"])


def _venue_or_404(venue_id: str) -> Venue:
    try:
        return get_venue(venue_id)
    except UnknownVenue as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from None


def _check_slots(time_slots: list[str]) -> None:
    bad = [t for t in time_slots if not slot_clock.is_valid_slot(t)]
    if bad:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Not bookable slots: {', '.join(bad)}",
        )


@router.get(
    "",
    response_model=list[Venue],
    operation_id="listVenues",
    summary="List all venues",
)
async def get_venues() -> list[Venue]:
    return list_venues()


@router.get(
    "/{venue_id}",
    response_model=Venue,
    operation_id="getVenue",
    summary="Get details of a specific venue",
)
async def get_venue_details(venue_id: str) -> Venue:
    return _venue_or_404(venue_id)


@router.get(
    "/{venue_id}/slots",
    response_model=DaySchedule,
    operation_id="getVenueSlots",
    summary="Slot-by-slot view of one venue day",
)
async def get_venue_slots(
    venue_id: str,
    service: Service,
    day: date = Query(..., alias="date", description="Day to show (YYYY-MM-DD)"),
) -> DaySchedule:
    _venue_or_404(venue_id)
    return service.day_schedule(venue_id, day)


@router.put(
    "/{venue_id}/availability",
    response_model=DaySchedule,
    operation_id="putVenueAvailability",
    summary="Replace the free-court snapshot for one venue day",
)
async def put_venue_availability(venue_id: str, body: AvailabilityUpdate, service: Service) -> DaySchedule:
    venue = _venue_or_404(venue_id)
    _check_slots([s.time_slot for s in body.slots])
    for slot in body.slots:
        outside = [c for c in slot.courts if not 1 <= c <= venue.num_courts]
        if outside:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"{venue.name} has no court {outside[0]}",
            )
    service.availability.update_day(venue.id, body.date, {s.time_slot: s.courts for s in body.slots})
    return service.day_schedule(venue.id, body.date)


@router.put(
    "/{venue_id}/weather",
    response_model=DaySchedule,
    operation_id="putVenueWeather",
    summary="Replace the weather snapshot for one venue day",
)
async def put_venue_weather(venue_id: str, body: WeatherUpdate, service: Service) -> DaySchedule:
    venue = _venue_or_404(venue_id)
    _check_slots([s.time_slot for s in body.slots])
    service.weather.update_day(venue.id, body.date, {s.time_slot: s.observation for s in body.slots})
    return service.day_schedule(venue.id, body.date)
