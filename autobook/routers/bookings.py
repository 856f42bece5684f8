"""
Booking endpoints.

Creating a booking classifies it (booked / scheduled / watching) and may
produce several records: one per slot of an hour-long request and one
per date of a recurring one.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from autobook.dependencies import PaginationParams, Service, paginate
from autobook.errors import (
    InvalidRecurrenceSpec,
    InvalidSlot,
    NoUsableAccount,
    SlotInPast,
    UnknownBooking,
    UnknownVenue,
)
from autobook.models import (
    Booking,
    BookingListResponse,
    BookingRequest,
    BookingStatus,
    BookingSummary,
)
from autobook.rate_limit import BOOKING, limiter

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


@router.post(
    "",
    response_model=list[Booking],
    status_code=status.HTTP_201_CREATED,
    operation_id="createBooking",
    summary="Request a booking (classified into booked, scheduled or watching)",
)
@limiter.limit(BOOKING)
async def create_booking(request: Request, body: BookingRequest, service: Service) -> list[Booking]:
    try:
        return service.classify(body)
    except UnknownVenue as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from None
    except NoUsableAccount as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from None
    except (InvalidRecurrenceSpec, InvalidSlot, SlotInPast) as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from None


@router.get(
    "",
    response_model=BookingListResponse,
    operation_id="listBookings",
    summary="List bookings, oldest first",
)
async def list_bookings(
    service: Service,
    pagination: PaginationParams = Depends(PaginationParams),
    booking_status: BookingStatus | None = Query(None, alias="status", description="Filter by status"),
    venue_id: str | None = Query(None, description="Filter by venue slug"),
    recurring_group_id: str | None = Query(None, description="Filter by recurring group"),
) -> BookingListResponse:
    bookings = service.list_bookings(booking_status, venue_id, recurring_group_id)
    return paginate(bookings, pagination, BookingListResponse)


@router.get(
    "/summary",
    response_model=BookingSummary,
    operation_id="getBookingSummary",
    summary="Booking counts per status and total confirmed cost",
)
async def get_booking_summary(service: Service) -> BookingSummary:
    return service.summary()


@router.get(
    "/{booking_id}",
    response_model=Booking,
    operation_id="getBooking",
    summary="Get a single booking",
)
async def get_booking(booking_id: UUID, service: Service) -> Booking:
    try:
        return service.get(booking_id)
    except UnknownBooking as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from None


@router.post(
    "/{booking_id}/cancel",
    response_model=Booking,
    operation_id="cancelBooking",
    summary="Cancel a booking by hand",
)
async def cancel_booking(booking_id: UUID, service: Service) -> Booking:
    """
    The booking stays in the list as cancelled (manual) and is never
    re-booked automatically.
    """
    try:
        return service.cancel(booking_id)
    except UnknownBooking as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from None


@router.delete(
    "/{booking_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    operation_id="deleteBooking",
    summary="Remove a booking record",
)
async def delete_booking(booking_id: UUID, service: Service) -> None:
    try:
        service.delete(booking_id)
    except UnknownBooking as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from None
