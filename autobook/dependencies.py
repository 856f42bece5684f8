import logging
from typing import Annotated

from fastapi import Depends, Query

from autobook.models import PaginationMeta
from autobook.services.booking_service import BookingService, booking_service

logger = logging.getLogger(__name__)


# ── Pagination ─────────────────────────────────────────────────────────────


class PaginationParams:
    def __init__(
        self,
        page: Annotated[int, Query(ge=1, description="Page number (1-indexed)")] = 1,
        page_size: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 20,
    ):
        self.page = page
        self.page_size = page_size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def paginate(items: list, pagination: PaginationParams, response_cls: type):
    total = len(items)
    start = pagination.offset
    end = start + pagination.page_size
    return response_cls(
        items=items[start:end],
        meta=PaginationMeta(
            page=pagination.page,
            page_size=pagination.page_size,
            total_items=total,
            total_pages=max(1, -(-total // pagination.page_size)),
        ),
    )


# ── Booking service ────────────────────────────────────────────────────────


def get_booking_service() -> BookingService:
    """The process-wide service; tests override this dependency."""
    return booking_service


Service = Annotated[BookingService, Depends(get_booking_service)]
