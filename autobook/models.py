"""Pydantic models for the Tennis Autobook core and API."""

import datetime as dt
from enum import Enum
from typing import Literal, NamedTuple, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

_TIME_PATTERN = r"^([0-1][0-9]|2[0-3]):[0-5][0-9]$"


class SlotKey(NamedTuple):
    """Natural key of a half-hour slot at a venue."""
    venue_id: str
    date: dt.date
    time_slot: str


# ── Enums ──────────────────────────────────────────────────────────────────


class BookingStatus(str, Enum):
    BOOKED = "booked"
    SCHEDULED = "scheduled"
    WATCHING = "watching"
    CANCELLED = "cancelled"


class CancelReason(str, Enum):
    WEATHER = "weather"
    AVAILABILITY = "availability"
    MANUAL = "manual"


class RecurrencePattern(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class TransitionKind(str, Enum):
    CONFIRMED = "confirmed"
    AUTO_CANCELLED = "auto_cancelled"
    AUTO_REBOOKED = "auto_rebooked"
    MANUAL_CANCELLED = "manual_cancelled"


# ── Reference data ─────────────────────────────────────────────────────────


class Venue(BaseModel):
    """A tennis venue. Immutable reference data."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Venue slug")
    name: str = Field(..., description="Display name")
    address: str = Field(..., description="Street address")
    num_courts: int = Field(..., ge=1, description="Number of courts")
    latitude: float = Field(..., description="Latitude")
    longitude: float = Field(..., description="Longitude")
    timezone: str = Field(..., description="IANA timezone, e.g. Europe/London")


# ── Bookings ───────────────────────────────────────────────────────────────


class Booking(BaseModel):
    """
    A single-slot reservation at some stage of its lifecycle.

    Records are frozen: the registry swaps in updated copies, so a
    booking handed to a reader never changes underneath it.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4, description="Unique booking identifier")
    venue_id: str = Field(..., description="Venue slug")
    court_number: int = Field(..., ge=0, description="Court number, 0 = any court")
    date: dt.date = Field(..., description="Slot date")
    time_slot: str = Field(..., pattern=_TIME_PATTERN, description="Slot start (HH:MM)")
    status: BookingStatus = Field(..., description="Lifecycle state")
    scheduled_for: Optional[dt.datetime] = Field(
        None, description="When the booking window opens (scheduled bookings only)"
    )
    auto_cancel_enabled: bool = Field(default=False, description="Opted in to auto-cancel")
    auto_rebook_enabled: bool = Field(default=False, description="Opted in to auto-rebook")
    cancel_reason: Optional[CancelReason] = Field(None, description="Why it was cancelled")
    cost: int = Field(..., ge=0, description="Price in minor currency units")
    recurring_group_id: Optional[str] = Field(None, description="Shared by siblings of one recurring request")
    recurring_index: Optional[int] = Field(None, ge=1, description="1-based position in the series")
    recurring_total: Optional[int] = Field(None, ge=1, description="Size of the series")
    account_id: Optional[str] = Field(None, description="Connected account that holds the booking")
    created_at: Optional[dt.datetime] = Field(None, description="Creation timestamp")

    @property
    def slot_key(self) -> SlotKey:
        return SlotKey(self.venue_id, self.date, self.time_slot)


class RecurrenceSpec(BaseModel):
    """How one booking request repeats."""
    pattern: RecurrencePattern = Field(default=RecurrencePattern.NONE, description="Repeat pattern")
    weekdays: list[int] = Field(
        default_factory=list,
        description="Days to repeat on for weekly/biweekly (0=Sunday, 6=Saturday)",
    )
    occurrences: Optional[int] = Field(None, description="Stop after this many dates")
    window_weeks: Optional[int] = Field(None, description="Stop after this many weeks")
    never_ends: bool = Field(default=False, description="Repeat for a year (same as window_weeks=52)")


class BookingRequest(BaseModel):
    """A user's request to reserve a slot, possibly repeating."""
    venue_id: str = Field(..., description="Venue slug")
    date: dt.date = Field(..., description="First slot date")
    time_slot: str = Field(..., pattern=_TIME_PATTERN, description="Slot start (HH:MM)")
    court_preference: int = Field(default=0, ge=0, description="Specific court, 0 = any")
    duration_minutes: Literal[30, 60] = Field(default=30, description="30 or 60 minutes")
    auto_cancel_enabled: bool = Field(default=False, description="Opt in to auto-cancel")
    auto_rebook_enabled: bool = Field(default=False, description="Opt in to auto-rebook")
    recurrence: Optional[RecurrenceSpec] = Field(None, description="Repeat rule")


# ── Automation policy ──────────────────────────────────────────────────────


class AutoCancelSettings(BaseModel):
    """Global auto-cancel / auto-rebook policy, passed into every tick."""
    model_config = ConfigDict(frozen=True)

    weather_enabled: bool = False
    min_temp_enabled: bool = False
    min_temp: float = Field(default=10, description="Cancel below this temperature (°C)")
    max_temp_enabled: bool = False
    max_temp: float = Field(default=30, description="Cancel above this temperature (°C)")
    rain_probability_enabled: bool = False
    rain_probability: float = Field(default=30, ge=0, le=100, description="Cancel above this rain chance (%)")
    recent_rain_enabled: bool = False
    recent_rain_hours: float = Field(default=24, ge=0, description="Cancel if it rained within this many hours")
    max_wind_enabled: bool = False
    max_wind: float = Field(default=20, ge=0, description="Cancel above this wind speed (mph)")
    availability_enabled: bool = False
    min_available_courts: int = Field(default=3, ge=1, description="Cancel when this many courts are free")
    auto_rebook_enabled: bool = False
    max_available_courts_for_rebook: int = Field(
        default=2, ge=0, description="Re-book when free courts drop to this many or fewer"
    )


# ── Feed payloads ──────────────────────────────────────────────────────────


class WeatherObservation(BaseModel):
    """Weather at a slot. Missing fields switch off the matching rule."""
    model_config = ConfigDict(frozen=True)

    temperature: Optional[float] = Field(None, description="Temperature (°C)")
    rain_probability: Optional[float] = Field(None, description="Chance of rain (%)")
    hours_since_rain: Optional[float] = Field(None, description="Hours since it last rained, 0 if raining")
    wind_speed: Optional[float] = Field(None, description="Wind speed (mph)")


class SlotAvailability(BaseModel):
    time_slot: str = Field(..., pattern=_TIME_PATTERN)
    courts: list[int] = Field(default_factory=list, description="Free court numbers")


class AvailabilityUpdate(BaseModel):
    """Replace the free-court snapshot for one venue/date."""
    date: dt.date
    slots: list[SlotAvailability]


class SlotWeather(BaseModel):
    time_slot: str = Field(..., pattern=_TIME_PATTERN)
    observation: WeatherObservation


class WeatherUpdate(BaseModel):
    """Replace the weather snapshot for one venue/date."""
    date: dt.date
    slots: list[SlotWeather]


class ConnectedAccount(BaseModel):
    """External booking-site account used to hold confirmed bookings."""
    id: str = Field(..., description="Account identifier")
    name: str = Field(default="", description="Display name")
    status: Literal["active", "error"] = Field(default="active", description="Only active accounts are used")


# ── Events ─────────────────────────────────────────────────────────────────


class TransitionEvent(BaseModel):
    """Notice emitted whenever a booking changes state."""
    model_config = ConfigDict(frozen=True)

    booking_id: UUID
    kind: TransitionKind
    from_status: BookingStatus
    to_status: BookingStatus
    reason: Optional[CancelReason] = None
    venue_id: str
    date: dt.date
    time_slot: str
    court_number: int
    occurred_at: dt.datetime


# ── API responses ──────────────────────────────────────────────────────────


class PaginationMeta(BaseModel):
    page: int
    page_size: int
    total_items: int
    total_pages: int


class BookingListResponse(BaseModel):
    items: list[Booking]
    meta: PaginationMeta


class BookingSummary(BaseModel):
    """Totals shown next to the user's booking list."""
    counts: dict[BookingStatus, int] = Field(..., description="Bookings per status")
    confirmed_cost: int = Field(..., description="Sum of confirmed booking costs (minor units)")
    currency: str


class SlotView(BaseModel):
    """How one slot of the day looks to a user picking a time."""
    time_slot: str
    state: Literal["past", "not_open", "available", "fully_booked", "unknown"]
    price: int
    free_courts: list[int] = Field(default_factory=list)
    window_opens_at: dt.datetime
    weather: Optional[WeatherObservation] = None


class DaySchedule(BaseModel):
    venue_id: str
    date: dt.date
    slots: list[SlotView]


class MonitorStats(BaseModel):
    ticks: int
    transitions: int
    last_tick_at: Optional[dt.datetime] = None
    monitored_bookings: int
    stale_scheduled: int


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: dt.datetime


class Error(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
