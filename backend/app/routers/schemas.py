from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from backend.app.db.models import (
    Blackout,
    Booking,
    BookingStatus,
    Candidate,
    CandidateKind,
    WaitlistEntry,
)

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
HHMM_PATTERN = r"^\d{2}:\d{2}$"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CandidateOut(CamelModel):
    kind: CandidateKind
    table_ids: list[str]
    start: datetime
    end: datetime
    min_capacity: int
    max_capacity: int
    score: int
    rationale: str

    @classmethod
    def from_domain(cls, candidate: Candidate) -> "CandidateOut":
        return cls(
            kind=candidate.kind,
            table_ids=list(candidate.table_ids),
            start=candidate.start,
            end=candidate.end,
            min_capacity=candidate.min_capacity,
            max_capacity=candidate.max_capacity,
            score=candidate.score,
            rationale=candidate.rationale,
        )


class DiscoverOut(CamelModel):
    slot_minutes: int
    duration_minutes: int
    candidates: list[CandidateOut]


class CreateBookingIn(CamelModel):
    restaurant_id: str = Field(min_length=1)
    sector_id: str = Field(min_length=1)
    party_size: int = Field(ge=1, le=50)
    # optional: derived from party size when omitted
    duration_minutes: int | None = Field(default=None, ge=15, le=480)
    date: str = Field(pattern=DATE_PATTERN)
    window_start: str | None = Field(default=None, pattern=HHMM_PATTERN)
    window_end: str | None = Field(default=None, pattern=HHMM_PATTERN)


class BookingOut(CamelModel):
    id: str
    restaurant_id: str
    sector_id: str
    table_ids: list[str]
    party_size: int
    start: datetime
    end: datetime
    duration_minutes: int
    status: BookingStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, booking: Booking) -> "BookingOut":
        return cls(
            id=booking.id,
            restaurant_id=booking.restaurant_id,
            sector_id=booking.sector_id,
            table_ids=list(booking.table_ids),
            party_size=booking.party_size,
            start=booking.start,
            end=booking.end,
            duration_minutes=booking.duration_minutes,
            status=booking.status,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )


class BookingDayItem(CamelModel):
    id: str
    table_ids: list[str]
    party_size: int
    start: datetime
    end: datetime
    status: BookingStatus


class BookingDayOut(CamelModel):
    date: date
    items: list[BookingDayItem]


class CreateBlackoutIn(CamelModel):
    table_id: str = Field(min_length=1)
    # ISO 8601 with offset, e.g. "2025-10-22T20:00:00-03:00"
    start: datetime
    end: datetime
    reason: str = Field(min_length=1, max_length=200)


class BlackoutOut(CamelModel):
    id: str
    table_id: str
    start: datetime
    end: datetime
    reason: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, blackout: Blackout) -> "BlackoutOut":
        return cls(
            id=blackout.id,
            table_id=blackout.table_id,
            start=blackout.start,
            end=blackout.end,
            reason=blackout.reason,
            created_at=blackout.created_at,
            updated_at=blackout.updated_at,
        )


class BlackoutListOut(CamelModel):
    items: list[BlackoutOut]


class WaitlistEntryOut(CamelModel):
    id: str
    restaurant_id: str
    sector_id: str
    party_size: int
    duration_minutes: int
    date: date
    window_start: str | None
    window_end: str | None
    booking_id: str | None
    created_at: datetime
    expires_at: datetime

    @classmethod
    def from_domain(cls, entry: WaitlistEntry) -> "WaitlistEntryOut":
        return cls(
            id=entry.id,
            restaurant_id=entry.restaurant_id,
            sector_id=entry.sector_id,
            party_size=entry.party_size,
            duration_minutes=entry.duration_minutes,
            date=entry.date,
            window_start=entry.window_start,
            window_end=entry.window_end,
            booking_id=entry.booking_id,
            created_at=entry.created_at,
            expires_at=entry.expires_at,
        )


class WaitlistListOut(CamelModel):
    items: list[WaitlistEntryOut]


class WaitlistCleanupOut(CamelModel):
    cleaned: int
