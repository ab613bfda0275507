from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum

from backend.app.core.errors import InvalidInput


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    PENDING = "PENDING"
    CANCELLED = "CANCELLED"


class CandidateKind(str, Enum):
    SINGLE = "single"
    COMBO = "combo"


@dataclass(frozen=True)
class ServiceWindow:
    # local wall-clock "HH:MM", half-open [start, end)
    start: str
    end: str


@dataclass(frozen=True)
class Restaurant:
    id: str
    name: str
    timezone: str
    windows: tuple[ServiceWindow, ...] = ()
    large_group_threshold: int | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class Sector:
    id: str
    restaurant_id: str
    name: str
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class Table:
    id: str
    sector_id: str
    name: str
    min_size: int
    max_size: int
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if self.min_size <= 0 or self.max_size <= 0 or self.min_size > self.max_size:
            raise InvalidInput(f"Table {self.id} has an invalid capacity range [{self.min_size}, {self.max_size}]")

    def fits(self, party_size: int) -> bool:
        return self.min_size <= party_size <= self.max_size


@dataclass(frozen=True)
class Booking:
    id: str
    restaurant_id: str
    sector_id: str
    table_ids: tuple[str, ...]
    party_size: int
    start: datetime
    end: datetime
    duration_minutes: int
    date: date
    status: BookingStatus
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True, order=True)
class Gap:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class Candidate:
    kind: CandidateKind
    table_ids: tuple[str, ...]
    start: datetime
    end: datetime
    min_capacity: int
    max_capacity: int
    score: int
    rationale: str


@dataclass(frozen=True)
class Blackout:
    id: str
    table_id: str
    start: datetime
    end: datetime
    reason: str
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class WaitlistEntry:
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
    # key of the request that queued it; moved to the promoted booking
    idempotency_key: str | None = None
