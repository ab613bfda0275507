import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest

from backend.app.core.locks import LockManager
from backend.app.db.models import Booking, BookingStatus, Restaurant, Sector, ServiceWindow, Table
from backend.app.db.store import InMemoryStore


TZ = "America/Argentina/Buenos_Aires"
DAY = date(2025, 10, 22)


def local(hhmm: str, day: date = DAY) -> datetime:
    """Buenos Aires wall clock (UTC-3) on ``day`` as a UTC instant."""
    hours, minutes = (int(part) for part in hhmm.split(":"))
    return datetime(day.year, day.month, day.day, hours, minutes, tzinfo=timezone(timedelta(hours=-3))).astimezone(
        timezone.utc
    )


def make_booking(
    booking_id: str,
    table_ids: tuple[str, ...],
    start: str,
    end: str,
    *,
    sector_id: str = "S1",
    party_size: int = 2,
    status: BookingStatus = BookingStatus.CONFIRMED,
) -> Booking:
    starts, ends = local(start), local(end)
    return Booking(
        id=booking_id,
        restaurant_id="R1",
        sector_id=sector_id,
        table_ids=table_ids,
        party_size=party_size,
        start=starts,
        end=ends,
        duration_minutes=int((ends - starts).total_seconds() // 60),
        date=DAY,
        status=status,
    )


class Clock:
    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> None:
        self.current += timedelta(**delta)


class YieldingStore(InMemoryStore):
    """Suspends on every booking read so concurrent transactions genuinely interleave."""

    async def get_bookings_for_tables_on_date(self, table_ids, day):
        await asyncio.sleep(0)
        return await super().get_bookings_for_tables_on_date(table_ids, day)


RESTAURANT = Restaurant(
    id="R1",
    name="Test Restaurant",
    timezone=TZ,
    windows=(ServiceWindow("12:00", "16:00"), ServiceWindow("20:00", "23:45")),
)


def seed_reference(store: InMemoryStore) -> None:
    store.seed(
        restaurant=RESTAURANT,
        sectors=[Sector(id="S1", restaurant_id="R1", name="Main Hall")],
        tables=[
            Table(id="T1", sector_id="S1", name="Table 1", min_size=2, max_size=2),
            Table(id="T2", sector_id="S1", name="Table 2", min_size=2, max_size=4),
            Table(id="T3", sector_id="S1", name="Table 3", min_size=2, max_size=4),
            Table(id="T4", sector_id="S1", name="Table 4", min_size=4, max_size=6),
        ],
        bookings=[make_booking("B1", ("T2",), "20:30", "21:15", party_size=3)],
    )


@pytest.fixture
def clock() -> Clock:
    return Clock(datetime(2025, 10, 22, 15, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(clock: Clock) -> InMemoryStore:
    instance = InMemoryStore(clock=clock)
    seed_reference(instance)
    return instance


@pytest.fixture
def yielding_store(clock: Clock) -> YieldingStore:
    instance = YieldingStore(clock=clock)
    seed_reference(instance)
    return instance


@pytest.fixture
def locks() -> LockManager:
    return LockManager()
