"""
Storage contract consumed by the allocation core.

Every method is a single atomic step from the caller's point of view. The core
adds no transaction wrapper of its own beyond the per-key lock manager, so an
implementation backed by a real database must make each call atomic itself.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import date, datetime, timedelta

from backend.app.db.models import (
    Blackout,
    Booking,
    BookingStatus,
    Restaurant,
    Sector,
    Table,
    WaitlistEntry,
    utcnow,
)


class Store(ABC):
    # Venue inventory (read-only to the core)

    @abstractmethod
    async def get_restaurant(self, restaurant_id: str) -> Restaurant | None: ...

    @abstractmethod
    async def get_sector(self, sector_id: str) -> Sector | None: ...

    @abstractmethod
    async def get_table(self, table_id: str) -> Table | None: ...

    @abstractmethod
    async def get_tables_in_sector(self, sector_id: str) -> list[Table]: ...

    # Bookings

    @abstractmethod
    async def get_bookings_for_tables_on_date(self, table_ids: Iterable[str], day: date) -> list[Booking]:
        """CONFIRMED bookings touching any of ``table_ids`` on ``day``, sorted by start."""

    @abstractmethod
    async def get_bookings_for_sector_on_date(self, sector_id: str, day: date) -> list[Booking]:
        """CONFIRMED bookings of a sector on ``day``, sorted by start."""

    @abstractmethod
    async def get_booking(self, booking_id: str) -> Booking | None: ...

    @abstractmethod
    async def create_booking(self, booking: Booking) -> Booking: ...

    @abstractmethod
    async def update_booking_status(self, booking_id: str, status: BookingStatus) -> Booking | None: ...

    @abstractmethod
    async def delete_booking(self, booking_id: str) -> Booking | None: ...

    # Idempotency

    @abstractmethod
    async def get_idempotent_result(self, key: str) -> Booking | None: ...

    @abstractmethod
    async def store_idempotent_result(self, key: str, booking: Booking, ttl_seconds: int) -> None: ...

    # Blackouts

    @abstractmethod
    async def create_blackout(self, blackout: Blackout) -> Blackout: ...

    @abstractmethod
    async def get_blackout(self, blackout_id: str) -> Blackout | None: ...

    @abstractmethod
    async def get_blackouts_for_tables(self, table_ids: Iterable[str]) -> list[Blackout]: ...

    @abstractmethod
    async def list_blackouts(self) -> list[Blackout]: ...

    @abstractmethod
    async def delete_blackout(self, blackout_id: str) -> Blackout | None: ...

    # Waitlist

    @abstractmethod
    async def create_waitlist_entry(self, entry: WaitlistEntry) -> WaitlistEntry: ...

    @abstractmethod
    async def get_waitlist_entry(self, entry_id: str) -> WaitlistEntry | None: ...

    @abstractmethod
    async def list_waitlist_entries(self, sector_id: str, day: date) -> list[WaitlistEntry]:
        """All entries for a sector and date, expired ones included, oldest first."""

    @abstractmethod
    async def list_unexpired_waitlist_entries(self, sector_id: str, day: date) -> list[WaitlistEntry]: ...

    @abstractmethod
    async def delete_waitlist_entry(self, entry_id: str) -> WaitlistEntry | None: ...

    @abstractmethod
    async def purge_expired_waitlist_entries(self) -> int: ...

    def now(self) -> datetime:
        return utcnow()


class InMemoryStore(Store):
    """Dict-backed store. Single event loop only; no call suspends mid-way."""

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock
        self.restaurants: dict[str, Restaurant] = {}
        self.sectors: dict[str, Sector] = {}
        self.tables: dict[str, Table] = {}
        self.bookings: dict[str, Booking] = {}
        self.blackouts: dict[str, Blackout] = {}
        self.waitlist: dict[str, WaitlistEntry] = {}
        self.idempotency: dict[str, tuple[Booking, datetime]] = {}

    def now(self) -> datetime:
        return self._clock()

    def seed(
        self,
        *,
        restaurant: Restaurant,
        sectors: Iterable[Sector],
        tables: Iterable[Table],
        bookings: Iterable[Booking] = (),
    ) -> None:
        self.restaurants[restaurant.id] = restaurant
        for sector in sectors:
            self.sectors[sector.id] = sector
        for table in tables:
            self.tables[table.id] = table
        for booking in bookings:
            self.bookings[booking.id] = booking

    def clear(self) -> None:
        self.restaurants.clear()
        self.sectors.clear()
        self.tables.clear()
        self.bookings.clear()
        self.blackouts.clear()
        self.waitlist.clear()
        self.idempotency.clear()

    async def get_restaurant(self, restaurant_id: str) -> Restaurant | None:
        return self.restaurants.get(restaurant_id)

    async def get_sector(self, sector_id: str) -> Sector | None:
        return self.sectors.get(sector_id)

    async def get_table(self, table_id: str) -> Table | None:
        return self.tables.get(table_id)

    async def get_tables_in_sector(self, sector_id: str) -> list[Table]:
        return [table for table in self.tables.values() if table.sector_id == sector_id]

    async def get_bookings_for_tables_on_date(self, table_ids: Iterable[str], day: date) -> list[Booking]:
        wanted = set(table_ids)
        rows = [
            booking
            for booking in self.bookings.values()
            if booking.status is BookingStatus.CONFIRMED
            and booking.date == day
            and wanted.intersection(booking.table_ids)
        ]
        return sorted(rows, key=lambda booking: booking.start)

    async def get_bookings_for_sector_on_date(self, sector_id: str, day: date) -> list[Booking]:
        rows = [
            booking
            for booking in self.bookings.values()
            if booking.status is BookingStatus.CONFIRMED
            and booking.sector_id == sector_id
            and booking.date == day
        ]
        return sorted(rows, key=lambda booking: booking.start)

    async def get_booking(self, booking_id: str) -> Booking | None:
        return self.bookings.get(booking_id)

    async def create_booking(self, booking: Booking) -> Booking:
        self.bookings[booking.id] = booking
        return booking

    async def update_booking_status(self, booking_id: str, status: BookingStatus) -> Booking | None:
        booking = self.bookings.get(booking_id)
        if booking is None:
            return None
        updated = replace(booking, status=status, updated_at=self.now())
        self.bookings[booking_id] = updated
        return updated

    async def delete_booking(self, booking_id: str) -> Booking | None:
        return self.bookings.pop(booking_id, None)

    async def get_idempotent_result(self, key: str) -> Booking | None:
        cached = self.idempotency.get(key)
        if cached is None:
            return None
        booking, expires_at = cached
        if self.now() > expires_at:
            del self.idempotency[key]
            return None
        return booking

    async def store_idempotent_result(self, key: str, booking: Booking, ttl_seconds: int) -> None:
        self.idempotency[key] = (booking, self.now() + timedelta(seconds=ttl_seconds))

    async def create_blackout(self, blackout: Blackout) -> Blackout:
        self.blackouts[blackout.id] = blackout
        return blackout

    async def get_blackout(self, blackout_id: str) -> Blackout | None:
        return self.blackouts.get(blackout_id)

    async def get_blackouts_for_tables(self, table_ids: Iterable[str]) -> list[Blackout]:
        wanted = set(table_ids)
        return [blackout for blackout in self.blackouts.values() if blackout.table_id in wanted]

    async def list_blackouts(self) -> list[Blackout]:
        return list(self.blackouts.values())

    async def delete_blackout(self, blackout_id: str) -> Blackout | None:
        return self.blackouts.pop(blackout_id, None)

    async def create_waitlist_entry(self, entry: WaitlistEntry) -> WaitlistEntry:
        self.waitlist[entry.id] = entry
        return entry

    async def get_waitlist_entry(self, entry_id: str) -> WaitlistEntry | None:
        return self.waitlist.get(entry_id)

    async def list_waitlist_entries(self, sector_id: str, day: date) -> list[WaitlistEntry]:
        rows = [entry for entry in self.waitlist.values() if entry.sector_id == sector_id and entry.date == day]
        # stable sort keeps insertion order for identical timestamps
        return sorted(rows, key=lambda entry: entry.created_at)

    async def list_unexpired_waitlist_entries(self, sector_id: str, day: date) -> list[WaitlistEntry]:
        now = self.now()
        return [entry for entry in await self.list_waitlist_entries(sector_id, day) if entry.expires_at > now]

    async def delete_waitlist_entry(self, entry_id: str) -> WaitlistEntry | None:
        return self.waitlist.pop(entry_id, None)

    async def purge_expired_waitlist_entries(self) -> int:
        now = self.now()
        expired = [entry_id for entry_id, entry in self.waitlist.items() if entry.expires_at <= now]
        for entry_id in expired:
            del self.waitlist[entry_id]
        return len(expired)
