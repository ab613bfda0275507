from __future__ import annotations

import logging
from datetime import date, timedelta
from uuid import uuid4

from backend.app.core.errors import NotFound
from backend.app.db.models import Booking, WaitlistEntry
from backend.app.db.store import Store

logger = logging.getLogger(__name__)


def new_waitlist_id() -> str:
    return f"WL_{uuid4().hex[:16].upper()}"


async def add_to_waitlist(
    store: Store,
    *,
    restaurant_id: str,
    sector_id: str,
    party_size: int,
    duration_minutes: int,
    day: date,
    window_start: str | None = None,
    window_end: str | None = None,
    booking_id: str | None = None,
    ttl_minutes: int = 60,
    entry_id: str | None = None,
    idempotency_key: str | None = None,
) -> WaitlistEntry:
    """Freeze a booking request so it can be replayed when capacity frees up."""
    now = store.now()
    entry = WaitlistEntry(
        id=entry_id or new_waitlist_id(),
        restaurant_id=restaurant_id,
        sector_id=sector_id,
        party_size=party_size,
        duration_minutes=duration_minutes,
        date=day,
        window_start=window_start,
        window_end=window_end,
        booking_id=booking_id,
        created_at=now,
        expires_at=now + timedelta(minutes=ttl_minutes),
        idempotency_key=idempotency_key,
    )
    await store.create_waitlist_entry(entry)
    logger.info(
        "Waitlisted party of %d in sector %s on %s as %s (expires %s)",
        party_size,
        sector_id,
        day,
        entry.id,
        entry.expires_at.isoformat(),
    )
    return entry


def waitlist_id_for(booking_id: str) -> str:
    """Entry id paired with a waitlist placeholder booking (BK_x -> WL_x)."""
    return f"WL_{booking_id.removeprefix('BK_')}"


async def withdraw_placeholder(store: Store, booking: Booking) -> WaitlistEntry | None:
    """Drop the queued request behind a placeholder that was cancelled or rejected."""
    if booking.table_ids:
        return None
    entry = await store.get_waitlist_entry(waitlist_id_for(booking.id))
    if entry is None or entry.booking_id != booking.id:
        return None
    await store.delete_waitlist_entry(entry.id)
    logger.info("Withdrew waitlist entry %s with placeholder %s", entry.id, booking.id)
    return entry


async def list_waitlist(store: Store, sector_id: str, day: date) -> list[WaitlistEntry]:
    return await store.list_unexpired_waitlist_entries(sector_id, day)


async def remove_waitlist_entry(store: Store, entry_id: str) -> WaitlistEntry:
    entry = await store.delete_waitlist_entry(entry_id)
    if entry is None:
        raise NotFound("Waitlist entry not found")
    return entry


async def purge_expired_waitlist(store: Store) -> int:
    count = await store.purge_expired_waitlist_entries()
    if count:
        logger.info("Purged %d expired waitlist entr%s", count, "y" if count == 1 else "ies")
    return count
