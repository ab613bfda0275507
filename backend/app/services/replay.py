"""Releasing capacity: cancellation and the waitlist replay it triggers."""
from __future__ import annotations

import logging
from datetime import date

from backend.app.core.config import BookingPolicy
from backend.app.core.errors import BookingError, NotFound
from backend.app.core.locks import LockManager
from backend.app.db.models import WaitlistEntry
from backend.app.db.store import Store
from backend.app.services.reservations import create_booking
from backend.app.services.waitlist import withdraw_placeholder

logger = logging.getLogger(__name__)


async def replay_waitlist(
    store: Store,
    locks: LockManager,
    sector_id: str,
    day: date,
    policy: BookingPolicy | None = None,
) -> list[WaitlistEntry]:
    """
    Re-run queued requests for a sector and date, oldest first.

    At most one entry is promoted per call so a single freed slot cannot cascade
    into a reshuffle. Entries that still do not fit stay queued; expired ones are
    dropped on the way. A promoted entry's idempotency key is re-pointed at the
    new booking so a retry finds it instead of the removed placeholder.
    """
    policy = policy or BookingPolicy.from_settings()
    now = store.now()
    for entry in await store.list_waitlist_entries(sector_id, day):
        if entry.expires_at <= now:
            await store.delete_waitlist_entry(entry.id)
            logger.debug("Dropped expired waitlist entry %s", entry.id)
            continue

        try:
            booking = await create_booking(
                store,
                locks,
                restaurant_id=entry.restaurant_id,
                sector_id=entry.sector_id,
                party_size=entry.party_size,
                day=entry.date,
                duration_minutes=entry.duration_minutes,
                window_start=entry.window_start,
                window_end=entry.window_end,
                allow_waitlist=False,
                policy=policy,
            )
        except BookingError as exc:
            logger.debug("Waitlist entry %s still waiting: %s", entry.id, exc.code)
            continue

        await store.delete_waitlist_entry(entry.id)
        if entry.booking_id:
            await store.delete_booking(entry.booking_id)
        if entry.idempotency_key:
            await store.store_idempotent_result(entry.idempotency_key, booking, policy.idempotency_ttl_seconds)
        logger.info("Promoted waitlist entry %s to booking %s (%s)", entry.id, booking.id, booking.status.value)
        return [entry]

    return []


async def cancel_booking(
    store: Store,
    locks: LockManager,
    booking_id: str,
    policy: BookingPolicy | None = None,
) -> list[WaitlistEntry]:
    """Remove a booking and offer the freed capacity to the waitlist."""
    booking = await store.delete_booking(booking_id)
    if booking is None:
        raise NotFound("Booking not found")
    logger.info("Booking %s cancelled", booking_id)
    if not booking.table_ids:
        await withdraw_placeholder(store, booking)
        return []
    return await replay_waitlist(store, locks, booking.sector_id, booking.date, policy)
