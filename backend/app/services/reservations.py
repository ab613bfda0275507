"""
Booking transaction and booking lifecycle.

``create_booking`` walks REQUESTED -> (IDEMPOTENT_HIT | VALIDATED) ->
(CANDIDATE_FOUND | NO_CANDIDATE) -> LOCKED -> (COMMITTED | CONFLICT) -> RELEASED.
The early idempotency lookup only saves work; the authoritative lookup and the
availability double-check both run again while the candidate's lock is held.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from uuid import uuid4

from backend.app.core.config import BookingPolicy
from backend.app.core.errors import InvalidInput, NoCapacity, NotFound
from backend.app.core.locks import LockManager, lock_key
from backend.app.db.models import Booking, BookingStatus, Candidate, Restaurant
from backend.app.db.store import Store
from backend.app.services.blackouts import has_blackout
from backend.app.services.intervals import local_midnight, overlaps, to_zoned
from backend.app.services.validation import (
    ensure_window_within_service,
    parse_day,
    require_id,
    resolve_venue,
    validate_request,
)
from backend.app.services.waitlist import add_to_waitlist, withdraw_placeholder
from backend.app.services.wokibrain import select_best_candidate

logger = logging.getLogger(__name__)


def _new_suffix() -> str:
    return uuid4().hex[:16].upper()


def large_group_threshold(restaurant: Restaurant, policy: BookingPolicy) -> int:
    return restaurant.large_group_threshold or policy.large_group_threshold


async def _has_conflict(
    store: Store,
    table_ids: tuple[str, ...],
    day: date,
    start: datetime,
    end: datetime,
    ignore_id: str | None = None,
) -> bool:
    booked = await store.get_bookings_for_tables_on_date(table_ids, day)
    return any(b.id != ignore_id and overlaps(b.start, b.end, start, end) for b in booked)


def _placeholder_start(restaurant: Restaurant, day: date, window_start: str | None) -> datetime:
    if window_start is not None:
        return to_zoned(day, window_start, restaurant.timezone)
    if restaurant.windows:
        return to_zoned(day, restaurant.windows[0].start, restaurant.timezone)
    return local_midnight(day, restaurant.timezone)


async def _enqueue_pending(
    store: Store,
    restaurant: Restaurant,
    *,
    sector_id: str,
    party_size: int,
    day: date,
    duration_minutes: int,
    window_start: str | None,
    window_end: str | None,
    idempotency_key: str | None,
    policy: BookingPolicy,
) -> Booking:
    """No table fits: queue the request and hand back a PENDING placeholder with no tables."""
    suffix = _new_suffix()
    entry = await add_to_waitlist(
        store,
        restaurant_id=restaurant.id,
        sector_id=sector_id,
        party_size=party_size,
        duration_minutes=duration_minutes,
        day=day,
        window_start=window_start,
        window_end=window_end,
        booking_id=f"BK_{suffix}",
        ttl_minutes=policy.waitlist_ttl_minutes,
        entry_id=f"WL_{suffix}",
        idempotency_key=idempotency_key,
    )

    start = _placeholder_start(restaurant, day, window_start)
    now = store.now()
    booking = Booking(
        id=entry.booking_id,
        restaurant_id=restaurant.id,
        sector_id=sector_id,
        table_ids=(),
        party_size=party_size,
        start=start,
        end=start + timedelta(minutes=duration_minutes),
        duration_minutes=duration_minutes,
        date=day,
        status=BookingStatus.PENDING,
        created_at=now,
        updated_at=now,
    )
    await store.create_booking(booking)
    if idempotency_key:
        await store.store_idempotent_result(idempotency_key, booking, policy.idempotency_ttl_seconds)
    return booking


async def _commit_candidate(
    store: Store,
    locks: LockManager,
    restaurant: Restaurant,
    candidate: Candidate,
    *,
    sector_id: str,
    party_size: int,
    day: date,
    duration_minutes: int,
    idempotency_key: str | None,
    policy: BookingPolicy,
) -> Booking:
    key = lock_key(restaurant.id, sector_id, candidate.table_ids, candidate.start)
    async with locks.hold(key):
        if idempotency_key:
            existing = await store.get_idempotent_result(idempotency_key)
            if existing is not None:
                return existing

        if await _has_conflict(store, candidate.table_ids, day, candidate.start, candidate.end):
            logger.warning("Lost race for %s; tables already booked", key)
            raise NoCapacity("Slot was taken by a concurrent booking")
        blackouts = await store.get_blackouts_for_tables(candidate.table_ids)
        if has_blackout(blackouts, candidate.start, candidate.end):
            logger.warning("Lost race for %s; tables blacked out", key)
            raise NoCapacity("Tables were blacked out before the booking committed")

        status = (
            BookingStatus.PENDING
            if party_size >= large_group_threshold(restaurant, policy)
            else BookingStatus.CONFIRMED
        )
        now = store.now()
        booking = Booking(
            id=f"BK_{_new_suffix()}",
            restaurant_id=restaurant.id,
            sector_id=sector_id,
            table_ids=candidate.table_ids,
            party_size=party_size,
            start=candidate.start,
            end=candidate.end,
            duration_minutes=duration_minutes,
            date=day,
            status=status,
            created_at=now,
            updated_at=now,
        )
        await store.create_booking(booking)
        if idempotency_key:
            await store.store_idempotent_result(idempotency_key, booking, policy.idempotency_ttl_seconds)
        return booking


async def create_booking(
    store: Store,
    locks: LockManager,
    *,
    restaurant_id: str,
    sector_id: str,
    party_size: int,
    day: str | date,
    duration_minutes: int | None = None,
    window_start: str | None = None,
    window_end: str | None = None,
    idempotency_key: str | None = None,
    allow_waitlist: bool = True,
    policy: BookingPolicy | None = None,
) -> Booking:
    """Seat a party on the best candidate, or waitlist it with a PENDING placeholder."""
    policy = policy or BookingPolicy.from_settings()
    day, duration = validate_request(
        restaurant_id=restaurant_id,
        sector_id=sector_id,
        party_size=party_size,
        day=day,
        duration_minutes=duration_minutes,
        window_start=window_start,
        window_end=window_end,
        slot_minutes=policy.slot_minutes,
        duration_rules=policy.duration_rules,
    )

    if idempotency_key:
        existing = await store.get_idempotent_result(idempotency_key)
        if existing is not None:
            logger.info("Idempotency key %s replayed booking %s", idempotency_key, existing.id)
            return existing

    restaurant, _ = await resolve_venue(store, restaurant_id, sector_id)
    ensure_window_within_service(restaurant, day, window_start, window_end)

    candidate = await select_best_candidate(
        store,
        restaurant,
        sector_id,
        day,
        party_size,
        duration,
        window_start,
        window_end,
        slot_minutes=policy.slot_minutes,
    )

    if candidate is None:
        if not allow_waitlist:
            raise NoCapacity()
        booking = await _enqueue_pending(
            store,
            restaurant,
            sector_id=sector_id,
            party_size=party_size,
            day=day,
            duration_minutes=duration,
            window_start=window_start,
            window_end=window_end,
            idempotency_key=idempotency_key,
            policy=policy,
        )
        logger.info("No capacity in sector %s on %s; issued pending booking %s", sector_id, day, booking.id)
        return booking

    booking = await _commit_candidate(
        store,
        locks,
        restaurant,
        candidate,
        sector_id=sector_id,
        party_size=party_size,
        day=day,
        duration_minutes=duration,
        idempotency_key=idempotency_key,
        policy=policy,
    )
    logger.info(
        "Booking %s %s on %s [%s, %s) for party of %d",
        booking.id,
        booking.status.value,
        ",".join(booking.table_ids),
        booking.start.isoformat(),
        booking.end.isoformat(),
        party_size,
    )
    return booking


async def _get_pending(store: Store, booking_id: str) -> Booking:
    booking = await store.get_booking(booking_id)
    if booking is None:
        raise NotFound("Booking not found")
    if booking.status is not BookingStatus.PENDING:
        raise InvalidInput("Booking is not pending approval")
    return booking


async def approve_booking(store: Store, locks: LockManager, booking_id: str) -> Booking:
    """PENDING -> CONFIRMED, re-checking the tables under the booking's own lock key."""
    booking = await _get_pending(store, booking_id)
    if not booking.table_ids:
        raise InvalidInput("Waitlisted booking has no tables assigned yet")

    key = lock_key(booking.restaurant_id, booking.sector_id, booking.table_ids, booking.start)
    async with locks.hold(key):
        if await _has_conflict(store, booking.table_ids, booking.date, booking.start, booking.end, booking.id):
            raise NoCapacity("Tables were booked while approval was pending")
        updated = await store.update_booking_status(booking.id, BookingStatus.CONFIRMED)
    if updated is None:
        raise NotFound("Booking not found")
    logger.info("Booking %s approved", booking.id)
    return updated


async def reject_booking(store: Store, booking_id: str) -> Booking:
    booking = await _get_pending(store, booking_id)
    await store.delete_booking(booking.id)
    await withdraw_placeholder(store, booking)
    logger.info("Booking %s rejected", booking.id)
    return booking


async def list_bookings_for_day(store: Store, restaurant_id: str, sector_id: str, day: str | date) -> list[Booking]:
    require_id(restaurant_id, "restaurantId")
    require_id(sector_id, "sectorId")
    parsed = parse_day(day)
    await resolve_venue(store, restaurant_id, sector_id)
    return await store.get_bookings_for_sector_on_date(sector_id, parsed)
