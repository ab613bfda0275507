"""Per-table unavailability (maintenance, private events) independent of bookings."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

from backend.app.core.errors import InvalidInput, NotFound
from backend.app.db.models import Blackout
from backend.app.db.store import Store
from backend.app.services.intervals import local_midnight, overlaps

logger = logging.getLogger(__name__)


def has_blackout(blackouts: Iterable[Blackout], start: datetime, end: datetime) -> bool:
    return any(overlaps(b.start, b.end, start, end) for b in blackouts)


async def create_blackout(store: Store, *, table_id: str, start: datetime, end: datetime, reason: str) -> Blackout:
    if start.tzinfo is None or end.tzinfo is None:
        raise InvalidInput("Blackout start and end must include timezone information")
    if start > end:
        raise InvalidInput("Blackout start must not be after its end")
    if not reason or not reason.strip():
        raise InvalidInput("Blackout reason is required")
    if await store.get_table(table_id) is None:
        raise NotFound("Table not found")

    now = store.now()
    blackout = Blackout(
        id=f"BL_{uuid4().hex[:16].upper()}",
        table_id=table_id,
        start=start.astimezone(timezone.utc),
        end=end.astimezone(timezone.utc),
        reason=reason,
        created_at=now,
        updated_at=now,
    )
    await store.create_blackout(blackout)
    logger.info("Blackout %s on table %s [%s, %s): %s", blackout.id, table_id, blackout.start, blackout.end, reason)
    return blackout


async def _venue_timezone(store: Store, table_id: str) -> str:
    table = await store.get_table(table_id)
    sector = await store.get_sector(table.sector_id) if table else None
    restaurant = await store.get_restaurant(sector.restaurant_id) if sector else None
    if restaurant is None:
        raise NotFound(f"No venue found for table {table_id}")
    return restaurant.timezone


def _touches_day(blackout: Blackout, day: date, tz_name: str) -> bool:
    # local service day [00:00, next 00:00) in the venue timezone
    day_start = local_midnight(day, tz_name)
    day_end = local_midnight(day + timedelta(days=1), tz_name)
    if blackout.start == blackout.end:
        return day_start <= blackout.start < day_end
    return overlaps(blackout.start, blackout.end, day_start, day_end)


async def list_blackouts(store: Store, table_id: str | None = None, day: date | None = None) -> list[Blackout]:
    if table_id:
        blackouts = await store.get_blackouts_for_tables([table_id])
    else:
        blackouts = await store.list_blackouts()
    if day is not None:
        zones: dict[str, str] = {}
        kept = []
        for b in blackouts:
            if b.table_id not in zones:
                zones[b.table_id] = await _venue_timezone(store, b.table_id)
            if _touches_day(b, day, zones[b.table_id]):
                kept.append(b)
        blackouts = kept
    return sorted(blackouts, key=lambda b: (b.start, b.id))


async def delete_blackout(store: Store, blackout_id: str) -> Blackout:
    blackout = await store.delete_blackout(blackout_id)
    if blackout is None:
        raise NotFound("Blackout not found")
    logger.info("Blackout %s removed", blackout_id)
    return blackout
