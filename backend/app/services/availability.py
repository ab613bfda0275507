from __future__ import annotations

from datetime import date

from backend.app.core.config import BookingPolicy
from backend.app.core.errors import InvalidInput
from backend.app.db.models import Candidate
from backend.app.db.store import Store
from backend.app.services.validation import ensure_window_intersects_service, resolve_venue, validate_request
from backend.app.services.wokibrain import find_candidates


async def discover(
    store: Store,
    *,
    restaurant_id: str,
    sector_id: str,
    day: str | date,
    party_size: int,
    duration_minutes: int | None = None,
    window_start: str | None = None,
    window_end: str | None = None,
    limit: int | None = None,
    policy: BookingPolicy | None = None,
) -> tuple[int, list[Candidate]]:
    """Ranked candidates for a party; returns the effective duration alongside them."""
    policy = policy or BookingPolicy.from_settings()
    service_day, duration = validate_request(
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
    if limit is not None and limit <= 0:
        raise InvalidInput("limit must be positive")

    restaurant, _ = await resolve_venue(store, restaurant_id, sector_id)
    ensure_window_intersects_service(restaurant, service_day, window_start, window_end)

    candidates = await find_candidates(
        store,
        restaurant,
        sector_id,
        service_day,
        party_size,
        duration,
        window_start,
        window_end,
        limit=limit or policy.result_limit,
        slot_minutes=policy.slot_minutes,
    )
    return duration, candidates
