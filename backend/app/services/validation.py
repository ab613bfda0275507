from __future__ import annotations

import re
from datetime import date

from backend.app.core.errors import InvalidInput, NotFound, OutsideServiceWindow
from backend.app.db.models import Restaurant, Sector
from backend.app.db.store import Store
from backend.app.services.durations import duration_for_party
from backend.app.services.intervals import service_bounds, to_zoned

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
HHMM_PATTERN = re.compile(r"^\d{2}:\d{2}$")


def parse_day(value: str | date) -> date:
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise InvalidInput("date must be YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidInput(f"Invalid date {value!r}") from exc


def require_id(value: str | None, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{name} is required")
    return value


def validate_request(
    *,
    restaurant_id: str,
    sector_id: str,
    party_size: int,
    day: str | date,
    duration_minutes: int | None,
    window_start: str | None,
    window_end: str | None,
    slot_minutes: int,
    duration_rules: tuple[tuple[int, int], ...],
) -> tuple[date, int]:
    """Shape checks shared by discovery and booking; returns (service date, duration)."""
    require_id(restaurant_id, "restaurantId")
    require_id(sector_id, "sectorId")

    if isinstance(party_size, bool) or not isinstance(party_size, int) or party_size <= 0:
        raise InvalidInput("partySize must be a positive integer")

    if duration_minutes is None:
        duration_minutes = duration_for_party(party_size, duration_rules, slot_minutes)
    if (
        isinstance(duration_minutes, bool)
        or not isinstance(duration_minutes, int)
        or duration_minutes <= 0
        or duration_minutes % slot_minutes
    ):
        raise InvalidInput(f"duration must be a positive multiple of {slot_minutes} minutes")

    parsed_day = parse_day(day)

    for label, value in (("windowStart", window_start), ("windowEnd", window_end)):
        if value is not None and (not isinstance(value, str) or not HHMM_PATTERN.match(value)):
            raise InvalidInput(f"{label} must be HH:MM")
    if (window_start is None) != (window_end is None):
        raise InvalidInput("windowStart and windowEnd must be given together")
    if window_start is not None and window_start >= window_end:
        raise InvalidInput("windowStart must be before windowEnd")

    return parsed_day, duration_minutes


async def resolve_venue(store: Store, restaurant_id: str, sector_id: str) -> tuple[Restaurant, Sector]:
    restaurant = await store.get_restaurant(restaurant_id)
    if restaurant is None:
        raise NotFound("Restaurant not found")
    sector = await store.get_sector(sector_id)
    if sector is None or sector.restaurant_id != restaurant_id:
        raise NotFound("Sector not found for restaurant")
    return restaurant, sector


def ensure_window_intersects_service(
    restaurant: Restaurant, day: date, window_start: str | None, window_end: str | None
) -> None:
    if window_start is None or window_end is None or not restaurant.windows:
        return
    start = to_zoned(day, window_start, restaurant.timezone)
    end = to_zoned(day, window_end, restaurant.timezone)
    bounds = service_bounds(day, restaurant.windows, restaurant.timezone)
    if not any(start < win_end and end > win_start for win_start, win_end in bounds):
        raise OutsideServiceWindow()


def ensure_window_within_service(
    restaurant: Restaurant, day: date, window_start: str | None, window_end: str | None
) -> None:
    if window_start is None or window_end is None or not restaurant.windows:
        return
    start = to_zoned(day, window_start, restaurant.timezone)
    end = to_zoned(day, window_end, restaurant.timezone)
    bounds = service_bounds(day, restaurant.windows, restaurant.timezone)
    if not any(start >= win_start and end <= win_end for win_start, win_end in bounds):
        raise OutsideServiceWindow("Requested window is not inside a service window")
