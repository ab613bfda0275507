"""
Interval arithmetic for seating availability.

All intervals are half-open ``[start, end)`` over timezone-aware instants. Two
intervals ``[a, b)`` and ``[c, d)`` overlap iff ``a < d and b > c``, so a booking
ending at T and another starting at T never conflict, and an empty interval
(``start == end``) neither overlaps nor blocks anything.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from backend.app.core.errors import InvalidInput
from backend.app.db.models import Blackout, Booking, Gap, ServiceWindow


@lru_cache(maxsize=64)
def zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidInput(f"Unknown timezone {name!r}") from exc


def parse_hhmm(value: str) -> time:
    try:
        hours, minutes = value.split(":")
        if len(hours) != 2 or len(minutes) != 2:
            raise ValueError(value)
        return time(int(hours), int(minutes))
    except ValueError as exc:
        raise InvalidInput(f"Expected HH:MM, got {value!r}") from exc


def to_zoned(day: date, hhmm: str, tz_name: str) -> datetime:
    """Anchor a local wall-clock time on ``day`` in ``tz_name``; returns a UTC instant."""
    local = datetime.combine(day, parse_hhmm(hhmm), tzinfo=zone(tz_name))
    return local.astimezone(timezone.utc)


def local_midnight(day: date, tz_name: str) -> datetime:
    return datetime.combine(day, time(0, 0), tzinfo=zone(tz_name)).astimezone(timezone.utc)


def service_bounds(day: date, windows: Sequence[ServiceWindow], tz_name: str) -> list[tuple[datetime, datetime]]:
    """UTC bounds of each service window on ``day``; the whole local day when none are configured."""
    if not windows:
        start = local_midnight(day, tz_name)
        end = local_midnight(day + timedelta(days=1), tz_name)
        return [(start, end)]
    return [(to_zoned(day, window.start, tz_name), to_zoned(day, window.end, tz_name)) for window in windows]


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    if a_start >= a_end or b_start >= b_end:
        return False
    return a_start < b_end and a_end > b_start


def find_gaps_in_window(bookings: Iterable[Booking], window_start: datetime, window_end: datetime) -> list[Gap]:
    """Free sub-intervals of ``[window_start, window_end)`` not covered by ``bookings``."""
    relevant = sorted(
        (b for b in bookings if overlaps(b.start, b.end, window_start, window_end)),
        key=lambda b: b.start,
    )

    gaps: list[Gap] = []
    free_from = window_start
    for booking in relevant:
        if free_from < booking.start:
            gaps.append(Gap(free_from, booking.start))
        # watermark only advances, which absorbs overlapping bookings
        if booking.end > free_from:
            free_from = booking.end

    if free_from < window_end:
        gaps.append(Gap(free_from, window_end))
    return gaps


def subtract_blackouts(gaps: Iterable[Gap], blackouts: Iterable[Blackout]) -> list[Gap]:
    blackouts = [b for b in blackouts if b.start < b.end]
    if not blackouts:
        return list(gaps)

    result: list[Gap] = []
    for gap in gaps:
        hits = sorted(
            (b for b in blackouts if overlaps(b.start, b.end, gap.start, gap.end)),
            key=lambda b: b.start,
        )
        cursor = gap.start
        for blackout in hits:
            if cursor < blackout.start:
                result.append(Gap(cursor, blackout.start))
            cursor = max(cursor, blackout.end)
        if cursor < gap.end:
            result.append(Gap(cursor, gap.end))
    return result


def find_table_gaps(
    bookings: Iterable[Booking],
    blackouts: Iterable[Blackout],
    bounds: Sequence[tuple[datetime, datetime]],
) -> list[Gap]:
    """Disjoint, sorted free time for one table within the given service bounds."""
    bookings = list(bookings)
    gaps: list[Gap] = []
    for window_start, window_end in bounds:
        gaps.extend(find_gaps_in_window(bookings, window_start, window_end))
    gaps.sort()
    return subtract_blackouts(gaps, blackouts)


def intersect_gaps(first: Sequence[Gap], second: Sequence[Gap]) -> list[Gap]:
    """Two-pointer merge of two sorted gap lists; O(n + m)."""
    result: list[Gap] = []
    i = j = 0
    while i < len(first) and j < len(second):
        a, b = first[i], second[j]
        start = max(a.start, b.start)
        end = min(a.end, b.end)
        if start < end:
            result.append(Gap(start, end))
        if a.end < b.end:
            i += 1
        else:
            j += 1
    return result


def intersect_all(gap_lists: Sequence[Sequence[Gap]]) -> list[Gap]:
    if not gap_lists:
        return []
    merged = list(gap_lists[0])
    for gaps in gap_lists[1:]:
        if not merged:
            break
        merged = intersect_gaps(merged, gaps)
    return merged


def round_to_grid(instant: datetime, tz_name: str, slot_minutes: int, *, up: bool) -> datetime:
    """Snap to the venue-local ``slot_minutes`` grid (arithmetic stays in UTC)."""
    local = instant.astimezone(zone(tz_name))
    excess = timedelta(minutes=local.minute % slot_minutes, seconds=local.second, microseconds=local.microsecond)
    if not excess:
        return instant
    floor = instant - excess
    return floor + timedelta(minutes=slot_minutes) if up else floor


def fit_gaps_to_duration(
    gaps: Iterable[Gap],
    duration_minutes: int,
    tz_name: str,
    slot_minutes: int = 15,
) -> list[Gap]:
    """Every grid-aligned ``duration_minutes`` slot that fits inside one of ``gaps``."""
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=slot_minutes)

    slots: list[Gap] = []
    for gap in gaps:
        start = round_to_grid(gap.start, tz_name, slot_minutes, up=True)
        end = round_to_grid(gap.end, tz_name, slot_minutes, up=False)
        while start + duration <= end:
            slots.append(Gap(start, start + duration))
            start += step
    return slots
