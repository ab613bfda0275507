"""
WokiBrain: candidate discovery and ranking for a party in a sector.

Ranking is a total order on (kind, start, waste, sorted table ids): single tables
before combos, then earliest start, then the smallest spare capacity, then table
ids as a final deterministic tiebreak. The numeric ``score`` is display-only and
never feeds the ordering.
"""
from __future__ import annotations

import logging
from datetime import date, datetime

from backend.app.core.errors import InvalidInput
from backend.app.db.models import Candidate, CandidateKind, Gap, Restaurant, Table
from backend.app.db.store import Store
from backend.app.services.combinations import combo_capacity, generate_combinations
from backend.app.services.intervals import (
    fit_gaps_to_duration,
    find_table_gaps,
    intersect_all,
    service_bounds,
    to_zoned,
)

logger = logging.getLogger(__name__)

COMBO_BASE_SCORE = 1000
WASTE_WEIGHT = 10
TIME_SCORE_MODULUS = 10_000


def score_candidate(kind: CandidateKind, start: datetime, waste: int) -> int:
    base = 0 if kind is CandidateKind.SINGLE else COMBO_BASE_SCORE
    return base + WASTE_WEIGHT * waste + int(start.timestamp()) % TIME_SCORE_MODULUS


def rationale_for(kind: CandidateKind, table_count: int, min_capacity: int, max_capacity: int, waste: int) -> str:
    reasons = ["single table" if kind is CandidateKind.SINGLE else f"{table_count}-table combo"]
    reasons.append(f"capacity: {min_capacity}-{max_capacity}")
    if waste == 0:
        reasons.append("perfect fit")
    else:
        reasons.append(f"{waste} seat{'s' if waste > 1 else ''} spare")
    return ", ".join(reasons)


def ranking_key(candidate: Candidate, party_size: int) -> tuple:
    return (
        0 if candidate.kind is CandidateKind.SINGLE else 1,
        candidate.start,
        candidate.max_capacity - party_size,
        tuple(sorted(candidate.table_ids)),
    )


def _build(
    kind: CandidateKind,
    tables: tuple[Table, ...],
    slot: Gap,
    min_capacity: int,
    max_capacity: int,
    party_size: int,
) -> Candidate:
    waste = max_capacity - party_size
    return Candidate(
        kind=kind,
        table_ids=tuple(table.id for table in tables),
        start=slot.start,
        end=slot.end,
        min_capacity=min_capacity,
        max_capacity=max_capacity,
        score=score_candidate(kind, slot.start, waste),
        rationale=rationale_for(kind, len(tables), min_capacity, max_capacity, waste),
    )


async def find_candidates(
    store: Store,
    restaurant: Restaurant,
    sector_id: str,
    day: date,
    party_size: int,
    duration_minutes: int,
    window_start: str | None = None,
    window_end: str | None = None,
    limit: int = 10,
    slot_minutes: int = 15,
) -> list[Candidate]:
    """Ranked seating candidates; an empty list means nothing fits."""
    if duration_minutes <= 0 or duration_minutes % slot_minutes:
        raise InvalidInput(f"Duration must be a positive multiple of {slot_minutes} minutes")

    tz_name = restaurant.timezone
    bounds = service_bounds(day, restaurant.windows, tz_name)

    requested: tuple[datetime, datetime] | None = None
    if window_start and window_end:
        requested = (to_zoned(day, window_start, tz_name), to_zoned(day, window_end, tz_name))
        bounds = [(start, end) for start, end in bounds if requested[0] < end and requested[1] > start]
        if not bounds:
            return []

    tables = await store.get_tables_in_sector(sector_id)
    if not tables:
        return []

    table_ids = [table.id for table in tables]
    bookings = await store.get_bookings_for_tables_on_date(table_ids, day)
    blackouts = await store.get_blackouts_for_tables(table_ids)

    gaps_by_table = {
        table.id: find_table_gaps(
            (b for b in bookings if table.id in b.table_ids),
            (b for b in blackouts if b.table_id == table.id),
            bounds,
        )
        for table in tables
    }

    def usable_slots(gaps: list[Gap]) -> list[Gap]:
        slots = fit_gaps_to_duration(gaps, duration_minutes, tz_name, slot_minutes)
        if requested is None:
            return slots
        return [slot for slot in slots if slot.start >= requested[0] and slot.end <= requested[1]]

    candidates: list[Candidate] = []

    for table in tables:
        if not table.fits(party_size):
            continue
        for slot in usable_slots(gaps_by_table[table.id]):
            candidates.append(
                _build(CandidateKind.SINGLE, (table,), slot, table.min_size, table.max_size, party_size)
            )

    combos = generate_combinations(tables, 2, party_size=party_size, min_capacity_of=lambda t: t.min_size)
    for combo in combos:
        min_capacity, max_capacity = combo_capacity(combo)
        if not min_capacity <= party_size <= max_capacity:
            continue
        shared = intersect_all([gaps_by_table[table.id] for table in combo])
        for slot in usable_slots(shared):
            candidates.append(_build(CandidateKind.COMBO, combo, slot, min_capacity, max_capacity, party_size))

    candidates.sort(key=lambda candidate: ranking_key(candidate, party_size))
    logger.debug(
        "Sector %s on %s: %d candidate(s) for party of %d (%d min)",
        sector_id,
        day,
        len(candidates),
        party_size,
        duration_minutes,
    )
    return candidates[:limit]


async def select_best_candidate(
    store: Store,
    restaurant: Restaurant,
    sector_id: str,
    day: date,
    party_size: int,
    duration_minutes: int,
    window_start: str | None = None,
    window_end: str | None = None,
    slot_minutes: int = 15,
) -> Candidate | None:
    candidates = await find_candidates(
        store,
        restaurant,
        sector_id,
        day,
        party_size,
        duration_minutes,
        window_start,
        window_end,
        limit=1,
        slot_minutes=slot_minutes,
    )
    return candidates[0] if candidates else None
