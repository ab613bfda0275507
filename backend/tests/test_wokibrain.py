from datetime import timedelta

import pytest

from backend.app.core.errors import InvalidInput, NotFound, OutsideServiceWindow
from backend.app.db.models import Blackout, CandidateKind, Restaurant, Sector, ServiceWindow, Table
from backend.app.db.store import InMemoryStore
from backend.app.services.availability import discover
from backend.app.services.intervals import zone
from backend.app.services.wokibrain import find_candidates, rationale_for, select_best_candidate

from conftest import DAY, RESTAURANT, TZ, local, make_booking


pytestmark = pytest.mark.asyncio

EVENING = Restaurant(id="R1", name="Evening Only", timezone=TZ, windows=(ServiceWindow("20:00", "23:45"),))


def evening_store(tables: list[Table], bookings=()) -> InMemoryStore:
    store = InMemoryStore()
    store.seed(
        restaurant=EVENING,
        sectors=[Sector(id="S1", restaurant_id="R1", name="Main Hall")],
        tables=tables,
        bookings=bookings,
    )
    return store


async def test_single_table_happy_path():
    store = evening_store([Table(id="T4", sector_id="S1", name="Table 4", min_size=4, max_size=6)])
    candidates = await find_candidates(store, EVENING, "S1", DAY, 5, 90, "20:00", "23:45")

    assert candidates
    top = candidates[0]
    assert top.kind is CandidateKind.SINGLE
    assert top.table_ids == ("T4",)
    assert top.start == local("20:00")
    assert top.end == local("21:30")
    assert top.rationale == "single table, capacity: 4-6, 1 seat spare"


async def test_combo_fallback_when_single_is_fully_booked():
    store = evening_store(
        [
            Table(id="T2", sector_id="S1", name="Table 2", min_size=2, max_size=4),
            Table(id="T3", sector_id="S1", name="Table 3", min_size=2, max_size=4),
            Table(id="T4", sector_id="S1", name="Table 4", min_size=4, max_size=6),
        ],
        bookings=[make_booking("BX", ("T4",), "20:00", "23:45", party_size=6)],
    )
    candidates = await find_candidates(store, EVENING, "S1", DAY, 5, 90, "20:00", "23:45")

    assert candidates
    combo = next(c for c in candidates if c.kind is CandidateKind.COMBO)
    assert combo.table_ids == ("T2", "T3")
    assert (combo.min_capacity, combo.max_capacity) == (4, 8)
    assert combo.start == local("20:00")
    assert combo.rationale == "2-table combo, capacity: 4-8, 3 seats spare"


async def test_singles_rank_before_combos_then_earliest_then_waste(store):
    candidates = await find_candidates(store, RESTAURANT, "S1", DAY, 4, 90, "20:00", "23:45", limit=200)

    kinds = [c.kind for c in candidates]
    first_combo = kinds.index(CandidateKind.COMBO)
    assert all(kind is CandidateKind.SINGLE for kind in kinds[:first_combo])
    assert all(kind is CandidateKind.COMBO for kind in kinds[first_combo:])

    # 20:00 singles: T3 [2,4] wastes nothing, T4 [4,6] wastes 2 (T2 is booked at 20:30)
    assert [c.table_ids for c in candidates[:2]] == [("T3",), ("T4",)]
    singles = candidates[:first_combo]
    assert [c.start for c in singles] == sorted(c.start for c in singles)


async def test_candidates_are_grid_aligned(store):
    tz = zone(TZ)
    candidates = await find_candidates(store, RESTAURANT, "S1", DAY, 2, 75, limit=500)
    assert candidates
    for candidate in candidates:
        assert candidate.start.astimezone(tz).minute % 15 == 0
        assert candidate.end.astimezone(tz).minute % 15 == 0
        assert candidate.end - candidate.start == timedelta(minutes=75)


async def test_results_are_deterministic(store):
    first = await find_candidates(store, RESTAURANT, "S1", DAY, 5, 90, "20:00", "23:45", limit=50)
    second = await find_candidates(store, RESTAURANT, "S1", DAY, 5, 90, "20:00", "23:45", limit=50)
    assert first == second


async def test_requested_window_clips_candidates(store):
    candidates = await find_candidates(store, RESTAURANT, "S1", DAY, 2, 60, "21:00", "22:30", limit=500)
    assert candidates
    assert all(local("21:00") <= c.start and c.end <= local("22:30") for c in candidates)


async def test_window_outside_service_hours_yields_nothing(store):
    assert await find_candidates(store, RESTAURANT, "S1", DAY, 2, 60, "17:00", "19:00") == []


async def test_blacked_out_tables_are_skipped(store):
    for table_id in ("T3", "T4"):
        await store.create_blackout(
            Blackout(id=f"BL_{table_id}", table_id=table_id, start=local("20:00"), end=local("23:45"), reason="private_event")
        )
    candidates = await find_candidates(store, RESTAURANT, "S1", DAY, 4, 90, "20:00", "23:45", limit=500)
    assert candidates
    assert all("T3" not in c.table_ids and "T4" not in c.table_ids for c in candidates)


async def test_score_combines_kind_waste_and_start(store):
    candidates = await find_candidates(store, RESTAURANT, "S1", DAY, 4, 90, "20:00", "23:45", limit=500)
    time_term = int(local("20:00").timestamp()) % 10_000

    t3, t4 = candidates[0], candidates[1]
    assert t3.score == time_term
    assert t4.score == 10 * 2 + time_term

    combo = next(c for c in candidates if c.kind is CandidateKind.COMBO and c.start == local("20:00"))
    assert combo.score == 1000 + 10 * (combo.max_capacity - 4) + time_term


async def test_select_best_candidate_returns_top(store):
    best = await select_best_candidate(store, RESTAURANT, "S1", DAY, 5, 90, "20:00", "23:45")
    assert best is not None
    assert best.table_ids == ("T4",)


async def test_empty_sector_yields_nothing(store):
    store.sectors["S9"] = Sector(id="S9", restaurant_id="R1", name="Patio")
    assert await find_candidates(store, RESTAURANT, "S9", DAY, 2, 60) == []


async def test_duration_must_follow_grid(store):
    with pytest.raises(InvalidInput):
        await find_candidates(store, RESTAURANT, "S1", DAY, 2, 50)


async def test_rationale_perfect_fit():
    assert rationale_for(CandidateKind.SINGLE, 1, 2, 2, 0) == "single table, capacity: 2-2, perfect fit"


async def test_discover_defaults_duration_from_party_size(store):
    duration, candidates = await discover(store, restaurant_id="R1", sector_id="S1", day="2025-10-22", party_size=3)
    assert duration == 90
    assert candidates


async def test_discover_rejects_window_outside_service(store):
    with pytest.raises(OutsideServiceWindow):
        await discover(
            store,
            restaurant_id="R1",
            sector_id="S1",
            day="2025-10-22",
            party_size=2,
            window_start="17:00",
            window_end="19:00",
        )


async def test_discover_unknown_sector(store):
    with pytest.raises(NotFound):
        await discover(store, restaurant_id="R1", sector_id="nope", day="2025-10-22", party_size=2)
