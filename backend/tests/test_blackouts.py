from datetime import date, datetime

import pytest

from backend.app.core.errors import InvalidInput, NotFound
from backend.app.services.blackouts import create_blackout, delete_blackout, list_blackouts

from conftest import DAY


pytestmark = pytest.mark.asyncio

NEXT_DAY = date(2025, 10, 23)


async def block(store, start: str, end: str, table_id: str = "T4"):
    return await create_blackout(
        store,
        table_id=table_id,
        start=datetime.fromisoformat(start),
        end=datetime.fromisoformat(end),
        reason="maintenance",
    )


async def test_late_evening_blackout_belongs_to_local_service_day(store):
    # 22:00-23:30 in Buenos Aires is already the next day in UTC
    late = await block(store, "2025-10-22T22:00:00-03:00", "2025-10-22T23:30:00-03:00")

    assert [b.id for b in await list_blackouts(store, day=DAY)] == [late.id]
    assert await list_blackouts(store, day=NEXT_DAY) == []


async def test_after_midnight_blackout_belongs_to_next_local_day(store):
    small_hours = await block(store, "2025-10-23T01:00:00-03:00", "2025-10-23T02:00:00-03:00")

    assert await list_blackouts(store, day=DAY) == []
    assert [b.id for b in await list_blackouts(store, day=NEXT_DAY)] == [small_hours.id]


async def test_blackout_ending_at_local_midnight_stays_on_its_day(store):
    await block(store, "2025-10-22T23:00:00-03:00", "2025-10-23T00:00:00-03:00")
    assert await list_blackouts(store, day=NEXT_DAY) == []
    assert len(await list_blackouts(store, day=DAY)) == 1


async def test_list_filters_by_table_and_sorts_by_start(store):
    later = await block(store, "2025-10-22T21:00:00-03:00", "2025-10-22T22:00:00-03:00", table_id="T3")
    earlier = await block(store, "2025-10-22T20:00:00-03:00", "2025-10-22T21:00:00-03:00", table_id="T3")
    await block(store, "2025-10-22T20:00:00-03:00", "2025-10-22T21:00:00-03:00", table_id="T4")

    rows = await list_blackouts(store, table_id="T3", day=DAY)
    assert [b.id for b in rows] == [earlier.id, later.id]


async def test_blackout_validation(store):
    with pytest.raises(InvalidInput):
        await create_blackout(
            store, table_id="T4", start=datetime(2025, 10, 22, 20), end=datetime(2025, 10, 22, 21), reason="x"
        )
    with pytest.raises(InvalidInput):
        await block(store, "2025-10-22T21:00:00-03:00", "2025-10-22T20:00:00-03:00")
    with pytest.raises(NotFound):
        await block(store, "2025-10-22T20:00:00-03:00", "2025-10-22T21:00:00-03:00", table_id="T99")


async def test_delete_unknown_blackout(store):
    with pytest.raises(NotFound):
        await delete_blackout(store, "BL_MISSING")
