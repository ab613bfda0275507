import pytest

from backend.app.core.errors import NotFound
from backend.app.db.models import BookingStatus, Sector, Table
from backend.app.services.replay import cancel_booking, replay_waitlist
from backend.app.services.reservations import create_booking, reject_booking
from backend.app.services.waitlist import list_waitlist, purge_expired_waitlist, remove_waitlist_entry

from conftest import DAY, local, make_booking


pytestmark = pytest.mark.asyncio


def terrace_request(**overrides):
    payload = {
        "restaurant_id": "R1",
        "sector_id": "S2",
        "party_size": 2,
        "day": "2025-10-22",
        "duration_minutes": 90,
        "window_start": "20:00",
        "window_end": "23:45",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def terrace(store):
    """A one-table sector that is fully booked for the evening."""
    store.sectors["S2"] = Sector(id="S2", restaurant_id="R1", name="Terrace")
    store.tables["T9"] = Table(id="T9", sector_id="S2", name="Table 9", min_size=2, max_size=4)
    store.bookings["FULL"] = make_booking("FULL", ("T9",), "20:00", "23:45", sector_id="S2", party_size=4)
    return store


async def test_full_sector_waitlists_with_pending_placeholder(terrace, locks):
    placeholder = await create_booking(terrace, locks, **terrace_request())

    assert placeholder.status is BookingStatus.PENDING
    assert placeholder.table_ids == ()
    entries = await list_waitlist(terrace, "S2", DAY)
    assert len(entries) == 1
    assert entries[0].booking_id == placeholder.id
    assert entries[0].id.startswith("WL_")
    assert entries[0].id[3:] == placeholder.id[3:]
    assert entries[0].window_start == "20:00"


async def test_cancellation_promotes_oldest_entry_only(terrace, locks):
    first = await create_booking(terrace, locks, **terrace_request())
    second = await create_booking(terrace, locks, **terrace_request())

    promoted = await cancel_booking(terrace, locks, "FULL")

    assert [entry.booking_id for entry in promoted] == [first.id]
    assert await terrace.get_booking(first.id) is None
    remaining = await list_waitlist(terrace, "S2", DAY)
    assert [entry.booking_id for entry in remaining] == [second.id]

    seated = await terrace.get_bookings_for_tables_on_date(["T9"], DAY)
    assert len(seated) == 1
    assert seated[0].status is BookingStatus.CONFIRMED
    assert seated[0].start == local("20:00")


async def test_replay_skips_entries_that_still_do_not_fit(terrace, locks):
    too_big = await create_booking(terrace, locks, **terrace_request(party_size=6))
    fits = await create_booking(terrace, locks, **terrace_request(party_size=3))

    promoted = await cancel_booking(terrace, locks, "FULL")

    assert [entry.booking_id for entry in promoted] == [fits.id]
    remaining = await list_waitlist(terrace, "S2", DAY)
    assert [entry.booking_id for entry in remaining] == [too_big.id]
    assert (await terrace.get_booking(too_big.id)).status is BookingStatus.PENDING


async def test_replay_with_nothing_freed_keeps_queue(terrace, locks):
    await create_booking(terrace, locks, **terrace_request())
    assert await replay_waitlist(terrace, locks, "S2", DAY) == []
    assert len(await list_waitlist(terrace, "S2", DAY)) == 1


async def test_expired_entries_are_hidden_and_dropped_on_replay(terrace, locks, clock):
    await create_booking(terrace, locks, **terrace_request())
    clock.advance(minutes=61)

    assert await list_waitlist(terrace, "S2", DAY) == []
    assert await cancel_booking(terrace, locks, "FULL") == []
    assert terrace.waitlist == {}


async def test_purge_counts_expired_entries(terrace, locks, clock):
    await create_booking(terrace, locks, **terrace_request())
    await create_booking(terrace, locks, **terrace_request())
    assert await purge_expired_waitlist(terrace) == 0

    clock.advance(hours=1)
    assert await purge_expired_waitlist(terrace) == 2
    assert terrace.waitlist == {}


async def test_remove_entry(terrace, locks):
    await create_booking(terrace, locks, **terrace_request())
    (entry,) = await list_waitlist(terrace, "S2", DAY)

    removed = await remove_waitlist_entry(terrace, entry.id)
    assert removed.id == entry.id
    with pytest.raises(NotFound):
        await remove_waitlist_entry(terrace, entry.id)


async def test_cancel_unknown_booking(store, locks):
    with pytest.raises(NotFound):
        await cancel_booking(store, locks, "BK_NOPE")


async def test_cancelled_placeholder_is_never_promoted(terrace, locks):
    placeholder = await create_booking(terrace, locks, **terrace_request())

    assert await cancel_booking(terrace, locks, placeholder.id) == []
    assert await list_waitlist(terrace, "S2", DAY) == []

    assert await cancel_booking(terrace, locks, "FULL") == []
    assert await terrace.get_bookings_for_tables_on_date(["T9"], DAY) == []


async def test_rejected_placeholder_is_never_promoted(terrace, locks):
    placeholder = await create_booking(terrace, locks, **terrace_request())

    await reject_booking(terrace, placeholder.id)
    assert await list_waitlist(terrace, "S2", DAY) == []

    assert await cancel_booking(terrace, locks, "FULL") == []
    assert await terrace.get_bookings_for_tables_on_date(["T9"], DAY) == []


async def test_retry_after_promotion_returns_promoted_booking(terrace, locks):
    placeholder = await create_booking(terrace, locks, **terrace_request(), idempotency_key="k")
    assert placeholder.status is BookingStatus.PENDING

    await cancel_booking(terrace, locks, "FULL")
    (seated,) = await terrace.get_bookings_for_tables_on_date(["T9"], DAY)

    retry = await create_booking(terrace, locks, **terrace_request(), idempotency_key="k")
    assert retry.id == seated.id
    assert retry.status is BookingStatus.CONFIRMED
    assert await terrace.get_booking(retry.id) == retry
    assert len(await terrace.get_bookings_for_tables_on_date(["T9"], DAY)) == 1
