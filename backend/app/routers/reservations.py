from fastapi import APIRouter, Depends, Header, Query, Response, status

from backend.app.core.locks import LockManager
from backend.app.db.session import get_locks, get_store
from backend.app.db.store import Store
from backend.app.routers.schemas import (
    DATE_PATTERN,
    BookingDayItem,
    BookingDayOut,
    BookingOut,
    CreateBookingIn,
)
from backend.app.services.replay import cancel_booking
from backend.app.services.reservations import (
    approve_booking,
    create_booking,
    list_bookings_for_day,
    reject_booking,
)
from backend.app.services.validation import parse_day


router = APIRouter()


@router.post("/woki/bookings", response_model=BookingOut, status_code=status.HTTP_201_CREATED)
async def create_booking_endpoint(
    payload: CreateBookingIn,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    store: Store = Depends(get_store),
    locks: LockManager = Depends(get_locks),
) -> BookingOut:
    booking = await create_booking(
        store,
        locks,
        restaurant_id=payload.restaurant_id,
        sector_id=payload.sector_id,
        party_size=payload.party_size,
        day=payload.date,
        duration_minutes=payload.duration_minutes,
        window_start=payload.window_start,
        window_end=payload.window_end,
        idempotency_key=idempotency_key,
    )
    return BookingOut.from_domain(booking)


@router.get("/woki/bookings/day", response_model=BookingDayOut)
async def list_day_endpoint(
    restaurant_id: str = Query(alias="restaurantId", min_length=1),
    sector_id: str = Query(alias="sectorId", min_length=1),
    date: str = Query(pattern=DATE_PATTERN),
    store: Store = Depends(get_store),
) -> BookingDayOut:
    bookings = await list_bookings_for_day(store, restaurant_id, sector_id, date)
    return BookingDayOut(
        date=parse_day(date),
        items=[
            BookingDayItem(
                id=b.id,
                table_ids=list(b.table_ids),
                party_size=b.party_size,
                start=b.start,
                end=b.end,
                status=b.status,
            )
            for b in bookings
        ],
    )


@router.delete("/woki/bookings/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_booking_endpoint(
    booking_id: str,
    store: Store = Depends(get_store),
    locks: LockManager = Depends(get_locks),
) -> Response:
    await cancel_booking(store, locks, booking_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/woki/bookings/{booking_id}/approve", response_model=BookingOut)
async def approve_booking_endpoint(
    booking_id: str,
    store: Store = Depends(get_store),
    locks: LockManager = Depends(get_locks),
) -> BookingOut:
    booking = await approve_booking(store, locks, booking_id)
    return BookingOut.from_domain(booking)


@router.post("/woki/bookings/{booking_id}/reject", status_code=status.HTTP_204_NO_CONTENT)
async def reject_booking_endpoint(booking_id: str, store: Store = Depends(get_store)) -> Response:
    await reject_booking(store, booking_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
