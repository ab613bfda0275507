from fastapi import APIRouter, Depends, Query, Response, status

from backend.app.db.session import get_store
from backend.app.db.store import Store
from backend.app.routers.schemas import DATE_PATTERN, WaitlistCleanupOut, WaitlistEntryOut, WaitlistListOut
from backend.app.services.validation import parse_day
from backend.app.services.waitlist import list_waitlist, purge_expired_waitlist, remove_waitlist_entry


router = APIRouter()


@router.get("/woki/waitlist", response_model=WaitlistListOut)
async def list_waitlist_endpoint(
    sector_id: str = Query(alias="sectorId", min_length=1),
    date: str = Query(pattern=DATE_PATTERN),
    store: Store = Depends(get_store),
) -> WaitlistListOut:
    entries = await list_waitlist(store, sector_id, parse_day(date))
    return WaitlistListOut(items=[WaitlistEntryOut.from_domain(entry) for entry in entries])


@router.delete("/woki/waitlist/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_waitlist_endpoint(entry_id: str, store: Store = Depends(get_store)) -> Response:
    await remove_waitlist_entry(store, entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/woki/waitlist/cleanup", response_model=WaitlistCleanupOut)
async def cleanup_waitlist_endpoint(store: Store = Depends(get_store)) -> WaitlistCleanupOut:
    """Purge expired entries; meant to be called periodically."""
    return WaitlistCleanupOut(cleaned=await purge_expired_waitlist(store))
