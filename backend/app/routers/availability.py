from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, Query

from backend.app.core.config import settings
from backend.app.core.errors import NoCapacity
from backend.app.db.session import get_store
from backend.app.db.store import Store
from backend.app.routers.schemas import DATE_PATTERN, HHMM_PATTERN, CandidateOut, DiscoverOut
from backend.app.services.availability import discover

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/woki/discover", response_model=DiscoverOut)
async def discover_endpoint(
    restaurant_id: str = Query(alias="restaurantId", min_length=1),
    sector_id: str = Query(alias="sectorId", min_length=1),
    date: str = Query(pattern=DATE_PATTERN),
    party_size: int = Query(alias="partySize", ge=1),
    duration: int | None = Query(default=None, ge=15),
    window_start: str | None = Query(default=None, alias="windowStart", pattern=HHMM_PATTERN),
    window_end: str | None = Query(default=None, alias="windowEnd", pattern=HHMM_PATTERN),
    limit: int = Query(default=settings.DISCOVER_LIMIT, ge=1, le=settings.DISCOVER_MAX_LIMIT),
    store: Store = Depends(get_store),
) -> DiscoverOut:
    started = time.perf_counter()
    duration_minutes, candidates = await discover(
        store,
        restaurant_id=restaurant_id,
        sector_id=sector_id,
        day=date,
        party_size=party_size,
        duration_minutes=duration,
        window_start=window_start,
        window_end=window_end,
        limit=limit,
    )
    if not candidates:
        raise NoCapacity()

    logger.info(
        "discover sector=%s party=%d duration=%d candidates=%d (%.1fms)",
        sector_id,
        party_size,
        duration_minutes,
        len(candidates),
        (time.perf_counter() - started) * 1000,
    )
    return DiscoverOut(
        slot_minutes=settings.SLOT_MINUTES,
        duration_minutes=duration_minutes,
        candidates=[CandidateOut.from_domain(candidate) for candidate in candidates],
    )
