from fastapi import APIRouter, Depends, Query, Response, status

from backend.app.db.session import get_store
from backend.app.db.store import Store
from backend.app.routers.schemas import DATE_PATTERN, BlackoutListOut, BlackoutOut, CreateBlackoutIn
from backend.app.services.blackouts import create_blackout, delete_blackout, list_blackouts
from backend.app.services.validation import parse_day


router = APIRouter()


@router.post("/woki/blackouts", response_model=BlackoutOut, status_code=status.HTTP_201_CREATED)
async def create_blackout_endpoint(payload: CreateBlackoutIn, store: Store = Depends(get_store)) -> BlackoutOut:
    blackout = await create_blackout(
        store,
        table_id=payload.table_id,
        start=payload.start,
        end=payload.end,
        reason=payload.reason,
    )
    return BlackoutOut.from_domain(blackout)


@router.get("/woki/blackouts", response_model=BlackoutListOut)
async def list_blackouts_endpoint(
    table_id: str | None = Query(default=None, alias="tableId"),
    date: str | None = Query(default=None, pattern=DATE_PATTERN),
    store: Store = Depends(get_store),
) -> BlackoutListOut:
    day = parse_day(date) if date else None
    blackouts = await list_blackouts(store, table_id=table_id, day=day)
    return BlackoutListOut(items=[BlackoutOut.from_domain(b) for b in blackouts])


@router.delete("/woki/blackouts/{blackout_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_blackout_endpoint(blackout_id: str, store: Store = Depends(get_store)) -> Response:
    await delete_blackout(store, blackout_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
