from fastapi import APIRouter, HTTPException

from backend.app.db import session as session_module


router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, bool]:
    """Basic liveness probe."""
    return {"ok": True}


@router.get("/readiness")
async def readiness() -> dict[str, bool]:
    """Ensure the booking store is initialised and answering."""
    if session_module.store is None:
        raise HTTPException(status_code=503, detail="Store unavailable")

    await session_module.store.get_restaurant("__readiness__")
    return {"ready": True}
