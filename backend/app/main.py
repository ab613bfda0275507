import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from backend.app.core.config import settings
from backend.app.core.exception_handlers import register_exception_handlers
from backend.app.db.seed import seed_demo_data
from backend.app.db.session import close_store, init_store
from backend.app.db.store import InMemoryStore
import backend.app.routers.availability as availability
import backend.app.routers.blackouts as blackouts
import backend.app.routers.health as health
import backend.app.routers.reservations as reservations
import backend.app.routers.waitlist as waitlist


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = InMemoryStore()
    if settings.SEED_DEMO_DATA:
        seed_demo_data(store)
        logger.info("Seed data loaded")
    await init_store(store)
    try:
        yield
    finally:
        await close_store()


app = FastAPI(
    title="WokiBrain Seating API",
    lifespan=lifespan,
)

register_exception_handlers(app)

app.include_router(health.router, prefix=settings.API_PREFIX)
app.include_router(availability.router, prefix=settings.API_PREFIX)
app.include_router(reservations.router, prefix=settings.API_PREFIX)
app.include_router(blackouts.router, prefix=settings.API_PREFIX)
app.include_router(waitlist.router, prefix=settings.API_PREFIX)
