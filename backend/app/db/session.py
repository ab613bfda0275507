from backend.app.core.locks import LockManager
from backend.app.db.store import InMemoryStore, Store


store: Store | None = None
locks: LockManager = LockManager()


async def init_store(instance: Store | None = None) -> Store:
    """Initialise the shared store (and a fresh lock manager alongside it)."""
    global store, locks
    store = instance if instance is not None else InMemoryStore()
    locks = LockManager()
    return store


async def close_store() -> None:
    """Drop the shared store if it was initialised."""
    global store
    store = None


async def get_store() -> Store:
    """FastAPI dependency yielding the shared store."""
    if store is None:
        await init_store()
    return store


async def get_locks() -> LockManager:
    return locks
