from datetime import date, datetime

from backend.app.db.models import Booking, BookingStatus, Restaurant, Sector, ServiceWindow, Table
from backend.app.db.store import InMemoryStore


DEMO_TIMEZONE = "America/Argentina/Buenos_Aires"
DEMO_CREATED = datetime.fromisoformat("2025-10-22T00:00:00-03:00")


def seed_demo_data(store: InMemoryStore) -> None:
    """Load the demo venue: one sector with five tables and one confirmed booking."""
    restaurant = Restaurant(
        id="R1",
        name="Bistro Central",
        timezone=DEMO_TIMEZONE,
        windows=(ServiceWindow("12:00", "16:00"), ServiceWindow("20:00", "23:45")),
        created_at=DEMO_CREATED,
        updated_at=DEMO_CREATED,
    )
    sector = Sector(id="S1", restaurant_id="R1", name="Main Hall", created_at=DEMO_CREATED, updated_at=DEMO_CREATED)
    tables = [
        Table(id=f"T{n}", sector_id="S1", name=f"Table {n}", min_size=lo, max_size=hi,
              created_at=DEMO_CREATED, updated_at=DEMO_CREATED)
        for n, lo, hi in ((1, 2, 2), (2, 2, 4), (3, 2, 4), (4, 4, 6), (5, 2, 2))
    ]
    booking = Booking(
        id="B1",
        restaurant_id="R1",
        sector_id="S1",
        table_ids=("T2",),
        party_size=3,
        start=datetime.fromisoformat("2025-10-22T20:30:00-03:00"),
        end=datetime.fromisoformat("2025-10-22T21:15:00-03:00"),
        duration_minutes=45,
        date=date(2025, 10, 22),
        status=BookingStatus.CONFIRMED,
        created_at=datetime.fromisoformat("2025-10-22T18:00:00-03:00"),
        updated_at=datetime.fromisoformat("2025-10-22T18:00:00-03:00"),
    )
    store.seed(restaurant=restaurant, sectors=[sector], tables=tables, bookings=[booking])
