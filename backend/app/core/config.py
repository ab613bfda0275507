from dataclasses import dataclass, field

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings sourced from environment variables."""

    API_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Seed the demo venue on startup (R1 / S1 / T1..T5)
    SEED_DEMO_DATA: bool = True

    SLOT_MINUTES: int = 15
    LARGE_GROUP_THRESHOLD: int = 10
    DISCOVER_LIMIT: int = 10
    DISCOVER_MAX_LIMIT: int = 100
    IDEMPOTENCY_TTL_SECONDS: int = 60
    WAITLIST_TTL_MINUTES: int = 60

    model_config = ConfigDict(env_file=".env", extra="ignore")


settings = Settings()


# (max party size, minutes); the last rule catches everything above.
DEFAULT_DURATION_RULES: tuple[tuple[int, int], ...] = (
    (2, 75),
    (4, 90),
    (8, 120),
    (10_000, 150),
)


@dataclass(frozen=True)
class BookingPolicy:
    """Allocation knobs shared by discovery, booking and waitlist replay."""

    slot_minutes: int = 15
    large_group_threshold: int = 10
    result_limit: int = 10
    idempotency_ttl_seconds: int = 60
    waitlist_ttl_minutes: int = 60
    duration_rules: tuple[tuple[int, int], ...] = field(default=DEFAULT_DURATION_RULES)

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "BookingPolicy":
        source = source or settings
        return cls(
            slot_minutes=source.SLOT_MINUTES,
            large_group_threshold=source.LARGE_GROUP_THRESHOLD,
            result_limit=source.DISCOVER_LIMIT,
            idempotency_ttl_seconds=source.IDEMPOTENCY_TTL_SECONDS,
            waitlist_ttl_minutes=source.WAITLIST_TTL_MINUTES,
        )
