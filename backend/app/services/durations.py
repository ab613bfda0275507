from collections.abc import Sequence

from backend.app.core.config import DEFAULT_DURATION_RULES


def duration_for_party(
    party_size: int,
    rules: Sequence[tuple[int, int]] = DEFAULT_DURATION_RULES,
    slot_minutes: int = 15,
) -> int:
    """Default seating duration for a party, rounded up to the booking grid."""
    minutes = rules[-1][1]
    for max_party, rule_minutes in rules:
        if party_size <= max_party:
            minutes = rule_minutes
            break
    return -(-minutes // slot_minutes) * slot_minutes
