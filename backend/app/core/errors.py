"""
Booking error taxonomy.

Every named condition carries a stable ``code`` (what callers switch on) and the
HTTP status the API layer maps it to. Anything that is not a ``BookingError`` is
an unexpected failure and is left to propagate.
"""
from __future__ import annotations

from fastapi import status


class BookingError(Exception):
    code = "booking_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Booking request failed"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.code, "detail": self.detail}


class InvalidInput(BookingError):
    code = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class NotFound(BookingError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Restaurant or sector not found"


class OutsideServiceWindow(BookingError):
    code = "outside_service_window"
    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT
    default_detail = "Window does not intersect service hours"


class NoCapacity(BookingError):
    code = "no_capacity"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "No single or combo gap fits duration within window"
