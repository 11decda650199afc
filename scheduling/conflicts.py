"""
Double-booking detection.

A provider cannot hold two bookings whose [start, start + duration) intervals
overlap on the same calendar date. Intervals that only touch (one ends at the
minute the other starts) do not conflict.
"""

import logging
from typing import Iterable, Optional

from . import catalog
from .exceptions import InvalidReference

logger = logging.getLogger(__name__)


def _minute_of_day(value) -> int:
    return value.hour * 60 + value.minute


def booking_interval(booking):
    """
    Return the (start, end) minutes-of-day of a booking.

    Raises:
        InvalidReference: If the booking's service is not in the catalog
    """
    service = catalog.get_service(booking.service_id)
    if service is None:
        raise InvalidReference(f"Unknown service '{booking.service_id}'")

    start = _minute_of_day(booking.time)
    return start, start + service.duration_minutes


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Strict overlap test on half-open intervals."""
    return start_a < end_b and end_a > start_b


def find_conflicting_booking(candidate, existing_bookings: Iterable, exclude_id: Optional[str] = None):
    """
    Find the first booking that collides with ``candidate``.

    Args:
        candidate: Booking-like object (service_id, provider_id, date, time)
        existing_bookings: Bookings already accepted
        exclude_id: Identifier to ignore, i.e. the record being edited

    Returns:
        The conflicting booking, or None

    Raises:
        InvalidReference: If the candidate's service is not in the catalog
    """
    new_start, new_end = booking_interval(candidate)

    for booking in existing_bookings:
        if booking.provider_id != candidate.provider_id:
            continue
        if exclude_id is not None and booking.id == exclude_id:
            continue
        if booking.date != candidate.date:
            continue

        try:
            start, end = booking_interval(booking)
        except InvalidReference:
            logger.warning(
                "Skipping booking %s in conflict check: unknown service %r",
                booking.id, booking.service_id
            )
            continue

        if intervals_overlap(new_start, new_end, start, end):
            return booking

    return None


def find_conflict(candidate, existing_bookings: Iterable, exclude_id: Optional[str] = None) -> bool:
    """Return True if ``candidate`` overlaps any booking of the same provider and day."""
    return find_conflicting_booking(candidate, existing_bookings, exclude_id) is not None
