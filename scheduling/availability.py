"""Weekday availability of providers."""

from datetime import date


def weekday_index(day: date) -> int:
    """Weekday of ``day`` with Sunday=0 through Saturday=6."""
    return (day.weekday() + 1) % 7


def is_available(provider, day: date) -> bool:
    """
    Check whether a provider takes bookings on a calendar date.

    Args:
        provider: Provider (or anything with ``excluded_weekdays``), already resolved
        day: date object

    Returns:
        True unless the date's weekday is one of the provider's days off
    """
    return weekday_index(day) not in set(provider.excluded_weekdays or [])
