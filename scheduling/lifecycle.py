"""
Monthly archival of old bookings.

On startup the last month the system was used is compared with the current
month. When they differ the user is asked whether to write a backup of the
previous month before every booking dated before the current month is
deleted. Declining the backup requires a second confirmation.

    NORMAL --month changed--> CLEANUP_PROMPTED
    CLEANUP_PROMPTED --accept backup--> (backup, purge) --> NORMAL
    CLEANUP_PROMPTED --decline backup--> CLEANUP_CONFIRM_PENDING
    CLEANUP_CONFIRM_PENDING --back--> CLEANUP_PROMPTED
    CLEANUP_CONFIRM_PENDING --confirm--> (purge) --> NORMAL
"""

import logging
from datetime import date, timedelta
from typing import Optional, Tuple

from django.db import transaction

from . import reports
from .exceptions import InvalidTransition
from .mirror import push_after_commit
from .models import Booking
from .repository import BookingRepository, MarkerStore
from .types import MONTH_FORMAT, CleanupResult, CleanupState

logger = logging.getLogger(__name__)


def month_key(day: date) -> str:
    return day.strftime(MONTH_FORMAT)


def start_of_month(day: date) -> date:
    return day.replace(day=1)


def previous_month_range(day: date) -> Tuple[date, date]:
    """First and last day of the calendar month before ``day``."""
    last = start_of_month(day) - timedelta(days=1)
    first = last.replace(day=1)
    return first, last


class CleanupWorkflow:
    """State machine driving the monthly cleanup prompts."""

    def __init__(self, bookings: Optional[BookingRepository] = None,
                 markers: Optional[MarkerStore] = None, backup_writer=None):
        self.bookings = bookings or BookingRepository()
        self.markers = markers or MarkerStore()
        self.write_backup = backup_writer or reports.write_monthly_backup
        self.state = CleanupState.NORMAL
        self.last_result = None

    def check(self, today: Optional[date] = None) -> CleanupState:
        """
        Compare the stored month with the current one.

        The very first run only records the current month.

        Returns:
            The resulting state
        """
        today = today or date.today()
        current = month_key(today)
        marker = self.markers.get_last_access_month()

        if marker is None:
            self.markers.set_last_access_month(current)
            logger.info("No access marker yet, recording %s", current)
        elif marker != current and self.state == CleanupState.NORMAL:
            self._move(CleanupState.CLEANUP_PROMPTED)
            logger.info("Month changed from %s to %s, cleanup required", marker, current)

        return self.state

    def decline_report(self) -> CleanupState:
        """User does not want a backup: ask again before deleting anything."""
        self._require(CleanupState.CLEANUP_PROMPTED)
        return self._move(CleanupState.CLEANUP_CONFIRM_PENDING)

    def back_out(self) -> CleanupState:
        """User reconsiders at the second confirmation."""
        self._require(CleanupState.CLEANUP_CONFIRM_PENDING)
        return self._move(CleanupState.CLEANUP_PROMPTED)

    def accept_report(self, today: Optional[date] = None) -> CleanupResult:
        """
        Write the previous month's backup, then purge.

        No document is written when the previous month has no bookings;
        the purge still happens.
        """
        self._require(CleanupState.CLEANUP_PROMPTED)
        today = today or date.today()

        first, last = previous_month_range(today)
        month_bookings = list(Booking.objects.in_range(first, last).order_by('position'))

        backup_path = None
        if month_bookings:
            backup_path = self.write_backup(month_bookings, first)
        else:
            logger.info("No bookings in %s, skipping backup", month_key(first))

        return self._apply(today, backup_path)

    def confirm_without_backup(self, today: Optional[date] = None) -> CleanupResult:
        """Purge after the second confirmation, without any backup."""
        self._require(CleanupState.CLEANUP_CONFIRM_PENDING)
        return self._apply(today or date.today(), None)

    @transaction.atomic
    def _apply(self, today: date, backup_path: Optional[str]) -> CleanupResult:
        cutoff = start_of_month(today)
        removed = self.bookings.bulk_remove_before(cutoff)
        current = month_key(today)
        self.markers.set_last_access_month(current)
        push_after_commit()

        self._move(CleanupState.CLEANUP_APPLIED)
        self.last_result = CleanupResult(
            cutoff=cutoff,
            removed_count=len(removed),
            backup_path=backup_path,
            marker=current,
        )
        self._move(CleanupState.NORMAL)
        return self.last_result

    def _require(self, *states):
        if self.state not in states:
            raise InvalidTransition(
                f"Action not allowed while cleanup state is '{self.state.value}'"
            )

    def _move(self, state: CleanupState) -> CleanupState:
        logger.info("Cleanup state %s -> %s", self.state.value, state.value)
        self.state = state
        return state


_workflow = None


def get_workflow() -> CleanupWorkflow:
    """Process-wide workflow, created on first use."""
    global _workflow
    if _workflow is None:
        _workflow = CleanupWorkflow()
    return _workflow


def reset_workflow() -> None:
    global _workflow
    _workflow = None
