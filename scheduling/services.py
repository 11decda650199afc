"""
Service layer for the scheduling business logic.

Every mutating operation validates, commits through a repository and then
schedules a push of the full collections to the remote mirror. Views and
management commands call these functions with an explicit SessionContext.
"""

import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

from django.db import transaction
from django.utils import timezone

from . import catalog
from .access import SessionContext, require
from .availability import is_available, weekday_index
from .conflicts import find_conflicting_booking
from .exceptions import InvalidReference, MissingField, ProviderUnavailable, TimeConflict
from .lifecycle import get_workflow, reset_workflow
from .mirror import get_mirror, push_after_commit
from .models import Booking, BookingStatus, Hotel, PointOfSale, Provider
from .repository import BookingRepository, ProviderRepository
from .reports import render_closing_report
from .types import (
    AvailabilityUpdateData,
    BookingSubmission,
    CleanupState,
    ProviderData,
    ReportFilter,
    WEEKDAYS,
)

logger = logging.getLogger(__name__)

REQUIRED_BOOKING_FIELDS = (
    'client_name',
    'unit',
    'date',
    'time',
    'service_id',
    'provider_id',
    'point_of_sale',
)


def validate_submission(
    submission: BookingSubmission,
    existing_bookings: Optional[List[Booking]] = None
) -> Provider:
    """
    Run the booking validation pipeline.

    Cheap checks run first: required fields, then references, then the
    provider's weekday availability and finally the conflict scan.

    Args:
        submission: BookingSubmission to check
        existing_bookings: Bookings to check against (defaults to all stored)

    Returns:
        The resolved Provider

    Raises:
        MissingField: If a required field is empty
        InvalidReference: If the service, provider, hotel or point of sale does not resolve
        ProviderUnavailable: If the provider does not work on that weekday
        TimeConflict: If the slot overlaps another booking of the provider
    """
    _validate_required(submission)
    _validate_choices(submission)

    if catalog.get_service(submission.service_id) is None:
        raise InvalidReference(f"Unknown service '{submission.service_id}'")

    provider = Provider.objects.filter(pk=submission.provider_id).first()
    if provider is None:
        raise InvalidReference(f"Unknown provider '{submission.provider_id}'")

    if not is_available(provider, submission.date):
        raise ProviderUnavailable(
            f"{provider.name} does not work on {dict(WEEKDAYS)[weekday_index(submission.date)]}"
        )

    if existing_bookings is None:
        existing_bookings = Booking.objects.for_provider(provider.id).on_date(submission.date)

    conflict = find_conflicting_booking(submission, existing_bookings, exclude_id=submission.id)
    if conflict is not None:
        raise TimeConflict(
            f"{provider.name} already has a booking at {conflict.time.strftime('%H:%M')} "
            f"on {conflict.date.isoformat()}"
        )

    return provider


@transaction.atomic
def submit_booking(submission: BookingSubmission, session: SessionContext) -> Booking:
    """
    Validate and store a new or edited booking.

    Args:
        submission: BookingSubmission (``id`` set when editing)
        session: Who is acting

    Returns:
        The stored Booking

    Raises:
        NotPermitted: If the role cannot manage bookings
        SchedulingError: Any validation failure, see validate_submission
    """
    require(session.can_manage_bookings(), "Only admin and reception manage bookings.")
    validate_submission(submission)

    repository = BookingRepository()
    existing = repository.get(submission.id) if submission.id else None

    booking = Booking(
        client_name=submission.client_name,
        unit=submission.unit,
        hotel=submission.hotel or Hotel.VILAGE_INN,
        phone=submission.phone or '',
        service_id=submission.service_id,
        date=submission.date,
        time=submission.time,
        provider_id=submission.provider_id,
        point_of_sale=submission.point_of_sale,
        status=submission.status or (existing.status if existing else BookingStatus.PENDING),
        photo=submission.photo or '',
        created_by=submission.created_by or (existing.created_by if existing else session.display_name),
        created_at=existing.created_at if existing else timezone.now(),
    )
    if submission.id:
        booking.id = submission.id

    repository.upsert(booking)
    push_after_commit()
    logger.info("Booking %s saved by %s", booking.id, session.display_name)
    return booking


@transaction.atomic
def delete_booking(booking_id: str, session: SessionContext) -> None:
    """Delete a booking; unknown ids are ignored."""
    require(session.can_manage_bookings(), "Only admin and reception manage bookings.")
    BookingRepository().remove(booking_id)
    push_after_commit()


@transaction.atomic
def set_booking_status(booking_id: str, status: str, session: SessionContext) -> Booking:
    """
    Flip a booking between pending and done.

    Raises:
        InvalidReference: If the booking or the status is unknown
        NotPermitted: If a masseur touches somebody else's booking
    """
    if status not in BookingStatus.values:
        raise InvalidReference(f"Unknown status '{status}'")

    repository = BookingRepository()
    booking = repository.get(booking_id)
    if booking is None:
        raise InvalidReference(f"Unknown booking '{booking_id}'")

    require(session.can_update_status(booking), "Masseurs can only update their own bookings.")

    booking.status = status
    repository.upsert(booking)
    push_after_commit()
    return booking


@transaction.atomic
def save_provider(data: ProviderData, session: SessionContext) -> Provider:
    """Create or replace a provider."""
    require(session.can_manage_providers(), "Only the administrator manages masseurs.")

    provider = Provider(
        name=data.name,
        start_time=data.start_time,
        end_time=data.end_time,
        excluded_weekdays=list(data.excluded_weekdays or []),
    )
    if data.id:
        provider.id = data.id
    provider.full_clean(exclude=['id', 'position'])

    ProviderRepository().upsert(provider)
    push_after_commit()
    return provider


@transaction.atomic
def update_availability(
    provider_id: str,
    update_data: AvailabilityUpdateData,
    session: SessionContext
) -> Provider:
    """
    Update the shift window and days off of a provider.

    Raises:
        InvalidReference: If the provider is unknown
        NotPermitted: If a masseur edits somebody else
    """
    require(session.can_edit_availability(provider_id), "Masseurs can only edit their own availability.")

    repository = ProviderRepository()
    provider = repository.get(provider_id)
    if provider is None:
        raise InvalidReference(f"Unknown provider '{provider_id}'")

    fields_to_update = {
        'start_time': update_data.start_time,
        'end_time': update_data.end_time,
        'excluded_weekdays': update_data.excluded_weekdays,
    }
    _apply_field_updates(provider, fields_to_update)
    provider.full_clean(exclude=['id', 'position'])

    repository.upsert(provider)
    push_after_commit()
    return provider


@transaction.atomic
def delete_provider(provider_id: str, session: SessionContext) -> int:
    """
    Delete a provider.

    Bookings of the provider stay in place.

    Returns:
        Number of bookings left pointing at the deleted provider
    """
    require(session.can_manage_providers(), "Only the administrator manages masseurs.")

    orphaned = Booking.objects.for_provider(provider_id).count()
    ProviderRepository().remove(provider_id)
    if orphaned:
        logger.warning("Provider %s deleted with %d booking(s) still assigned", provider_id, orphaned)
    push_after_commit()
    return orphaned


def list_bookings(
    session: SessionContext,
    on_date: Optional[date] = None,
    provider_id: Optional[str] = None
) -> List[Booking]:
    """Bookings visible to the session, in insertion order."""
    queryset = Booking.objects.all()
    if session.is_masseur:
        queryset = queryset.for_provider(session.provider_id)
    elif provider_id:
        queryset = queryset.for_provider(provider_id)
    if on_date:
        queryset = queryset.on_date(on_date)
    return list(queryset.order_by('position'))


def provider_tasks(provider_id: str) -> Tuple[List[Booking], int]:
    """
    A provider's own bookings in chronological order.

    Returns:
        Tuple of (bookings, number not yet done)
    """
    bookings = list(Booking.objects.for_provider(provider_id).chronological())
    pending = sum(1 for booking in bookings if not booking.is_done)
    return bookings, pending


def dashboard_stats(bookings, now: Optional[datetime] = None) -> dict:
    """
    Count bookings already past, still ahead and happening today.

    Past and future are decided by the booking's date and time, not by status.
    """
    now = now or datetime.now()
    stats = {'done': 0, 'todo': 0, 'today': 0}

    for booking in bookings:
        if booking.date == now.date():
            stats['today'] += 1
        if booking.start_datetime < now:
            stats['done'] += 1
        else:
            stats['todo'] += 1

    return stats


def closing_report(report_filter: ReportFilter, session: SessionContext) -> bytes:
    """Closing report PDF; masseurs always get their own."""
    if session.is_masseur:
        report_filter.provider_id = session.provider_id
    return render_closing_report(
        BookingRepository().list(),
        ProviderRepository().list(),
        report_filter,
    )


def startup(today: Optional[date] = None) -> CleanupState:
    """
    Bring the process up: reconcile with the mirror, then check the month.

    The pull finishes before the month check because the reconciled data
    is what the cleanup would purge.
    """
    get_mirror().pull_and_reconcile()
    return get_workflow().check(today)


_started = False


def ensure_started(today: Optional[date] = None) -> CleanupState:
    """
    Run startup once per process; later calls return the cleanup state.

    Startup only counts as done once it returns, so a failed attempt is
    retried on the next call.
    """
    global _started
    if not _started:
        state = startup(today)
        _started = True
        return state
    return get_workflow().state


def reset_startup() -> None:
    """Forget that startup ran and drop the cleanup workflow."""
    global _started
    _started = False
    reset_workflow()


def manual_sync() -> bool:
    """Push the current collections now and report the outcome."""
    return get_mirror().push_now()


def _validate_required(submission: BookingSubmission) -> None:
    missing = [name for name in REQUIRED_BOOKING_FIELDS if not getattr(submission, name)]
    if missing:
        raise MissingField(missing)


def _validate_choices(submission: BookingSubmission) -> None:
    if submission.hotel and submission.hotel not in Hotel.values:
        raise InvalidReference(f"Unknown hotel '{submission.hotel}'")
    if submission.point_of_sale not in PointOfSale.values:
        raise InvalidReference(f"Unknown point of sale '{submission.point_of_sale}'")
    if submission.status and submission.status not in BookingStatus.values:
        raise InvalidReference(f"Unknown status '{submission.status}'")


def _apply_field_updates(obj, fields: dict) -> None:
    """Apply field updates to object if values are not None (DRY helper)."""
    for field_name, value in fields.items():
        if value is not None:
            setattr(obj, field_name, value)
