"""
Remote mirror of the booking and provider collections.

The mirror is a spreadsheet web app that stores positional rows. Local data
is authoritative for writes: every mutation pushes the full collections in
the background and a failed push only flips the sync status. On startup a
non-empty remote snapshot overwrites the local collections wholesale.
"""

import json
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import date, datetime
from decimal import Decimal
from typing import List, NamedTuple, Optional

import requests
from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from . import catalog
from .exceptions import RemoteSyncFailure
from .models import Booking, BookingStatus, Provider
from .repository import BookingRepository, ProviderRepository
from .types import DONE_LABEL, PENDING_LABEL, SyncStatus

logger = logging.getLogger(__name__)

BOOKING_ROW_WIDTH = 15
UNKNOWN_SERVICE = 'Desconhecido'
UNKNOWN_PROVIDER = 'Desconhecida'
PHOTO_ATTACHED = 'Imagem Anexada'


class MirrorSnapshot(NamedTuple):
    bookings: List[Booking]
    providers: List[Provider]
    # rows that could not be mapped; a snapshot with any is never applied
    rejected: int = 0

    def is_empty(self):
        return not self.bookings and not self.providers


def _json_number(value: Decimal):
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _parse_row_date(value) -> date:
    """Dates come back either as ``YYYY-MM-DD`` or as ISO timestamps."""
    return date.fromisoformat(str(value)[:10])


def _parse_row_time(value):
    text = str(value)
    if 'T' in text:
        text = text.split('T', 1)[1]
    return datetime.strptime(text[:5], '%H:%M').time()


def _parse_weekdays(value) -> list:
    """Weekdays are a JSON list in a string; anything unreadable means none."""
    if isinstance(value, list):
        return value
    try:
        weekdays = json.loads(value or '[]')
    except (TypeError, ValueError):
        logger.warning("Unreadable excluded weekdays %r, using none", value)
        return []
    return weekdays if isinstance(weekdays, list) else []


def _cells(row: list, width: int) -> list:
    """Pad a row to ``width`` and turn empty (null) cells into blank text."""
    row = ['' if cell is None else cell for cell in row]
    return row + [''] * (width - len(row))


def booking_to_row(booking: Booking, providers_by_id: dict) -> list:
    """Map a booking to the mirror's booking row layout."""
    service = booking.service
    provider = providers_by_id.get(booking.provider_id)
    return [
        booking.id,
        booking.date.isoformat(),
        booking.time.strftime('%H:%M'),
        booking.client_name,
        booking.unit,
        booking.hotel,
        booking.phone or '',
        service.name if service else UNKNOWN_SERVICE,
        _json_number(service.price) if service else 0,
        provider.name if provider else UNKNOWN_PROVIDER,
        booking.provider_id,
        booking.point_of_sale,
        DONE_LABEL if booking.is_done else PENDING_LABEL,
        booking.created_by,
        PHOTO_ATTACHED if booking.photo else '',
    ]


def provider_to_row(provider: Provider) -> list:
    """Map a provider to the mirror's provider row layout."""
    return [
        provider.id,
        provider.name,
        provider.start_time.strftime('%H:%M'),
        provider.end_time.strftime('%H:%M'),
        json.dumps(list(provider.excluded_weekdays)),
    ]


def row_to_booking(row: list) -> Booking:
    """
    Map a mirror row back to an unsaved Booking.

    The service is resolved by name, falling back to the first catalog entry.
    Photos never travel through the mirror.
    """
    row = _cells(row, BOOKING_ROW_WIDTH)
    service = catalog.find_service_by_name(row[7])
    return Booking(
        id=str(row[0]),
        date=_parse_row_date(row[1]),
        time=_parse_row_time(row[2]),
        client_name=str(row[3]),
        unit=str(row[4]),
        hotel=str(row[5]),
        phone=str(row[6]),
        service_id=service.id if service else catalog.DEFAULT_SERVICE_ID,
        provider_id=str(row[10]),
        point_of_sale=str(row[11]),
        status=BookingStatus.DONE if row[12] == DONE_LABEL else BookingStatus.PENDING,
        created_by=str(row[13]),
        photo='',
        created_at=timezone.now(),
    )


def row_to_provider(row: list) -> Provider:
    """Map a mirror row back to an unsaved Provider."""
    row = _cells(row, 5)
    return Provider(
        id=str(row[0]),
        name=str(row[1]),
        start_time=_parse_row_time(row[2]),
        end_time=_parse_row_time(row[3]),
        excluded_weekdays=_parse_weekdays(row[4]),
    )


def _convert_rows(rows, converter, kind):
    """Map rows, returning the records and how many rows were unusable."""
    records = []
    rejected = 0
    for row in rows or []:
        try:
            records.append(converter(row))
        except (ValueError, TypeError, IndexError) as exc:
            logger.warning("Malformed %s row %r: %s", kind, row, exc)
            rejected += 1
    return records, rejected


def _last_row_wins(records):
    """Drop repeated ids, keeping the first position and the last values."""
    by_id = {}
    for index, record in enumerate(records):
        # rows without an id get a fresh one on save
        by_id[record.pk or index] = record
    return list(by_id.values())


def build_payload(bookings, providers) -> dict:
    providers_by_id = {provider.id: provider for provider in providers}
    return {
        'appointments': [booking_to_row(b, providers_by_id) for b in bookings],
        'masseurs': [provider_to_row(p) for p in providers],
    }


class MirrorClient:
    """HTTP transport to the spreadsheet web app."""

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None, http=None):
        self.url = settings.SCHEDULING_MIRROR_URL if url is None else url
        self.timeout = settings.SCHEDULING_MIRROR_TIMEOUT if timeout is None else timeout
        self.http = http or requests.Session()

    @property
    def is_configured(self):
        return bool(self.url)

    def pull(self) -> MirrorSnapshot:
        """
        Fetch the remote collections.

        Raises:
            RemoteSyncFailure: If the mirror is unconfigured, unreachable or
                answers with something that is not JSON
        """
        if not self.is_configured:
            raise RemoteSyncFailure("Remote mirror URL is not configured")

        try:
            response = self.http.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise RemoteSyncFailure(f"Could not load from mirror: {exc}") from exc

        if not isinstance(data, dict):
            raise RemoteSyncFailure("Mirror answered with an unexpected document")

        bookings, bad_bookings = _convert_rows(data.get('appointments'), row_to_booking, 'booking')
        providers, bad_providers = _convert_rows(data.get('masseurs'), row_to_provider, 'provider')
        return MirrorSnapshot(bookings=bookings, providers=providers, rejected=bad_bookings + bad_providers)

    def push(self, bookings, providers) -> bool:
        """Send the full collections; True when the mirror confirms."""
        return self.push_payload(build_payload(bookings, providers))

    def push_payload(self, payload: dict) -> bool:
        if not self.is_configured:
            return False

        try:
            # text/plain keeps the web app from needing a CORS preflight
            response = self.http.post(
                self.url,
                data=json.dumps(payload).encode('utf-8'),
                headers={'Content-Type': 'text/plain;charset=utf-8'},
                timeout=self.timeout,
            )
            response.raise_for_status()
            result = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Mirror push failed: %s", exc)
            return False

        return isinstance(result, dict) and result.get('status') == 'success'


def reconcile(snapshot: MirrorSnapshot) -> bool:
    """
    Apply a pulled snapshot to the local collections.

    Rows sharing an id collapse into one, the later row winning.

    Returns:
        True if the local collections were overwritten

    Raises:
        RemoteSyncFailure: If any remote row could not be mapped; the local
            collections are left untouched so the next push cannot erase it
    """
    if snapshot.rejected:
        raise RemoteSyncFailure(
            f"Mirror has {snapshot.rejected} unreadable row(s), local data kept"
        )
    if snapshot.is_empty():
        return False

    bookings = _last_row_wins(snapshot.bookings)
    providers = _last_row_wins(snapshot.providers)
    with transaction.atomic():
        BookingRepository().replace_all(bookings)
        ProviderRepository().replace_all(providers)

    logger.info(
        "Local data replaced by mirror: %d booking(s), %d provider(s)",
        len(bookings), len(providers)
    )
    return True


class MirrorSync:
    """Tracks the sync status and runs pushes on a background worker."""

    def __init__(self, client: Optional[MirrorClient] = None, executor=None):
        self.client = client or MirrorClient()
        self._executor = executor
        self._lock = threading.Lock()
        self.status = SyncStatus.IDLE
        self.last_error = None

    def _set_status(self, status: SyncStatus, error: Optional[str] = None):
        with self._lock:
            self.status = status
            self.last_error = error

    @property
    def executor(self):
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='mirror-push')
        return self._executor

    def current_payload(self) -> dict:
        """Serialize the local collections as they are right now."""
        return build_payload(BookingRepository().list(), ProviderRepository().list())

    def _push(self, payload: dict) -> bool:
        success = self.client.push_payload(payload)
        if success:
            self._set_status(SyncStatus.SUCCESS)
            logger.info(
                "Mirror push succeeded (%d booking(s), %d provider(s))",
                len(payload['appointments']), len(payload['masseurs'])
            )
        else:
            self._set_status(SyncStatus.ERROR, "Mirror push failed")
        return success

    def push_now(self) -> bool:
        """Push synchronously (manual sync)."""
        self._set_status(SyncStatus.SYNCING)
        return self._push(self.current_payload())

    def schedule_push(self) -> Future:
        """
        Push in the background.

        The rows are captured in the calling thread so the worker never
        touches the database.
        """
        payload = self.current_payload()
        self._set_status(SyncStatus.SYNCING)
        return self.executor.submit(self._push, payload)

    def pull_and_reconcile(self) -> bool:
        """
        Load the remote snapshot and overwrite local data when it is non-empty.

        Failures are recorded in ``status`` instead of being raised.
        """
        self._set_status(SyncStatus.SYNCING)
        try:
            snapshot = self.client.pull()
            replaced = reconcile(snapshot)
        except RemoteSyncFailure as exc:
            logger.warning("Mirror pull failed: %s", exc)
            self._set_status(SyncStatus.ERROR, str(exc))
            return False
        except DatabaseError as exc:
            logger.exception("Could not apply the mirror snapshot")
            self._set_status(SyncStatus.ERROR, f"Could not apply mirror data: {exc}")
            return False

        self._set_status(SyncStatus.SUCCESS)
        return replaced

    def acknowledge(self):
        """Return a finished status to idle."""
        if self.status == SyncStatus.SUCCESS:
            self._set_status(SyncStatus.IDLE)


_default_sync = None


def get_mirror() -> MirrorSync:
    """Process-wide mirror, created on first use."""
    global _default_sync
    if _default_sync is None:
        _default_sync = MirrorSync()
    return _default_sync


def set_mirror(sync: Optional[MirrorSync]) -> None:
    """Replace the process-wide mirror (None resets it)."""
    global _default_sync
    _default_sync = sync


def push_after_commit() -> None:
    """Schedule a background push once the current transaction commits."""
    transaction.on_commit(lambda: get_mirror().schedule_push())
