"""
Repositories for the booking and provider collections.

Repositories own identity and ordering of the records. They never validate:
callers run the validation pipeline first, and bulk paths (remote
reconciliation) write through on purpose.
"""

import logging
from datetime import date
from typing import List, Optional

from django.db import transaction
from django.db.models import Max

from .models import Booking, Provider, StoredValue, generate_id
from .types import LAST_ACCESS_MONTH_KEY

logger = logging.getLogger(__name__)


class _OrderedRepository:
    """Upsert/remove/list over a model ordered by insertion position."""

    model = None

    def list(self) -> List:
        """Return the whole collection in insertion order."""
        return list(self.model.objects.order_by('position'))

    def get(self, record_id):
        return self.model.objects.filter(pk=record_id).first()

    @transaction.atomic
    def upsert(self, record):
        """
        Insert ``record`` or replace the stored record with the same id.

        A replaced record keeps its place in the collection; a new one is
        appended at the end.
        """
        if not record.pk:
            record.pk = generate_id()

        position = (
            self.model.objects.filter(pk=record.pk)
            .values_list('position', flat=True)
            .first()
        )
        if position is None:
            record.position = self._next_position()
            record.save(force_insert=True)
        else:
            record.position = position
            # instances built outside the ORM still look "new" to Django
            record._state.adding = False
            record.save(force_update=True)
        return record

    def remove(self, record_id) -> None:
        """Delete a record; absent ids are ignored."""
        self.model.objects.filter(pk=record_id).delete()

    @transaction.atomic
    def replace_all(self, records) -> None:
        """Overwrite the collection with ``records``, keeping their order."""
        self.model.objects.all().delete()
        for position, record in enumerate(records, start=1):
            if not record.pk:
                record.pk = generate_id()
            record.position = position
            record.save(force_insert=True)

    def _next_position(self) -> int:
        current = self.model.objects.aggregate(top=Max('position'))['top']
        return (current or 0) + 1


class ProviderRepository(_OrderedRepository):
    model = Provider


class BookingRepository(_OrderedRepository):
    model = Booking

    @transaction.atomic
    def bulk_remove_before(self, cutoff: date) -> List[Booking]:
        """
        Delete every booking dated before ``cutoff``.

        Args:
            cutoff: date object; bookings on the cutoff date are kept

        Returns:
            The removed bookings, for reporting
        """
        removed = list(Booking.objects.before(cutoff).order_by('position'))
        Booking.objects.before(cutoff).delete()
        logger.info("Removed %d booking(s) dated before %s", len(removed), cutoff)
        return removed


class MarkerStore:
    """Keyed store for single system values."""

    def get(self, key: str) -> Optional[str]:
        return StoredValue.objects.filter(key=key).values_list('value', flat=True).first()

    def set(self, key: str, value: str) -> None:
        StoredValue.objects.update_or_create(key=key, defaults={'value': value})

    def get_last_access_month(self) -> Optional[str]:
        return self.get(LAST_ACCESS_MONTH_KEY)

    def set_last_access_month(self, month: str) -> None:
        self.set(LAST_ACCESS_MONTH_KEY, month)
