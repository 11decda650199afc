"""
Models for the spa scheduling system.

- Provider stores a masseur with a shift window and weekly days off
- Booking stores an appointment of a hotel guest with a provider
- StoredValue is a small keyed store for system markers

Bookings reference providers and catalog services by identifier only, so
deleting a provider leaves its bookings in place.
"""

import uuid
from datetime import datetime, timedelta

from django.db import models
from django.core.exceptions import ValidationError
from django.utils import timezone

from . import catalog
from .managers import BookingManager, ProviderManager
from .types import WEEKDAYS


def generate_id():
    """Return a new opaque identifier."""
    return uuid.uuid4().hex


class Hotel(models.TextChoices):
    GOLDEN_PARK = 'Hotel Golden Park', 'Hotel Golden Park'
    VILAGE_INN = 'Vilage Inn', 'Vilage Inn'
    THERMAS_RESORT = 'Thermas Resort', 'Thermas Resort'


class PointOfSale(models.TextChoices):
    RECEPTION = 'Recepção', 'Recepção'
    RESERVATION = 'Reserva', 'Reserva'


class BookingStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    DONE = 'done', 'Done'


def normalize_weekdays(weekdays):
    """Return the weekday set as a sorted list without duplicates."""
    return sorted({int(day) for day in weekdays or []})


class Provider(models.Model):
    """
    A masseur and the weekly pattern of days they work.

    The shift window is informational; bookings are only checked against
    the excluded weekdays.
    """

    id = models.CharField(primary_key=True, max_length=64, default=generate_id, editable=False)
    name = models.CharField(max_length=200)
    start_time = models.TimeField(help_text="Shift start (time of day)")
    end_time = models.TimeField(help_text="Shift end (time of day)")
    excluded_weekdays = models.JSONField(
        default=list,
        blank=True,
        help_text="Weekdays without service (0=Sunday, 6=Saturday)"
    )
    position = models.PositiveIntegerField(default=0, editable=False)

    objects = ProviderManager()

    class Meta:
        ordering = ['position']

    def __str__(self):
        return self.name

    @property
    def excluded_weekday_labels(self):
        """Human-readable names of the excluded weekdays."""
        labels = dict(WEEKDAYS)
        return [labels[day] for day in self.excluded_weekdays if day in labels]

    def clean(self):
        """Validate provider data."""
        super().clean()

        invalid = [day for day in self.excluded_weekdays or [] if not 0 <= int(day) <= 6]
        if invalid:
            raise ValidationError({
                'excluded_weekdays': 'Weekdays must be between 0 (Sunday) and 6 (Saturday).'
            })

    def save(self, *args, **kwargs):
        """Save with the weekday set normalized."""
        self.excluded_weekdays = normalize_weekdays(self.excluded_weekdays)
        super().save(*args, **kwargs)


class Booking(models.Model):
    """
    A scheduled massage for a hotel guest.

    ``date`` and ``time`` are naive local values; the slot length comes from
    the catalog entry referenced by ``service_id``.
    """

    id = models.CharField(primary_key=True, max_length=64, default=generate_id, editable=False)
    client_name = models.CharField(max_length=200)
    unit = models.CharField(max_length=50, help_text="Apartment or room")
    hotel = models.CharField(max_length=50, choices=Hotel.choices, default=Hotel.VILAGE_INN)
    phone = models.CharField(max_length=50, blank=True, default='')
    service_id = models.CharField(max_length=20)
    date = models.DateField()
    time = models.TimeField()
    provider_id = models.CharField(max_length=64, db_index=True)
    point_of_sale = models.CharField(max_length=20, choices=PointOfSale.choices)
    status = models.CharField(
        max_length=10,
        choices=BookingStatus.choices,
        default=BookingStatus.PENDING
    )
    photo = models.TextField(blank=True, default='', help_text="Attached image (data URL or link)")
    created_by = models.CharField(max_length=200, blank=True, default='')
    created_at = models.DateTimeField(default=timezone.now)
    position = models.PositiveIntegerField(default=0, editable=False)

    objects = BookingManager()

    class Meta:
        ordering = ['position']
        indexes = [
            models.Index(fields=['provider_id', 'date'], name='booking_provider_date_idx'),
            models.Index(fields=['date'], name='booking_date_idx'),
        ]

    def __str__(self):
        status_str = " [done]" if self.is_done else ""
        return f"{self.client_name} - {self.date} {self.time.strftime('%H:%M')}{status_str}"

    @property
    def service(self):
        """Catalog entry of this booking, None when the reference is stale."""
        return catalog.get_service(self.service_id)

    @property
    def is_done(self):
        return self.status == BookingStatus.DONE

    @property
    def start_datetime(self):
        return datetime.combine(self.date, self.time)

    @property
    def end_datetime(self):
        """Calculate end datetime from the catalog duration."""
        service = self.service
        if service is None:
            return None
        return self.start_datetime + timedelta(minutes=service.duration_minutes)


class StoredValue(models.Model):
    """A single keyed value, e.g. the last month the system was used."""

    key = models.CharField(primary_key=True, max_length=100)
    value = models.TextField()
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.key}={self.value}"
