"""
Custom managers and querysets for scheduling models.

QuerySets define chainable query methods.
Managers use QuerySets to enable method chaining.
No business logic should be here - only query operations.
"""

from django.db import models


class ProviderQuerySet(models.QuerySet):
    """Custom queryset for Provider model with chainable methods."""

    def in_order(self):
        """Get providers in insertion order."""
        return self.order_by('position')


class ProviderManager(models.Manager):
    """Custom manager for Provider model."""

    def get_queryset(self):
        """Return custom queryset for method chaining."""
        return ProviderQuerySet(self.model, using=self._db)

    def in_order(self):
        return self.get_queryset().in_order()


class BookingQuerySet(models.QuerySet):
    """Custom queryset for Booking model with chainable methods."""

    def for_provider(self, provider_id):
        """Get bookings assigned to one provider."""
        return self.filter(provider_id=provider_id)

    def on_date(self, date):
        """
        Get bookings on a calendar date.

        Args:
            date: date object
        """
        return self.filter(date=date)

    def before(self, cutoff):
        """
        Get bookings dated strictly before a calendar date.

        Args:
            cutoff: date object (time of day is not considered)
        """
        return self.filter(date__lt=cutoff)

    def on_or_after(self, cutoff):
        return self.filter(date__gte=cutoff)

    def in_range(self, start_date, end_date):
        """
        Get bookings between two dates, both inclusive.

        Args:
            start_date: date object
            end_date: date object
        """
        return self.filter(date__gte=start_date, date__lte=end_date)

    def for_hotel(self, hotel):
        return self.filter(hotel=hotel)

    def pending(self):
        """Get bookings not yet marked as done."""
        return self.exclude(status='done')

    def done(self):
        return self.filter(status='done')

    def chronological(self):
        """Order by date then time of day."""
        return self.order_by('date', 'time', 'position')


class BookingManager(models.Manager):
    """Custom manager for Booking model."""

    def get_queryset(self):
        """Return custom queryset for method chaining."""
        return BookingQuerySet(self.model, using=self._db)

    def for_provider(self, provider_id):
        return self.get_queryset().for_provider(provider_id)

    def on_date(self, date):
        return self.get_queryset().on_date(date)

    def before(self, cutoff):
        """Get bookings dated strictly before ``cutoff``."""
        return self.get_queryset().before(cutoff)

    def on_or_after(self, cutoff):
        return self.get_queryset().on_or_after(cutoff)

    def in_range(self, start_date, end_date):
        """Get bookings between two dates, both inclusive."""
        return self.get_queryset().in_range(start_date, end_date)

    def for_hotel(self, hotel):
        return self.get_queryset().for_hotel(hotel)

    def pending(self):
        return self.get_queryset().pending()

    def done(self):
        return self.get_queryset().done()

    def chronological(self):
        return self.get_queryset().chronological()
