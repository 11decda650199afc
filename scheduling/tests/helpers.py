"""Shared fixtures for the scheduling tests."""

from concurrent.futures import Future
from datetime import date, time

from scheduling import services
from scheduling.mirror import set_mirror
from scheduling.models import Booking, Provider
from scheduling.repository import BookingRepository, ProviderRepository


class ImmediateExecutor:
    """Runs submitted work inline so background pushes finish before asserting."""

    def __init__(self):
        self.submitted = 0

    def submit(self, fn, *args, **kwargs):
        self.submitted += 1
        future = Future()
        future.set_result(fn(*args, **kwargs))
        return future


def reset_process_state():
    """Forget startup, the cleanup workflow and the process-wide mirror."""
    services.reset_startup()
    set_mirror(None)


def make_provider(name="Ana", excluded_weekdays=None, **kwargs):
    provider = Provider(
        name=name,
        start_time=kwargs.pop('start_time', time(9, 0)),
        end_time=kwargs.pop('end_time', time(18, 0)),
        excluded_weekdays=excluded_weekdays or [],
        **kwargs
    )
    return ProviderRepository().upsert(provider)


def make_booking(provider, day=date(2024, 3, 4), at=time(10, 0), service_id='1', **kwargs):
    booking = Booking(
        client_name=kwargs.pop('client_name', "Maria Souza"),
        unit=kwargs.pop('unit', "101"),
        point_of_sale=kwargs.pop('point_of_sale', 'Recepção'),
        service_id=service_id,
        date=day,
        time=at,
        provider_id=kwargs.pop('provider_id', None) or provider.id,
        **kwargs
    )
    return BookingRepository().upsert(booking)
