"""
Service catalog for the spa.

The catalog is fixed reference data: it is looked up by identifier (bookings)
or by display name (rows coming back from the remote mirror) and never
mutated at runtime.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class ServiceEntry:
    """A bookable service offering."""
    id: str
    name: str
    price: Decimal
    duration_minutes: int


SERVICE_CATALOG = (
    ServiceEntry('1', 'Massagem Relaxante + Aromaterapia', Decimal('150'), 50),
    ServiceEntry('2', 'Gomagem Corporal', Decimal('150'), 50),
    ServiceEntry('3', 'Massagem com Velas', Decimal('200'), 50),
    ServiceEntry('4', 'Drenagem Linfática', Decimal('150'), 50),
    ServiceEntry('5', 'Ventosa Terapia', Decimal('140'), 50),
    ServiceEntry('6', 'Hidratação + Massagem Facial', Decimal('120'), 40),
    ServiceEntry('7', 'Pedras Quentes', Decimal('200'), 50),
    ServiceEntry('8', 'Escalda Pés', Decimal('80'), 30),
    ServiceEntry('9', 'Massagem Divertida (Kids)', Decimal('60'), 30),
    ServiceEntry('10', 'Combo 01', Decimal('250'), 80),
    ServiceEntry('11', 'Combo 02', Decimal('250'), 90),
    ServiceEntry('12', 'Combo 03', Decimal('150'), 40),
)

DEFAULT_SERVICE_ID = SERVICE_CATALOG[0].id

_BY_ID = {entry.id: entry for entry in SERVICE_CATALOG}
_BY_NAME = {entry.name: entry for entry in SERVICE_CATALOG}


def get_service(service_id) -> Optional[ServiceEntry]:
    """Return the catalog entry for ``service_id`` or None if it does not resolve."""
    if service_id is None:
        return None
    return _BY_ID.get(str(service_id))


def find_service_by_name(name) -> Optional[ServiceEntry]:
    """Return the catalog entry whose display name matches exactly."""
    return _BY_NAME.get(name)


def service_choices():
    return [(entry.id, entry.name) for entry in SERVICE_CATALOG]
