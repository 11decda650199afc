"""
Data types and constants for the spa scheduling system.

This module contains:
- DTOs (Data Transfer Objects) for service layer operations
- Enumerations for process state that is never stored in the database
- Constants used across the application
"""

import enum
from dataclasses import dataclass, field
from typing import List, Optional
from datetime import date, time


WEEKDAYS = (
    (0, 'Domingo'),
    (1, 'Segunda-feira'),
    (2, 'Terça-feira'),
    (3, 'Quarta-feira'),
    (4, 'Quinta-feira'),
    (5, 'Sexta-feira'),
    (6, 'Sábado'),
)

LAST_ACCESS_MONTH_KEY = 'last_access_month'
MONTH_FORMAT = '%Y-%m'
DONE_LABEL = 'Concluída'
PENDING_LABEL = 'Pendente'


class SyncStatus(str, enum.Enum):
    """Outcome of the latest remote mirror call."""
    IDLE = 'idle'
    SYNCING = 'syncing'
    ERROR = 'error'
    SUCCESS = 'success'


class CleanupState(str, enum.Enum):
    """States of the monthly archival workflow."""
    NORMAL = 'normal'
    CLEANUP_PROMPTED = 'cleanup_prompted'
    CLEANUP_CONFIRM_PENDING = 'cleanup_confirm_pending'
    CLEANUP_APPLIED = 'cleanup_applied'


@dataclass
class BookingSubmission:
    """DTO for a booking coming from a form, before validation.

    ``id`` is None for new bookings and set when editing.
    """
    client_name: Optional[str] = None
    unit: Optional[str] = None
    date: Optional[date] = None
    time: Optional[time] = None
    service_id: Optional[str] = None
    provider_id: Optional[str] = None
    point_of_sale: Optional[str] = None
    hotel: Optional[str] = 'Vilage Inn'
    phone: str = ''
    status: Optional[str] = None
    photo: str = ''
    created_by: Optional[str] = None
    id: Optional[str] = None


@dataclass
class ProviderData:
    """DTO for provider create/update operations."""
    name: str
    start_time: time
    end_time: time
    excluded_weekdays: List[int] = field(default_factory=list)
    id: Optional[str] = None


@dataclass
class AvailabilityUpdateData:
    """DTO for a provider editing their own shift and days off."""
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    excluded_weekdays: Optional[List[int]] = None


@dataclass
class ReportFilter:
    """Filter for the closing report. Both range ends are inclusive."""
    start_date: date
    end_date: date
    provider_id: Optional[str] = None
    hotel: Optional[str] = None


@dataclass
class CleanupResult:
    """What an applied monthly cleanup did."""
    cutoff: date
    removed_count: int
    backup_path: Optional[str] = None
    marker: str = ''
