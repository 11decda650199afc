"""
Session context and the static role gate.

The gate is a convenience screen, not a security boundary: the admin role is
protected by one shared passphrase and the other roles by nothing at all.
"""

import enum
from dataclasses import dataclass
from typing import Optional

from django.conf import settings

from .exceptions import InvalidReference, NotPermitted
from .models import Provider


class Role(str, enum.Enum):
    ADMIN = 'admin'
    RECEPTIONIST = 'receptionist'
    MASSEUR = 'masseur'


@dataclass(frozen=True)
class SessionContext:
    """Who is acting. Passed explicitly into the service layer."""
    role: Role
    display_name: str
    provider_id: Optional[str] = None

    @property
    def is_admin(self):
        return self.role == Role.ADMIN

    @property
    def is_masseur(self):
        return self.role == Role.MASSEUR

    def can_manage_bookings(self):
        return self.role in (Role.ADMIN, Role.RECEPTIONIST)

    def can_manage_providers(self):
        return self.role == Role.ADMIN

    def can_update_status(self, booking):
        if self.can_manage_bookings():
            return True
        return self.is_masseur and booking.provider_id == self.provider_id

    def can_edit_availability(self, provider_id):
        if self.can_manage_providers():
            return True
        return self.is_masseur and provider_id == self.provider_id

    def to_dict(self):
        return {
            'role': self.role.value,
            'display_name': self.display_name,
            'provider_id': self.provider_id,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            role=Role(data['role']),
            display_name=data.get('display_name', ''),
            provider_id=data.get('provider_id'),
        )


SYSTEM_SESSION = SessionContext(role=Role.ADMIN, display_name='Sistema')


def authenticate(role, passphrase: Optional[str] = None, provider_id: Optional[str] = None) -> SessionContext:
    """
    Open a session for a role.

    Args:
        role: Role or its string value
        passphrase: Required for the admin role
        provider_id: Required for the masseur role

    Returns:
        SessionContext for the user

    Raises:
        NotPermitted: If the admin passphrase is wrong
        InvalidReference: If the role or the provider is unknown
    """
    try:
        role = Role(role)
    except ValueError:
        raise InvalidReference(f"Unknown role '{role}'") from None

    if role == Role.ADMIN:
        if passphrase != settings.SCHEDULING_ADMIN_PASSPHRASE:
            raise NotPermitted("Senha incorreta.")
        return SessionContext(role=role, display_name='Administrador')

    if role == Role.RECEPTIONIST:
        return SessionContext(role=role, display_name='Recepção')

    provider = Provider.objects.filter(pk=provider_id).first() if provider_id else None
    if provider is None:
        raise InvalidReference(f"Unknown provider '{provider_id}'")
    return SessionContext(role=role, display_name=provider.name, provider_id=provider.id)


def require(allowed: bool, message: str) -> None:
    """Raise NotPermitted unless ``allowed``."""
    if not allowed:
        raise NotPermitted(message)
