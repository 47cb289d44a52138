"""
Roles and authorization policies.

Every operation that needs an authorization decision has exactly one policy
function here. Policies take the acting user's role and id as re-read from the
database (never token claims) plus whatever rows the decision depends on, and
return a ``PolicyDecision``. Services call ``.enforce()`` to turn a denial into
a ``ForbiddenError``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.core.errors import ForbiddenError


class Role(str, Enum):
    SHIPPER = "shipper"
    CARRIER = "carrier"
    ESCORT = "escort"
    DRIVER = "driver"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: "Role | str | None") -> Optional["Role"]:
        if isinstance(value, Role):
            return value
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def is_provider(self) -> bool:
        return self in PROVIDER_ROLES


PROVIDER_ROLES = frozenset({Role.CARRIER, Role.ESCORT})


@dataclass(frozen=True)
class PolicyDecision:
    allowed: bool
    reason: str = ""

    def enforce(self) -> None:
        if not self.allowed:
            raise ForbiddenError(self.reason or None)


ALLOW = PolicyDecision(True)


def deny(reason: str) -> PolicyDecision:
    return PolicyDecision(False, reason)


def require_admin(role: Role | str) -> PolicyDecision:
    if Role.parse(role) is Role.ADMIN:
        return ALLOW
    return deny("Admin access required")


def can_create_booking(role: Role | str) -> PolicyDecision:
    if Role.parse(role) in (Role.SHIPPER, Role.ADMIN):
        return ALLOW
    return deny("Only shippers can create bookings")


def can_submit_quote(role: Role | str) -> PolicyDecision:
    if Role.parse(role) in PROVIDER_ROLES:
        return ALLOW
    return deny("Only carriers and escorts can submit quotes")


def can_accept_quote(role: Role | str) -> PolicyDecision:
    if Role.parse(role) is Role.ADMIN:
        return ALLOW
    return deny("Only administrators can accept and match quotes")


def can_assign_providers(role: Role | str) -> PolicyDecision:
    return require_admin(role)


def can_view_booking_quotes(role: Role | str, user_id: str, booking) -> PolicyDecision:
    if Role.parse(role) is Role.ADMIN or booking.shipper_id == user_id:
        return ALLOW
    return deny("Unauthorized to view these quotes")


def is_booking_party(user_id: str, booking, driver_id: Optional[str] = None) -> bool:
    """True when the user is the shipper or fills one of the booking's assignment slots."""
    if user_id in (booking.shipper_id, booking.carrier_id, booking.escort_id):
        return True
    return driver_id is not None and booking.assigned_driver_id == driver_id


def can_view_booking(role: Role | str, user_id: str, booking, driver_id: Optional[str] = None) -> PolicyDecision:
    if Role.parse(role) is Role.ADMIN or is_booking_party(user_id, booking, driver_id):
        return ALLOW
    return deny("Unauthorized to view this booking")


def can_set_booking_status(
    role: Role | str, user_id: str, booking, driver_id: Optional[str] = None
) -> PolicyDecision:
    """Admin, or the carrier/escort/driver assigned on the booking row itself."""
    if Role.parse(role) is Role.ADMIN:
        return ALLOW
    if booking.carrier_id is not None and booking.carrier_id == user_id:
        return ALLOW
    if booking.escort_id is not None and booking.escort_id == user_id:
        return ALLOW
    if driver_id is not None and booking.assigned_driver_id == driver_id:
        return ALLOW
    return deny("Unauthorized to update this booking")


def can_review_booking(user_id: str, booking) -> PolicyDecision:
    if booking.shipper_id == user_id:
        return ALLOW
    return deny("Not authorized to review this booking")


def can_manage_drivers(role: Role | str) -> PolicyDecision:
    if Role.parse(role) in (Role.CARRIER, Role.ADMIN):
        return ALLOW
    return deny("Only carriers can manage drivers")


def can_add_driver(role: Role | str) -> PolicyDecision:
    if Role.parse(role) is Role.CARRIER:
        return ALLOW
    return deny("Only carriers can add drivers")


def can_manage_vehicles(role: Role | str) -> PolicyDecision:
    if Role.parse(role) in (Role.CARRIER, Role.ESCORT, Role.ADMIN):
        return ALLOW
    return deny("Only carriers and escorts can manage vehicles")


def can_view_user(role: Role | str, user_id: str, target_id: str, target_role: Role | str) -> PolicyDecision:
    """Admins see everyone, users see themselves, shippers see providers."""
    acting = Role.parse(role)
    if acting is Role.ADMIN or user_id == target_id:
        return ALLOW
    if acting is Role.SHIPPER and Role.parse(target_role) in PROVIDER_ROLES:
        return ALLOW
    return deny("Unauthorized to view this profile")
