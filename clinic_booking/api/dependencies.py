"""FastAPI dependency injection functions."""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from clinic_booking import config
from clinic_booking.actors import Actor, Role
from clinic_booking.availability import AvailabilityResolver
from clinic_booking.booking import BookingAdmission
from clinic_booking.directory import ClinicDirectory
from clinic_booking.ledger import BookingLedger


@lru_cache(maxsize=1)
def get_directory() -> ClinicDirectory:
    """Clinic directory singleton."""
    return ClinicDirectory(database_url=config.DATABASE_URL)


@lru_cache(maxsize=1)
def get_ledger() -> BookingLedger:
    """Booking ledger singleton."""
    return BookingLedger(database_url=config.DATABASE_URL)


def get_resolver(
    directory: ClinicDirectory = Depends(get_directory),
    ledger: BookingLedger = Depends(get_ledger)
) -> AvailabilityResolver:
    return AvailabilityResolver(directory, ledger)


def get_admission(
    directory: ClinicDirectory = Depends(get_directory),
    ledger: BookingLedger = Depends(get_ledger)
) -> BookingAdmission:
    return BookingAdmission(directory, ledger)


async def get_actor(
    x_user_id: Optional[str] = Header(None, description="Authenticated user ID"),
    x_user_role: str = Header(Role.PATIENT.value, description="patient | doctor | clinic_admin")
) -> Actor:
    """
    FastAPI dependency for the authenticated caller.

    Identity is verified upstream; this only reads the forwarded headers.

    Raises:
        HTTPException 401: If the user ID is missing or the role is unknown
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    try:
        role = Role(x_user_role)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown role '{x_user_role}'",
        )
    return Actor(user_id=x_user_id, role=role)


async def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    """
    FastAPI dependency restricting a route to clinic admins.

    Raises:
        HTTPException 403: If the caller is not a clinic admin
    """
    if not actor.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only clinic admins can do this",
        )
    return actor
