"""Authenticated callers.

Token issuance happens upstream; the API receives the caller's identity
already verified and only needs who they are and in which role.
"""
from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Caller roles."""
    PATIENT = "patient"
    DOCTOR = "doctor"
    CLINIC_ADMIN = "clinic_admin"


@dataclass(frozen=True)
class Actor:
    """The user performing an operation."""
    user_id: str
    role: Role = Role.PATIENT

    @property
    def is_patient(self) -> bool:
        return self.role == Role.PATIENT

    @property
    def is_doctor(self) -> bool:
        return self.role == Role.DOCTOR

    @property
    def is_admin(self) -> bool:
        return self.role == Role.CLINIC_ADMIN
