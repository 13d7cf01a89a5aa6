from sqlalchemy.orm import Session
from typing import Optional, Union

from ..core.security import UserRole
from ..models.admin import Admin
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..repositories.account_repository import AccountRepository

Account = Union[Admin, Doctor, Patient]

def coerce_role(role: Union[UserRole, str, None]) -> Optional[UserRole]:
    """Turn a role name into a ``UserRole``; unknown names give ``None``."""
    if isinstance(role, UserRole):
        return role
    if not isinstance(role, str):
        return None
    try:
        return UserRole(role.strip().lower())
    except ValueError:
        return None

def resolve(db: Session, subject: str, role: Union[UserRole, str]) -> Optional[Account]:
    """Find the live account of ``role`` identified by ``subject``."""
    resolved_role = coerce_role(role)
    if resolved_role is None or not subject:
        return None

    accounts = AccountRepository(db)
    if resolved_role is UserRole.ADMIN:
        return accounts.admin_by_username(subject)
    if resolved_role is UserRole.DOCTOR:
        return accounts.doctor_by_email(subject)
    if resolved_role is UserRole.PATIENT:
        return accounts.patient_by_email(subject)
    raise AssertionError(f"Unhandled role: {resolved_role!r}")
