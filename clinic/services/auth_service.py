from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from dataclasses import dataclass
from typing import Optional, Union
import logging

from ..core.exceptions import StorageError
from ..core.security import (
    verify_password, get_password_hash, TokenCodec, Token,
    UserRole, token_codec
)
from ..models.patient import Patient
from ..repositories.account_repository import AccountRepository
from ..schemas.auth import PatientRegister
from .identity_service import Account, coerce_role, resolve

logger = logging.getLogger(__name__)

@dataclass
class Principal:
    """An authenticated caller: the token subject and the account it names."""
    subject: str
    role: UserRole
    account: Account

    @property
    def account_id(self) -> int:
        return self.account.id

class AuthService:
    def __init__(self, db: Session, codec: Optional[TokenCodec] = None):
        self.db = db
        self.codec = codec or token_codec
        self.accounts = AccountRepository(db)

    def issue_token(self, subject: str) -> str:
        """Issue a bearer token for ``subject``."""
        return self.codec.issue(subject)

    def authorize(self, token: Optional[str], required_role: Union[UserRole, str]) -> Optional[Principal]:
        """Return the principal for ``token`` acting as ``required_role``, or None.

        Denials are deliberately indistinguishable to the caller: a malformed
        token, an expired token and a subject without a matching account all
        yield None.
        """
        role = coerce_role(required_role)
        if role is None:
            logger.debug("Authorization denied: unknown role %r", required_role)
            return None

        check = self.codec.parse(token)
        if not check.is_valid:
            logger.debug("Authorization denied: token %s", check.status.value)
            return None

        account = resolve(self.db, check.subject, role)
        if account is None:
            logger.debug("Authorization denied: no %s account for token subject", role.value)
            return None

        return Principal(subject=check.subject, role=role, account=account)

    def login_admin(self, username: str, password: str) -> Token:
        """Authenticate an admin by username and return a token."""
        admin = self.accounts.admin_by_username(username)
        return self._login(admin, admin.username if admin else None, password)

    def login_doctor(self, email: str, password: str) -> Token:
        """Authenticate a doctor by email and return a token."""
        doctor = self.accounts.doctor_by_email(email)
        return self._login(doctor, doctor.email if doctor else None, password)

    def login_patient(self, email: str, password: str) -> Token:
        """Authenticate a patient by email and return a token."""
        patient = self.accounts.patient_by_email(email)
        return self._login(patient, patient.email if patient else None, password)

    def register_patient(self, patient_data: PatientRegister) -> Patient:
        """Register a new patient."""
        if self.accounts.patient_by_email(patient_data.email):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered"
            )

        patient = Patient(
            name=patient_data.name,
            email=patient_data.email,
            password_hash=get_password_hash(patient_data.password),
            phone=patient_data.phone,
            address=patient_data.address,
        )
        self.db.add(patient)
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to register patient")
            raise StorageError("register_patient") from exc

        self.db.refresh(patient)
        logger.info(f"Registered patient {patient.id}")
        return patient

    def _login(self, account: Optional[Account], subject: Optional[str], password: str) -> Token:
        if account is None or not verify_password(password, account.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return self.codec.create_token(subject)
