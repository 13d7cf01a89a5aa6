from fastapi import APIRouter, Depends

from ...api.deps import (
    get_auth_service, get_bearer_token, rate_limit_check
)
from ...core.security import AuthenticationError, UserRole
from ...schemas.auth import (
    AdminLogin, UserLogin, TokenResponse, TokenVerification
)
from ...services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/admin/login", response_model=TokenResponse)
async def admin_login(
    login_data: AdminLogin,
    auth_service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_check)
):
    """Authenticate an admin by username."""
    token = auth_service.login_admin(login_data.username, login_data.password)
    return TokenResponse(**token.model_dump(), role=UserRole.ADMIN)

@router.post("/doctor/login", response_model=TokenResponse)
async def doctor_login(
    login_data: UserLogin,
    auth_service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_check)
):
    """Authenticate a doctor by email."""
    token = auth_service.login_doctor(login_data.email, login_data.password)
    return TokenResponse(**token.model_dump(), role=UserRole.DOCTOR)

@router.post("/patient/login", response_model=TokenResponse)
async def patient_login(
    login_data: UserLogin,
    auth_service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_check)
):
    """Authenticate a patient by email."""
    token = auth_service.login_patient(login_data.email, login_data.password)
    return TokenResponse(**token.model_dump(), role=UserRole.PATIENT)

@router.get("/verify/{role}", response_model=TokenVerification)
async def verify_token_endpoint(
    role: str,
    token: str = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Check whether the bearer token is valid for ``role``."""
    principal = auth_service.authorize(token, role)
    if principal is None:
        raise AuthenticationError()

    return TokenVerification(
        valid=True,
        subject=principal.subject,
        role=principal.role,
        account_id=principal.account_id,
    )
