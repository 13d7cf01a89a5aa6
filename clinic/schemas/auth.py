from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from ..core.security import UserRole

class AdminLogin(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)

class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

class PatientRegister(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=255)

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    role: UserRole

class TokenVerification(BaseModel):
    valid: bool
    subject: str
    role: UserRole
    account_id: int
