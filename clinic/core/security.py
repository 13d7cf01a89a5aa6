from datetime import datetime, timedelta
from typing import Optional
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from pydantic import BaseModel
from enum import Enum

from .config import settings

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer extraction; missing headers are rejected by the authorization gate
security = HTTPBearer(auto_error=False)

class UserRole(str, Enum):
    ADMIN = "admin"
    DOCTOR = "doctor"
    PATIENT = "patient"

class TokenStatus(str, Enum):
    VALID = "valid"
    EXPIRED = "expired"
    MALFORMED = "malformed"

class TokenCheck(BaseModel):
    status: TokenStatus
    subject: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.status == TokenStatus.VALID

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int

# Password utilities
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)

# JWT utilities
class TokenCodec:
    """Issues and verifies signed bearer tokens.

    A token carries only the account subject (username for admins, email for
    doctors and patients) plus its issue and expiry instants. The codec holds
    no state beyond the signing secret, so replacing the secret invalidates
    every outstanding token.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_days: int = 7):
        if not secret_key:
            raise ValueError("A signing secret is required")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.lifetime = timedelta(days=expire_days)

    def issue(self, subject: str, now: Optional[datetime] = None) -> str:
        """Create a token for ``subject`` valid for the configured lifetime."""
        issued_at = now or datetime.utcnow()
        to_encode = {
            "sub": subject,
            "iat": issued_at,
            "exp": issued_at + self.lifetime,
        }
        return jwt.encode(to_encode, self._secret_key, algorithm=self.algorithm)

    def parse(self, token: Optional[str]) -> TokenCheck:
        """Verify signature and expiry, returning a tri-state result."""
        if not token or not token.strip():
            return TokenCheck(status=TokenStatus.MALFORMED)

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require_exp": True, "require_iat": True},
            )
        except ExpiredSignatureError:
            return TokenCheck(status=TokenStatus.EXPIRED)
        except JWTError:
            return TokenCheck(status=TokenStatus.MALFORMED)

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject.strip():
            return TokenCheck(status=TokenStatus.MALFORMED)

        return TokenCheck(status=TokenStatus.VALID, subject=subject)

    def create_token(self, subject: str) -> Token:
        """Wrap a freshly issued token in the login response shape."""
        return Token(
            access_token=self.issue(subject),
            expires_in=int(self.lifetime.total_seconds()),
        )

token_codec = TokenCodec(
    settings.SECRET_KEY,
    algorithm=settings.ALGORITHM,
    expire_days=settings.TOKEN_EXPIRE_DAYS,
)

def get_token_codec() -> TokenCodec:
    """Get the process-wide token codec."""
    return token_codec

# Security exceptions
class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "Forbidden"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )
