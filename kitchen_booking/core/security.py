from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from kitchen_booking.config import settings


# =========================
# IDENTITY
# =========================

ROLE_CHEF = "chef"
ROLE_MANAGER = "manager"
ROLES = (ROLE_CHEF, ROLE_MANAGER)


@dataclass(frozen=True)
class Identity:
    user_id: int
    role: str

    @property
    def is_manager(self) -> bool:
        return self.role == ROLE_MANAGER


# =========================
# TOKEN JWT
# =========================

# tokens come from the identity service, there is no login route here
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token", auto_error=True)


def create_access_token(user_id: int, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """Mint a token the way the identity service does (scripts and tests)."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=30))
    to_encode = {"sub": str(user_id), "role": role, "exp": expire}
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


# =========================
# AUTHENTICATED USER
# =========================

def get_current_identity(token: str = Depends(oauth2_scheme)) -> Identity:

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        subject = payload.get("sub")
        role = payload.get("role")

        if subject is None or role not in ROLES:
            raise credentials_exception

        user_id = int(subject)

    except (JWTError, ValueError):
        raise credentials_exception

    return Identity(user_id=user_id, role=role)


# =========================
# MANAGER ONLY
# =========================

def get_current_manager(
    identity: Identity = Depends(get_current_identity),
) -> Identity:

    if identity.role != ROLE_MANAGER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only kitchen managers can access this route"
        )

    return identity


# =========================
# CHEF ONLY
# =========================

def get_current_chef(
    identity: Identity = Depends(get_current_identity),
) -> Identity:

    if identity.role != ROLE_CHEF:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only chefs can access this route"
        )

    return identity
