# salon/auth.py

from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import ACCESS_TOKEN_EXPIRE_MINUTES, ADMIN_USERNAME, ALGORITHM, SECRET_KEY
from .deps import get_state_service
from .schemas import UserRole
from .state import AppStateService

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def create_access_token(data: dict, expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode["exp"] = expire
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    token: str = Depends(oauth2_scheme),
    portal: AppStateService = Depends(get_state_service),
) -> dict:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        subject = payload.get("sub")
        role = payload.get("role")
        if subject is None or role is None:
            raise _unauthorized("Invalid token")
    except JWTError:
        raise _unauthorized("Invalid token")

    if role == UserRole.admin.value:
        return {"id": ADMIN_USERNAME, "role": UserRole.admin.value, "name": ADMIN_USERNAME, "phone": None}

    client = portal.snapshot().client(subject)
    if client is None:
        raise _unauthorized("User not found")

    return {
        "id": client.id,
        "role": UserRole.client.value,
        "name": client.name,
        "phone": client.phone,
    }
