from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any, cast
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

from flock.config_secrets import BCRYPT_ROUNDS, JWT_ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, JWT_SECRET

SECRET_KEY = JWT_SECRET
ALGORITHM = JWT_ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = JWT_ACCESS_TOKEN_EXPIRE_MINUTES

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


class InvalidTokenError(Exception):
    """Raised when a bearer token cannot be decoded or has expired."""


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a bcrypt hash."""
    return cast(bool, pwd_context.verify(plain_password, hashed_password))


def get_password_hash(password: str) -> str:
    """Hash a plain password with bcrypt."""
    return cast(str, pwd_context.hash(password))


def create_access_token(user_id: UUID, expires_delta: timedelta | None = None) -> str:
    """Create a signed JWT binding one user id."""
    issued_at = datetime.now(UTC).replace(microsecond=0)
    expire_at = issued_at + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode: dict[str, Any] = {
        "sub": str(user_id),
        "userId": str(user_id),
        "iat": issued_at,
        "exp": expire_at,
    }
    return cast(str, jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM))


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry of a token and return its claims."""
    try:
        return cast(dict[str, Any], jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM]))
    except JWTError as exc:
        raise InvalidTokenError("Could not validate credentials") from exc
