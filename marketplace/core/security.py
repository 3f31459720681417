"""
Security: password hashing, JWT access tokens and signed storage URLs.
Challenge: Secure auth, no plain-text passwords, token validation.
"""

from datetime import datetime, timezone, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from marketplace.config import get_settings

settings = get_settings()
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """One-way hash for storage. Never store plain passwords."""
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    """Constant-time comparison for login."""
    return pwd_context.verify(plain, hashed)


def create_access_token(subject: str, extra: dict[str, Any] | None = None) -> str:
    """Create JWT for authenticated user. Subject is the user id."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)
    to_encode = {"sub": str(subject), "exp": expire}
    if extra:
        to_encode.update(extra)
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Decode and validate JWT. Returns payload or None if invalid."""
    try:
        return jwt.decode(
            token, settings.secret_key, algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        return None


def create_storage_token(bucket: str, path: str, ttl_seconds: int) -> str:
    """Short-lived token that grants read access to one stored object."""
    expire = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)
    to_encode = {"obj": f"{bucket}/{path}", "exp": expire}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def verify_storage_token(token: str, bucket: str, path: str) -> bool:
    payload = decode_access_token(token)
    return bool(payload) and payload.get("obj") == f"{bucket}/{path}"
