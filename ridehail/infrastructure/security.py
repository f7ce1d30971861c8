"""
Password hashing and signed session tokens.

Passwords are hashed with passlib's ``pbkdf2_sha256`` scheme.  A session is a
JWT whose ``sub`` is the user id and whose ``role`` claim mirrors the
account's fixed role; it expires after ``session_max_age_seconds``.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from ridehail.config import settings
from ridehail.domain.errors import AuthenticationError

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def create_session_token(
    user_id: int, role: str, now: Optional[datetime] = None
) -> str:
    issued = now or datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "role": role,
        "iat": int(issued.timestamp()),
        "exp": int(
            (issued + timedelta(seconds=settings.session_max_age_seconds)).timestamp()
        ),
    }
    return jwt.encode(
        claims, settings.session_secret, algorithm=settings.session_algorithm
    )


def decode_session_token(token: str) -> int:
    """Return the user id carried by *token*, or raise ``AuthenticationError``."""
    try:
        claims = jwt.decode(
            token, settings.session_secret, algorithms=[settings.session_algorithm]
        )
        return int(claims["sub"])
    except (JWTError, KeyError, TypeError, ValueError):
        raise AuthenticationError() from None
