"""
Admin session tokens and password hashing.

There is a single admin account configured through the environment, so a
token only needs to carry the admin email and an expiry. Tokens are signed
with the same secret the object store uses for its signed URLs.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

ALGORITHM = "HS256"
ADMIN_SESSION_MINUTES = 60 * 24  # 24 hours
TOKEN_TYPE = "admin_session"

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        result: bool = pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Not an argon2 hash (misconfigured EXO_ADMIN_PASSWORD_HASH)
        return False
    return result


def get_password_hash(password: str) -> str:
    result: str = pwd_context.hash(password)
    return result


def issue_admin_token(
    email: str,
    secret_key: str,
    expires_in: timedelta = timedelta(minutes=ADMIN_SESSION_MINUTES),
    now_utc: datetime | None = None,
) -> str:
    """
    Sign a session token for the admin.

    Args:
        email: The admin email, stored as the subject
        secret_key: HMAC key from settings
        expires_in: Session length
        now_utc: Issue time (for testing/determinism). Defaults to datetime.now(UTC).
    """
    issued = now_utc if now_utc is not None else datetime.now(UTC)
    claims: dict[str, Any] = {
        "sub": email,
        "typ": TOKEN_TYPE,
        "iat": issued,
        "exp": issued + expires_in,
    }
    token: str = jwt.encode(claims, secret_key, algorithm=ALGORITHM)
    return token


def read_admin_subject(token: str, secret_key: str) -> str | None:
    """The email a valid session token was issued for, or None."""
    try:
        claims = jwt.decode(token, secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if claims.get("typ") != TOKEN_TYPE:
        return None
    subject = claims.get("sub")
    return subject if isinstance(subject, str) else None
