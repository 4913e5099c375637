"""Security utilities for password hashing and JWT session tokens."""

import secrets
from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
import jwt

from formflow.core.config import settings


# =============================================================================
# Passwords
# =============================================================================

MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


SESSION_ALGORITHM = "HS256"


def create_session_token(user_id: UUID, email: str, token_version: int) -> str:
    """
    Sign the cookie payload for a form author.

    token_version is compared on every request, so bumping it on the user row
    invalidates all outstanding cookies.
    """
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "email": email,
        "token_version": token_version,
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=SESSION_ALGORITHM)


def decode_session_token(token: str) -> dict:
    """
    Verify a cookie against the current secret, then the previous one.

    Raises:
        jwt.InvalidTokenError: no configured secret accepts the token
    """
    errors: list[jwt.InvalidTokenError] = []
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(token, secret, algorithms=[SESSION_ALGORITHM])
        except jwt.InvalidTokenError as exc:
            errors.append(exc)
    raise errors[0]


# =============================================================================
# Invitation tokens
# =============================================================================

def generate_invitation_token() -> str:
    """Generate an unguessable token for survey invitation links."""
    return secrets.token_urlsafe(24)
