"""Account registration, credential checks, and profile maintenance."""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from formflow.core.security import MIN_PASSWORD_LENGTH, hash_password, verify_password
from formflow.db.models import User
from formflow.utils.normalization import is_valid_email, normalize_email, normalize_name

logger = logging.getLogger(__name__)


class DuplicateEmailError(ValueError):
    """Registration email already belongs to an account."""


def get_user_by_email(db: Session, email: str) -> User | None:
    normalized = normalize_email(email)
    if not normalized:
        return None
    return db.query(User).filter(User.email == normalized).first()


def get_user(db: Session, user_id: UUID) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def _check_new_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def register_user(db: Session, email: str, password: str, name: str | None = None) -> User:
    """
    Create an account.

    Raises:
        ValueError: missing fields, bad email, or short password
        DuplicateEmailError: email already registered
    """
    normalized = normalize_email(email)
    if not normalized or not password:
        raise ValueError("Email and password are required")
    if not is_valid_email(normalized):
        raise ValueError("Invalid email format")
    _check_new_password(password)

    if get_user_by_email(db, normalized):
        raise DuplicateEmailError("Email is already registered")

    user = User(
        email=normalized,
        password_hash=hash_password(password),
        name=normalize_name(name),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # Concurrent registration with the same email
        db.rollback()
        raise DuplicateEmailError("Email is already registered") from exc
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def authenticate(db: Session, email: str, password: str) -> User | None:
    """Return the active user matching the credentials, else None."""
    user = get_user_by_email(db, email)
    if not user or not password:
        return None
    if not verify_password(password, user.password_hash):
        return None
    if not user.is_active:
        return None
    return user


def update_profile(db: Session, user: User, name: str | None) -> User:
    cleaned = normalize_name(name)
    if not cleaned:
        raise ValueError("Name is required")
    user.name = cleaned
    db.commit()
    db.refresh(user)
    return user


def change_password(
    db: Session, user: User, current_password: str, new_password: str
) -> User:
    """
    Replace the user's password and revoke every outstanding session.

    The caller re-issues a session cookie carrying the new token version.
    """
    if not current_password or not new_password:
        raise ValueError("Current and new password are required")
    _check_new_password(new_password)
    if not verify_password(current_password, user.password_hash):
        raise ValueError("Current password is incorrect")

    user.password_hash = hash_password(new_password)
    user.token_version = (user.token_version or 0) + 1
    db.commit()
    db.refresh(user)
    logger.info("Password changed for user %s", user.id)
    return user
