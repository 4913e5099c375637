"""FastAPI dependencies: database sessions, cookie sessions, and CSRF."""

from typing import Generator
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from formflow.core.security import decode_session_token
from formflow.db.models import User
from formflow.services import auth_service
from formflow.db.session import SessionLocal

COOKIE_NAME = "formflow_session"

# Browsers cannot send this header cross-site without a CORS preflight
CSRF_HEADER = "X-Requested-With"
CSRF_HEADER_VALUE = "XMLHttpRequest"


def get_db() -> Generator[Session, None, None]:
    """One session per request, closed when the response is done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail)


def _resolve_user(request: Request, db: Session) -> User:
    token = request.cookies.get(COOKIE_NAME)
    if not token:
        raise _unauthorized("Not authenticated")

    try:
        payload = decode_session_token(token)
        user_id = UUID(str(payload.get("sub")))
    except (jwt.InvalidTokenError, ValueError) as exc:
        raise _unauthorized("Invalid session") from exc

    user = auth_service.get_user(db, user_id)
    if user is None:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise _unauthorized("Account disabled")
    # A password change bumps token_version and strands older cookies
    if payload.get("token_version") != user.token_version:
        raise _unauthorized("Session revoked")
    return user


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    The signed-in form author.

    Raises:
        HTTPException 401: no cookie, bad or expired token, unknown or
        disabled user, or a revoked session
    """
    user = _resolve_user(request, db)
    request.state.user_id = str(user.id)
    return user


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> User | None:
    """Like ``get_current_user`` but anonymous callers get None instead of 401."""
    if not request.cookies.get(COOKIE_NAME):
        return None
    try:
        user = _resolve_user(request, db)
    except HTTPException:
        return None
    request.state.user_id = str(user.id)
    return user


def require_csrf_header(request: Request) -> None:
    """
    Reject state-changing requests that lack the CSRF header.

    Raises:
        HTTPException 403: header missing or wrong
    """
    if request.headers.get(CSRF_HEADER) != CSRF_HEADER_VALUE:
        raise HTTPException(
            status_code=403,
            detail=f"Missing CSRF header. Include '{CSRF_HEADER}: {CSRF_HEADER_VALUE}'",
        )
