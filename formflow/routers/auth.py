"""Authentication router: registration, password login, and session management."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from formflow.core.config import settings
from formflow.core.deps import COOKIE_NAME, get_current_user, get_db, require_csrf_header
from formflow.core.rate_limit import auth_limit, limiter
from formflow.core.security import create_session_token
from formflow.db.models import User
from formflow.schemas.auth import (
    LoginRequest,
    MessageResponse,
    PasswordChange,
    ProfileUpdate,
    RegisterRequest,
    RegisterResponse,
    UserRead,
)
from formflow.services import auth_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _set_session_cookie(response: Response, user: User) -> None:
    token = create_session_token(user.id, user.email, user.token_version)
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=settings.JWT_EXPIRES_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )


@router.post("/register", response_model=RegisterResponse)
@limiter.limit(auth_limit)
def register(
    request: Request,
    body: RegisterRequest,
    db: Session = Depends(get_db),
) -> RegisterResponse:
    """Create an account. Does not sign the user in."""
    try:
        user = auth_service.register_user(db, body.email, body.password, body.name)
    except auth_service.DuplicateEmailError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return RegisterResponse(message="Registration successful", user_id=user.id)


@router.post("/login", response_model=UserRead)
@limiter.limit(auth_limit)
def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Session = Depends(get_db),
) -> User:
    """Verify credentials and set the session cookie."""
    user = auth_service.authenticate(db, body.email, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    _set_session_cookie(response, user)
    logger.info("User %s logged in", user.id)
    return user


@router.post("/logout", response_model=MessageResponse, dependencies=[Depends(require_csrf_header)])
def logout(response: Response) -> MessageResponse:
    """
    Clear the session cookie.

    Works without a valid session so a stale cookie can always be dropped.
    """
    response.delete_cookie(COOKIE_NAME, path="/")
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserRead)
def get_me(user: User = Depends(get_current_user)) -> User:
    """Current authenticated user; used by clients to bootstrap auth state."""
    return user


@router.put("/profile", response_model=UserRead, dependencies=[Depends(require_csrf_header)])
def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    try:
        return auth_service.update_profile(db, user, body.name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.put("/password", response_model=MessageResponse, dependencies=[Depends(require_csrf_header)])
def change_password(
    body: PasswordChange,
    response: Response,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MessageResponse:
    """
    Change password.

    Every other session is revoked; this one gets a fresh cookie.
    """
    try:
        user = auth_service.change_password(db, user, body.current_password, body.new_password)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    _set_session_cookie(response, user)
    return MessageResponse(message="Password changed")
