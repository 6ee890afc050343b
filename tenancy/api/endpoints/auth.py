"""
Authentication Endpoints

Registration, login, token refresh, current user and logout.

Sessions are (access token, refresh token) pairs. The refresh token is
rotated on every /refresh call and cannot be used twice.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from tenancy.database import get_db
from tenancy.models.user import User
from tenancy.schemas.auth import (
    LoginRequest,
    LogoutRequest,
    MeResponse,
    RefreshRequest,
    RegisterRequest,
    SessionResponse,
    TokenPair,
)
from tenancy.services import auth as auth_service
from tenancy.api.deps import client_ip, client_user_agent, get_current_user
from tenancy.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def register(
    registration: RegisterRequest,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Create an account and start a session.

    NOTE: There is no email verification step; the address is trusted
    as typed. Invitation acceptance relies on this address matching.
    """
    session = auth_service.register(
        db,
        email=registration.email,
        password=registration.password,
        full_name=registration.full_name,
        phone=registration.phone,
        ip=client_ip(request),
        user_agent=client_user_agent(request),
    )
    return SessionResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        user=session.user,
        memberships=[],
    )


@router.post("/login", response_model=SessionResponse)
async def login(
    credentials: LoginRequest,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Authenticate and return a token pair plus the caller's memberships.

    SECURITY: Unknown email and wrong password produce the same error.
    """
    session = auth_service.login(
        db,
        email=credentials.email,
        password=credentials.password,
        ip=client_ip(request),
        user_agent=client_user_agent(request),
    )
    return SessionResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        user=session.user,
        memberships=session.memberships,
    )


@router.post("/refresh", response_model=TokenPair)
async def refresh(
    body: RefreshRequest,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Exchange a refresh token for a new token pair.

    The access token may be expired. Its claims are read without
    verification and re-signed; the refresh token is the authority.
    """
    session = auth_service.refresh_session(
        db,
        access_token=body.access_token,
        raw_refresh_token=body.refresh_token,
        ip=client_ip(request),
        user_agent=client_user_agent(request),
    )
    return TokenPair(access_token=session.access_token, refresh_token=session.refresh_token)


@router.get("/me", response_model=MeResponse)
async def me(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return MeResponse(
        user=current_user,
        memberships=auth_service.user_memberships(db, current_user.id),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    body: Optional[LogoutRequest] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Revoke the supplied refresh token. Access tokens simply expire."""
    auth_service.logout(db, current_user.id, body.refresh_token if body else None)
    logger.info(f"User logged out: {current_user.id}")
