"""
Credential & Session Service

Registration, password authentication, session issuance and refresh.

A session is an (access token, refresh token) pair:
- access token: signed JWT {sub, email, globalRole}, stateless
- refresh token: opaque, stored hashed, rotated on every refresh

SECURITY: failed logins use one generic InvalidCredentials error
whether the email is unknown or the password is wrong.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tenancy.core.exceptions import (
    EmailExistsError,
    InvalidCredentialsError,
    InvalidTokenError,
    InvalidTokenPayloadError,
    NotFoundError,
    ValidationError,
)
from tenancy.core.security import (
    create_access_token,
    decode_unverified_claims,
    get_password_hash,
    has_required_claims,
    identity_claims,
    verify_password,
)
from tenancy.models.membership import Membership
from tenancy.models.user import GlobalRole, User, normalize_email
from tenancy.services import audit, refresh_tokens
from tenancy.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)


@dataclass
class SessionTokens:
    access_token: str
    refresh_token: str
    user: Optional[User] = None
    memberships: List[Membership] = field(default_factory=list)


def _start_session(db: Session, user: User, ip: str, user_agent: str) -> SessionTokens:
    access_token = create_access_token(
        identity_claims(user.id, user.email, user.global_role.value)
    )
    refresh = refresh_tokens.issue(db, user.id, ip=ip, user_agent=user_agent)
    return SessionTokens(access_token=access_token, refresh_token=refresh.raw, user=user)


def user_memberships(db: Session, user_id: str) -> List[Membership]:
    return db.query(Membership).filter(
        Membership.user_id == user_id
    ).order_by(Membership.created_at.desc()).all()


def register(
    db: Session,
    email: str,
    password: str,
    full_name: str = "",
    phone: str = "",
    ip: str = "",
    user_agent: str = "",
) -> SessionTokens:
    """
    Create a USER account and start a session.

    Raises EmailExists when the normalized email is already registered.
    The unique index on users.email is the real guard; the IntegrityError
    path covers two registrations racing for the same address.
    """
    email = normalize_email(email)
    if not email:
        raise ValidationError("Email is required")

    user = User(
        email=email,
        password_hash=get_password_hash(password),
        full_name=full_name or "",
        phone=phone or "",
        global_role=GlobalRole.USER,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise EmailExistsError()

    logger.info(f"New user registered: {user.id}")
    audit.record(db, "AUTH_REGISTER", actor_user_id=user.id, metadata={"email": user.email})

    return _start_session(db, user, ip, user_agent)


def authenticate(db: Session, email: str, password: str) -> User:
    """Verify email + password. Raises InvalidCredentials on any mismatch."""
    email = normalize_email(email)
    user = db.query(User).filter(User.email == email).first()

    if not user:
        log_security_event("failed_login", {"reason": "user_not_found", "email": email}, logger)
        raise InvalidCredentialsError()

    if not verify_password(password, user.password_hash):
        log_security_event("failed_login", {"reason": "invalid_password", "user_id": user.id}, logger)
        raise InvalidCredentialsError()

    return user


def login(
    db: Session,
    email: str,
    password: str,
    ip: str = "",
    user_agent: str = "",
) -> SessionTokens:
    user = authenticate(db, email, password)
    session = _start_session(db, user, ip, user_agent)
    session.memberships = user_memberships(db, user.id)

    logger.info(f"Successful login: user={user.id}")
    audit.record(db, "AUTH_LOGIN", actor_user_id=user.id, metadata={"email": user.email})
    return session


def refresh_session(
    db: Session,
    access_token: str,
    raw_refresh_token: str,
    ip: str = "",
    user_agent: str = "",
) -> SessionTokens:
    """
    Rotate the refresh token and re-sign an access token.

    The presented access token is decoded WITHOUT verifying signature or
    expiry; an expired access token can be refreshed. Possession of a live
    refresh token for the decoded subject is the authority check.
    """
    payload = decode_unverified_claims(access_token)
    if not has_required_claims(payload):
        raise InvalidTokenPayloadError()

    rotated = refresh_tokens.rotate(
        db,
        raw_refresh_token,
        user_id=payload["sub"],
        ip=ip,
        user_agent=user_agent,
    )
    if rotated is None:
        raise InvalidTokenError("Invalid refresh token")

    new_access = create_access_token(
        identity_claims(payload["sub"], payload["email"], payload["globalRole"])
    )
    return SessionTokens(access_token=new_access, refresh_token=rotated.raw)


def logout(db: Session, user_id: str, raw_refresh_token: Optional[str] = None) -> None:
    if raw_refresh_token:
        refresh_tokens.revoke(db, raw_refresh_token, user_id)


def get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def update_profile(
    db: Session,
    user_id: str,
    full_name: Optional[str] = None,
    phone: Optional[str] = None,
    avatar_url: Optional[str] = None,
) -> User:
    user = get_user(db, user_id)
    if full_name is not None:
        user.full_name = full_name
    if phone is not None:
        user.phone = phone
    if avatar_url is not None:
        user.avatar_url = avatar_url
    db.commit()
    return user


def promote_super_admin(db: Session, email: str) -> User:
    """Administrative promotion; the only path that changes global_role."""
    user = db.query(User).filter(User.email == normalize_email(email)).first()
    if not user:
        raise NotFoundError(f"User not found: {normalize_email(email)}")
    user.global_role = GlobalRole.SUPER_ADMIN
    db.commit()
    logger.info(f"Promoted {user.email} to SUPER_ADMIN")
    return user


def seed_super_admin(db: Session, email: str, password: str, full_name: str = "Super Admin") -> User:
    """Create the super admin account, or promote and reset it if it exists."""
    email = normalize_email(email)
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        user = User(email=email, full_name=full_name)
        db.add(user)
    user.password_hash = get_password_hash(password)
    user.global_role = GlobalRole.SUPER_ADMIN
    db.commit()
    logger.info(f"Super admin ready: {email}")
    return user
