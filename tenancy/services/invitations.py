"""
Invitation Registry

Issue, list, resend and revoke tenant invitations. Acceptance happens
inside the join flow (services/memberships.py) via accept_in_transaction.

Effective status is derived on read (models.invitation); EXPIRED is
never written. All state changes are conditional UPDATEs keyed on the
stored status so an accepted invitation cannot be resent or revoked
even under concurrent requests.
"""
from datetime import timedelta
from typing import List, Optional
import secrets

from sqlalchemy.orm import Session

from tenancy.config import get_settings
from tenancy.core.exceptions import (
    ForbiddenError,
    InvalidStateError,
    InvitationExistsError,
    NotFoundError,
    ValidationError,
)
from tenancy.database import utcnow
from tenancy.models.invitation import Invitation, InvitationStatus
from tenancy.models.membership import TenantRole
from tenancy.models.user import normalize_email
from tenancy.services import audit
from tenancy.services.tenants import get_tenant
from tenancy.utils.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


def generate_invitation_token() -> str:
    return secrets.token_urlsafe(32)


def _expiry_days(expires_in_days: Optional[int]) -> int:
    days = expires_in_days or settings.INVITATION_EXPIRE_DAYS
    return max(1, min(settings.INVITATION_MAX_EXPIRE_DAYS, days))


def create_invitation(
    db: Session,
    actor_user_id: str,
    tenant_id: str,
    email: str,
    role: TenantRole = TenantRole.MEMBER,
    phone: str = "",
    expires_in_days: Optional[int] = None,
) -> Invitation:
    """
    Invite an email address to a tenant.

    Raises InvitationExists when a live (SENT, unexpired) invitation for the
    same tenant and email already exists.

    NOTE: check-then-insert. Liveness depends on expires_at vs. now, which a
    partial unique index cannot express, so two concurrent creates for one
    email can both succeed.
    """
    tenant = get_tenant(db, tenant_id)
    email = normalize_email(email)
    if not email:
        raise ValidationError("Email is required")

    now = utcnow()
    live = db.query(Invitation).filter(
        Invitation.tenant_id == tenant.id,
        Invitation.email == email,
        Invitation.status == InvitationStatus.SENT,
        Invitation.expires_at >= now,
    ).first()
    if live:
        raise InvitationExistsError()

    invitation = Invitation(
        tenant_id=tenant.id,
        email=email,
        phone=(phone or "").strip(),
        role=TenantRole(role),
        status=InvitationStatus.SENT,
        token=generate_invitation_token(),
        expires_at=now + timedelta(days=_expiry_days(expires_in_days)),
        invited_by=actor_user_id,
    )
    db.add(invitation)
    db.commit()

    audit.record(db, "TENANT_INVITE_MEMBER", actor_user_id=actor_user_id, tenant_id=tenant.id,
                 metadata={"invitation_id": invitation.id, "email": email, "role": invitation.role.value})
    return invitation


def list_invitations(db: Session, tenant_id: str) -> List[Invitation]:
    return db.query(Invitation).filter(
        Invitation.tenant_id == tenant_id
    ).order_by(Invitation.created_at.desc()).all()


def find_by_token(db: Session, tenant_id: str, token: str) -> Optional[Invitation]:
    return db.query(Invitation).populate_existing().filter(
        Invitation.tenant_id == tenant_id,
        Invitation.token == token,
    ).first()


def _reload(db: Session, tenant_id: str, invitation_id: str) -> Optional[Invitation]:
    return db.query(Invitation).populate_existing().filter(
        Invitation.id == invitation_id,
        Invitation.tenant_id == tenant_id,
    ).first()


def resend_invitation(db: Session, actor_user_id: str, tenant_id: str, invitation_id: str) -> Invitation:
    """
    Regenerate the token, reset to SENT, clear revocation, extend expiry.

    Not allowed once ACCEPTED (InvalidState).
    """
    now = utcnow()
    updated = db.query(Invitation).filter(
        Invitation.id == invitation_id,
        Invitation.tenant_id == tenant_id,
        Invitation.status != InvitationStatus.ACCEPTED,
    ).update(
        {
            Invitation.token: generate_invitation_token(),
            Invitation.status: InvitationStatus.SENT,
            Invitation.revoked_at: None,
            Invitation.revoked_by_user_id: None,
            Invitation.expires_at: now + timedelta(days=settings.INVITATION_EXPIRE_DAYS),
            Invitation.updated_at: now,
        },
        synchronize_session=False
    )

    if not updated:
        db.rollback()
        if _reload(db, tenant_id, invitation_id) is None:
            raise NotFoundError("Invitation not found")
        raise InvalidStateError("Cannot resend an accepted invitation")

    db.commit()
    audit.record(db, "TENANT_INVITATION_RESEND", actor_user_id=actor_user_id, tenant_id=tenant_id,
                 metadata={"invitation_id": invitation_id})
    return _reload(db, tenant_id, invitation_id)


def revoke_invitation(db: Session, actor_user_id: str, tenant_id: str, invitation_id: str) -> Invitation:
    """Revoke an invitation that has not been accepted (Forbidden otherwise)."""
    now = utcnow()
    updated = db.query(Invitation).filter(
        Invitation.id == invitation_id,
        Invitation.tenant_id == tenant_id,
        Invitation.status != InvitationStatus.ACCEPTED,
    ).update(
        {
            Invitation.status: InvitationStatus.REVOKED,
            Invitation.revoked_by_user_id: actor_user_id,
            Invitation.revoked_at: now,
            Invitation.updated_at: now,
        },
        synchronize_session=False
    )

    if not updated:
        db.rollback()
        if _reload(db, tenant_id, invitation_id) is None:
            raise NotFoundError("Invitation not found")
        raise ForbiddenError("Accepted invitation cannot be revoked")

    db.commit()
    audit.record(db, "TENANT_INVITATION_REVOKE", actor_user_id=actor_user_id, tenant_id=tenant_id,
                 metadata={"invitation_id": invitation_id})
    return _reload(db, tenant_id, invitation_id)


def accept_in_transaction(db: Session, invitation: Invitation, user_id: str) -> None:
    """
    Mark a SENT, unexpired invitation ACCEPTED inside the caller's transaction.

    Raises InvalidState if it was accepted, revoked or expired in the meantime.
    Does not commit.
    """
    now = utcnow()
    accepted = db.query(Invitation).filter(
        Invitation.id == invitation.id,
        Invitation.status == InvitationStatus.SENT,
        Invitation.expires_at >= now,
    ).update(
        {
            Invitation.status: InvitationStatus.ACCEPTED,
            Invitation.accepted_by_user_id: user_id,
            Invitation.accepted_at: now,
            Invitation.updated_at: now,
        },
        synchronize_session=False
    )
    if accepted != 1:
        db.rollback()
        raise InvalidStateError("Invitation is no longer valid")
