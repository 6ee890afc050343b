"""
Membership Ledger & Join Flow

Join rules:
- BANNED membership: every join attempt fails Forbidden
- Direct join (no invite):
    existing membership  -> returned unchanged (idempotent)
    public signup off    -> Forbidden
    new row              -> MEMBER, PENDING if approval required else ACTIVE
- Invite join: invitation must be SENT and unexpired, and its email must
  match the account email (case-insensitive). The invitation becomes
  ACCEPTED and the membership is set ACTIVE with the invited role,
  regardless of approval policy.

CONCURRENCY: membership and profile rows are written with
INSERT ... ON CONFLICT (tenant_id, user_id). Two concurrent joins for the
same pair converge on one row.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import uuid

from sqlalchemy.orm import Session

from tenancy.core.exceptions import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from tenancy.database import insert_for, utcnow
from tenancy.models.invitation import Invitation, InvitationStatus, derive_invitation_status
from tenancy.models.membership import MemberProfile, Membership, MembershipStatus, TenantRole
from tenancy.models.tenant import Tenant
from tenancy.models.user import User, normalize_email
from tenancy.services import audit, invitations
from tenancy.services.tenants import effective_settings, get_tenant, get_tenant_by_slug
from tenancy.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)


@dataclass
class JoinResult:
    membership: Membership
    created: bool
    invitation: Optional[Invitation] = None

    @property
    def pending_approval(self) -> bool:
        return self.membership.status == MembershipStatus.PENDING


@dataclass
class JoinInfo:
    tenant: Tenant
    settings: Dict[str, bool]
    allow_join: bool
    invitation: Optional[Invitation]
    invitation_status: Optional[InvitationStatus]


def get_membership(db: Session, tenant_id: str, user_id: str) -> Optional[Membership]:
    return db.query(Membership).populate_existing().filter(
        Membership.tenant_id == tenant_id,
        Membership.user_id == user_id,
    ).first()


def _reject_banned(membership: Optional[Membership], tenant_id: str, user_id: str) -> None:
    if membership is not None and membership.status == MembershipStatus.BANNED:
        log_security_event("banned_rejoin", {"tenant_id": tenant_id, "user_id": user_id}, logger)
        raise ForbiddenError("You are banned from this community")


def _upsert_profile(
    db: Session,
    tenant_id: str,
    user_id: str,
    full_name: str,
    phone: str,
    custom_fields: Optional[Dict[str, Any]],
) -> None:
    provided = {}
    if full_name:
        provided["full_name"] = full_name
    if phone:
        provided["phone"] = phone
    if custom_fields:
        provided["custom_fields"] = custom_fields

    stmt = insert_for(db, MemberProfile).values(
        id=str(uuid.uuid4()),
        tenant_id=tenant_id,
        user_id=user_id,
        full_name=full_name or "",
        phone=phone or "",
        custom_fields=custom_fields or {},
    )
    if provided:
        stmt = stmt.on_conflict_do_update(
            index_elements=["tenant_id", "user_id"],
            set_={**provided, "updated_at": utcnow()},
        )
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=["tenant_id", "user_id"])
    db.execute(stmt)


def join_tenant(
    db: Session,
    tenant_id: str,
    user_id: str,
    invite_token: Optional[str] = None,
    full_name: str = "",
    phone: str = "",
    custom_fields: Optional[Dict[str, Any]] = None,
) -> JoinResult:
    tenant = get_tenant(db, tenant_id)
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")

    full_name = (full_name or "").strip()
    phone = (phone or "").strip()
    invite_token = (invite_token or "").strip()

    existing = get_membership(db, tenant.id, user.id)
    _reject_banned(existing, tenant.id, user.id)

    if invite_token:
        return _join_with_invitation(db, tenant, user, invite_token, full_name, phone, custom_fields)

    if existing is not None:
        return JoinResult(membership=existing, created=False)

    policy = effective_settings(db, tenant.id)
    if not policy["public_signup"]:
        raise ForbiddenError("Public signup is disabled for this community")
    if not full_name:
        raise ValidationError("Full name is required")
    if not phone:
        raise ValidationError("Phone number is required")

    status = MembershipStatus.PENDING if policy["approval_required"] else MembershipStatus.ACTIVE
    stmt = insert_for(db, Membership).values(
        id=str(uuid.uuid4()),
        tenant_id=tenant.id,
        user_id=user.id,
        role=TenantRole.MEMBER,
        status=status,
    ).on_conflict_do_nothing(index_elements=["tenant_id", "user_id"])
    inserted = db.execute(stmt).rowcount == 1

    membership = get_membership(db, tenant.id, user.id)
    if membership.status == MembershipStatus.BANNED:
        db.rollback()
        _reject_banned(membership, tenant.id, user.id)

    _upsert_profile(db, tenant.id, user.id, full_name, phone, custom_fields)
    _copy_contact_details(user, full_name, phone)
    db.commit()

    audit.record(db, "TENANT_JOIN", actor_user_id=user.id, tenant_id=tenant.id, metadata={
        "join_method": "DIRECT",
        "invite_used": False,
        "approval_required": policy["approval_required"],
    })
    return JoinResult(membership=membership, created=inserted)


def _join_with_invitation(
    db: Session,
    tenant: Tenant,
    user: User,
    token: str,
    full_name: str,
    phone: str,
    custom_fields: Optional[Dict[str, Any]],
) -> JoinResult:
    invitation = invitations.find_by_token(db, tenant.id, token)
    if not invitation:
        raise NotFoundError("Invitation not found")

    status = invitation.effective_status
    if status != InvitationStatus.SENT:
        raise InvalidStateError(f"Invitation is {status.value.lower()}")

    if normalize_email(invitation.email) != normalize_email(user.email):
        log_security_event(
            "invitation_email_mismatch",
            {"tenant_id": tenant.id, "user_id": user.id},
            logger
        )
        raise ForbiddenError("Invitation email does not match your account")

    invitations.accept_in_transaction(db, invitation, user.id)

    membership_table = Membership.__table__
    stmt = insert_for(db, Membership).values(
        id=str(uuid.uuid4()),
        tenant_id=tenant.id,
        user_id=user.id,
        role=invitation.role,
        status=MembershipStatus.ACTIVE,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["tenant_id", "user_id"],
        set_={
            "role": stmt.excluded.role,
            "status": MembershipStatus.ACTIVE,
            "updated_at": utcnow(),
        },
        where=membership_table.c.status != MembershipStatus.BANNED,
    )
    db.execute(stmt)

    membership = get_membership(db, tenant.id, user.id)
    if membership.status == MembershipStatus.BANNED:
        db.rollback()
        _reject_banned(membership, tenant.id, user.id)

    _upsert_profile(db, tenant.id, user.id, full_name, phone, custom_fields)
    _copy_contact_details(user, full_name, phone)
    db.commit()

    audit.record(db, "TENANT_JOIN", actor_user_id=user.id, tenant_id=tenant.id, metadata={
        "join_method": "INVITE",
        "invite_used": True,
        "invitation_id": invitation.id,
    })
    return JoinResult(
        membership=membership,
        created=True,
        invitation=invitations._reload(db, tenant.id, invitation.id),
    )


def _copy_contact_details(user: User, full_name: str, phone: str) -> None:
    if full_name:
        user.full_name = full_name
    if phone:
        user.phone = phone


def join_info(db: Session, slug: str, invite_token: Optional[str] = None) -> JoinInfo:
    """What a prospective member sees before joining. Performs no writes."""
    tenant = get_tenant_by_slug(db, slug)
    policy = effective_settings(db, tenant.id)
    invite_token = (invite_token or "").strip()

    invitation = invitations.find_by_token(db, tenant.id, invite_token) if invite_token else None
    status = derive_invitation_status(invitation.status, invitation.expires_at) if invitation else None

    return JoinInfo(
        tenant=tenant,
        settings=policy,
        allow_join=bool(invite_token) or policy["public_signup"],
        invitation=invitation,
        invitation_status=status,
    )


# ----------------------------------------------------------------------------
# Member administration
# ----------------------------------------------------------------------------

def list_members(db: Session, tenant_id: str) -> List[tuple]:
    """(membership, user, profile or None) rows, newest first."""
    rows = db.query(Membership, User).join(User, User.id == Membership.user_id).filter(
        Membership.tenant_id == tenant_id
    ).order_by(Membership.created_at.desc()).all()

    profiles = {
        p.user_id: p for p in db.query(MemberProfile).filter(MemberProfile.tenant_id == tenant_id)
    }
    return [(membership, user, profiles.get(user.id)) for membership, user in rows]


def update_member(
    db: Session,
    actor_user_id: str,
    tenant_id: str,
    user_id: str,
    role: TenantRole,
    status: MembershipStatus = MembershipStatus.ACTIVE,
) -> Membership:
    """Direct role/status write by a tenant admin. Authorization is the caller's job."""
    updated = db.query(Membership).filter(
        Membership.tenant_id == tenant_id,
        Membership.user_id == user_id,
    ).update(
        {
            Membership.role: TenantRole(role),
            Membership.status: MembershipStatus(status),
            Membership.updated_at: utcnow(),
        },
        synchronize_session=False
    )
    if not updated:
        db.rollback()
        raise NotFoundError("Membership not found")
    db.commit()

    audit.record(db, "TENANT_MEMBER_UPDATE", actor_user_id=actor_user_id, tenant_id=tenant_id, metadata={
        "user_id": user_id, "role": TenantRole(role).value, "status": MembershipStatus(status).value,
    })
    return get_membership(db, tenant_id, user_id)
