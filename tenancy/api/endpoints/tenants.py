"""
Tenant Endpoints

Public directory, tenant context, the join flow, and tenant administration
(members, invitations, settings).

RBAC:
- Directory, public tenant page, join-info, context: anyone
- Join: any authenticated user (subject to ban / signup policy / invitation)
- Tenant by id: ACTIVE members and super admins
- Members, invitations, settings: ADMIN or OWNER of that tenant, or super admin
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from tenancy.database import get_db
from tenancy.models.invitation import InvitationStatus
from tenancy.models.user import User
from tenancy.core.permissions import Action, Actor
from tenancy.schemas.invitation import (
    InvitationCreate,
    InvitationPreview,
    InvitationResponse,
    JoinInfoResponse,
)
from tenancy.schemas.membership import (
    JoinRequest,
    JoinResponse,
    MemberResponse,
    MemberUpdate,
    MembershipResponse,
)
from tenancy.schemas.tenant import (
    SettingsResponse,
    SettingsUpdate,
    TenantContextResponse,
    TenantResponse,
)
from tenancy.services import invitations as invitation_service
from tenancy.services import memberships as membership_service
from tenancy.services import tenants as tenant_service
from tenancy.api.deps import (
    get_actor,
    get_current_user,
    get_current_user_optional,
    require_tenant_action,
)
from tenancy.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/tenants", tags=["tenants"])


# ============================================================================
# DIRECTORY AND CONTEXT
# ============================================================================

@router.get("/public", response_model=list[TenantResponse])
async def list_public_tenants(
    q: Optional[str] = Query(None, max_length=100),
    db: Session = Depends(get_db)
):
    """ACTIVE tenants, optionally filtered by a name/slug substring. At most 100."""
    return tenant_service.list_public_tenants(db, q)


@router.get("/id/{tenant_id}", response_model=TenantResponse)
async def get_tenant_by_id(
    tenant_id: str,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db)
):
    return tenant_service.get_tenant_for_actor(db, tenant_id, actor)


@router.get("/{slug}/join-info", response_model=JoinInfoResponse)
async def get_join_info(
    slug: str,
    invite_token: Optional[str] = Query(None, alias="inviteToken"),
    db: Session = Depends(get_db)
):
    """
    What a visitor needs to render the join page.

    The invitation (if a token is given) is reported with its derived
    status; nothing is written.
    """
    info = membership_service.join_info(db, slug, invite_token)
    preview = None
    if info.invitation is not None:
        preview = InvitationPreview(
            email=info.invitation.email,
            role=info.invitation.role,
            status=info.invitation_status,
            expires_at=info.invitation.expires_at,
            valid=info.invitation_status == InvitationStatus.SENT,
        )
    return JoinInfoResponse(
        tenant=info.tenant,
        settings=SettingsResponse(**info.settings),
        allow_join=info.allow_join,
        invitation=preview,
    )


@router.post("/{slug}/join", response_model=JoinResponse)
async def join_tenant(
    slug: str,
    body: JoinRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Join a tenant directly or with an invitation token.

    Returns the membership; pendingApproval is true when an admin still
    has to activate it.
    """
    tenant = tenant_service.get_tenant_by_slug(db, slug)
    result = membership_service.join_tenant(
        db,
        tenant.id,
        current_user.id,
        invite_token=body.invite_token,
        full_name=body.full_name,
        phone=body.phone,
        custom_fields=body.custom_fields,
    )
    return JoinResponse(membership=result.membership, pending_approval=result.pending_approval)


@router.get("/{slug}/context", response_model=TenantContextResponse)
async def get_tenant_context(
    slug: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db)
):
    context = tenant_service.tenant_context(db, slug, current_user.id if current_user else None)
    return TenantContextResponse(
        tenant=context.tenant,
        license=context.license,
        plan=context.license.plan if context.license else None,
        settings=SettingsResponse(**context.settings),
        membership=context.membership,
    )


@router.get("/{slug}", response_model=TenantResponse)
async def get_tenant_public(slug: str, db: Session = Depends(get_db)):
    return tenant_service.get_tenant_by_slug(db, slug)


# ============================================================================
# MEMBERS
# ============================================================================

@router.get("/{tenant_id}/members", response_model=list[MemberResponse])
async def list_members(
    tenant_id: str,
    actor: Actor = Depends(require_tenant_action(Action.MANAGE_MEMBERS)),
    db: Session = Depends(get_db)
):
    return [
        MemberResponse(membership=membership, user=user, profile=profile)
        for membership, user, profile in membership_service.list_members(db, tenant_id)
    ]


@router.put("/{tenant_id}/members/{user_id}", response_model=MembershipResponse)
async def update_member(
    tenant_id: str,
    user_id: str,
    body: MemberUpdate,
    actor: Actor = Depends(require_tenant_action(Action.MANAGE_MEMBERS)),
    db: Session = Depends(get_db)
):
    """Set a member's role and status. Status defaults to ACTIVE (approval)."""
    return membership_service.update_member(
        db, actor.user_id, tenant_id, user_id, role=body.role, status=body.status
    )


# ============================================================================
# INVITATIONS
# ============================================================================

@router.get("/{tenant_id}/invitations", response_model=list[InvitationResponse])
async def list_invitations(
    tenant_id: str,
    actor: Actor = Depends(require_tenant_action(Action.MANAGE_INVITATIONS)),
    db: Session = Depends(get_db)
):
    return [
        InvitationResponse.from_invitation(invitation)
        for invitation in invitation_service.list_invitations(db, tenant_id)
    ]


@router.post(
    "/{tenant_id}/invitations",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_invitation(
    tenant_id: str,
    body: InvitationCreate,
    actor: Actor = Depends(require_tenant_action(Action.MANAGE_INVITATIONS)),
    db: Session = Depends(get_db)
):
    """
    Invite an email address.

    NOTE: Delivery is out of band; the response carries the token the
    inviter shares with the invitee.
    """
    invitation = invitation_service.create_invitation(
        db,
        actor.user_id,
        tenant_id,
        email=body.email,
        role=body.role,
        phone=body.phone,
        expires_in_days=body.expires_in_days,
    )
    return InvitationResponse.from_invitation(invitation)


@router.put("/{tenant_id}/invitations/{invitation_id}/resend", response_model=InvitationResponse)
async def resend_invitation(
    tenant_id: str,
    invitation_id: str,
    actor: Actor = Depends(require_tenant_action(Action.MANAGE_INVITATIONS)),
    db: Session = Depends(get_db)
):
    invitation = invitation_service.resend_invitation(db, actor.user_id, tenant_id, invitation_id)
    return InvitationResponse.from_invitation(invitation)


@router.put("/{tenant_id}/invitations/{invitation_id}/revoke", response_model=InvitationResponse)
async def revoke_invitation(
    tenant_id: str,
    invitation_id: str,
    actor: Actor = Depends(require_tenant_action(Action.MANAGE_INVITATIONS)),
    db: Session = Depends(get_db)
):
    invitation = invitation_service.revoke_invitation(db, actor.user_id, tenant_id, invitation_id)
    return InvitationResponse.from_invitation(invitation)


# ============================================================================
# SETTINGS
# ============================================================================

@router.get("/{tenant_id}/settings", response_model=SettingsResponse)
async def get_settings(
    tenant_id: str,
    actor: Actor = Depends(require_tenant_action(Action.MANAGE_SETTINGS)),
    db: Session = Depends(get_db)
):
    return tenant_service.get_settings_row(db, tenant_id)


@router.put("/{tenant_id}/settings", response_model=SettingsResponse)
async def update_settings(
    tenant_id: str,
    body: SettingsUpdate,
    actor: Actor = Depends(require_tenant_action(Action.MANAGE_SETTINGS)),
    db: Session = Depends(get_db)
):
    return tenant_service.update_settings(
        db, actor.user_id, tenant_id, body.model_dump(exclude_none=True)
    )
