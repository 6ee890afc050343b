"""
Invitation Schemas

status in every response is the effective (derived) status, so an
invitation past its expiry reads EXPIRED even though SENT is stored.
"""
from pydantic import EmailStr, Field
from typing import Optional
from datetime import datetime
from tenancy.models.invitation import Invitation, InvitationStatus
from tenancy.models.membership import TenantRole
from tenancy.schemas.base import APIModel
from tenancy.schemas.tenant import SettingsResponse, TenantResponse


class InvitationCreate(APIModel):
    email: EmailStr
    role: TenantRole = TenantRole.MEMBER
    phone: str = Field("", max_length=40)
    # Clamped to 1..INVITATION_MAX_EXPIRE_DAYS
    expires_in_days: Optional[int] = Field(None, ge=1)


class InvitationResponse(APIModel):
    id: str
    tenant_id: str
    email: str
    phone: str
    role: TenantRole
    status: InvitationStatus
    token: str
    expires_at: datetime
    invited_by: str
    accepted_by_user_id: Optional[str]
    accepted_at: Optional[datetime]
    revoked_at: Optional[datetime]
    created_at: datetime

    @classmethod
    def from_invitation(cls, invitation: Invitation) -> "InvitationResponse":
        response = cls.model_validate(invitation)
        response.status = invitation.effective_status
        return response


class InvitationPreview(APIModel):
    """What an invitee sees before joining. The token itself is not echoed."""
    email: str
    role: TenantRole
    status: InvitationStatus
    expires_at: datetime
    valid: bool


class JoinInfoResponse(APIModel):
    tenant: TenantResponse
    settings: SettingsResponse
    allow_join: bool
    invitation: Optional[InvitationPreview] = None
