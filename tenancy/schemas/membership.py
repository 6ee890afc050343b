"""
Membership Schemas

Join requests, membership rows and the member administration views.
"""
from pydantic import Field
from typing import Any, Dict, Optional
from datetime import datetime
from tenancy.models.membership import MembershipStatus, TenantRole
from tenancy.schemas.base import APIModel
from tenancy.schemas.user import UserResponse


class MembershipResponse(APIModel):
    id: str
    tenant_id: str
    user_id: str
    role: TenantRole
    status: MembershipStatus
    created_at: datetime


class MemberProfileResponse(APIModel):
    full_name: str
    phone: str
    custom_fields: Dict[str, Any]


class MemberResponse(APIModel):
    """One row of the member list: membership, user and per-tenant profile."""
    membership: MembershipResponse
    user: UserResponse
    profile: Optional[MemberProfileResponse] = None


class MemberUpdate(APIModel):
    role: TenantRole
    status: MembershipStatus = MembershipStatus.ACTIVE


class JoinRequest(APIModel):
    """
    Join a tenant.

    Without invite_token this is a direct join and full_name/phone are
    required. With invite_token they are optional.
    """
    invite_token: Optional[str] = None
    full_name: str = Field("", max_length=255)
    phone: str = Field("", max_length=40)
    custom_fields: Dict[str, Any] = Field(default_factory=dict)


class JoinResponse(APIModel):
    membership: MembershipResponse
    pending_approval: bool
