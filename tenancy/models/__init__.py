"""
Database Models

Identity (User), commercial (Plan, License), tenancy (Tenant,
TenantSettings, Membership, MemberProfile, Invitation), session
(RefreshToken) and audit (AuditLog) tables.
"""
from tenancy.models.user import User, GlobalRole
from tenancy.models.plan import Plan
from tenancy.models.license import License, LicenseStatus
from tenancy.models.tenant import Tenant, TenantSettings, TenantStatus
from tenancy.models.membership import Membership, MemberProfile, MembershipStatus, TenantRole
from tenancy.models.invitation import Invitation, InvitationStatus
from tenancy.models.refresh_token import RefreshToken
from tenancy.models.audit_log import AuditLog

__all__ = [
    "User", "GlobalRole",
    "Plan",
    "License", "LicenseStatus",
    "Tenant", "TenantSettings", "TenantStatus",
    "Membership", "MemberProfile", "MembershipStatus", "TenantRole",
    "Invitation", "InvitationStatus",
    "RefreshToken",
    "AuditLog",
]
