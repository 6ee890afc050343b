"""
Tenant Schemas

Tenant creation, directory/context views and tenant settings.
"""
from pydantic import Field
from typing import Optional
from datetime import datetime
from tenancy.models.tenant import TenantStatus
from tenancy.schemas.base import APIModel
from tenancy.schemas.license import TenantLicenseSummary
from tenancy.schemas.membership import MembershipResponse
from tenancy.schemas.plan import PlanResponse
from tenancy.services.tenants import TenantDraft


class TenantDraftIn(APIModel):
    """Fields for a new tenant (license claim and admin create)."""
    name: str = Field(..., min_length=2, max_length=255)
    slug: str = Field(..., min_length=2, max_length=100)
    description: str = ""
    logo_url: str = ""
    category: str = ""
    location: str = ""

    def to_draft(self, status: TenantStatus = TenantStatus.ACTIVE) -> TenantDraft:
        return TenantDraft(
            name=self.name,
            slug=self.slug,
            description=self.description,
            logo_url=self.logo_url,
            category=self.category,
            location=self.location,
            status=status,
        )


class TenantCreate(TenantDraftIn):
    status: TenantStatus = TenantStatus.ACTIVE


class TenantStatusUpdate(APIModel):
    # Validated by the service so bad values map to ValidationError
    status: str


class TenantResponse(APIModel):
    id: str
    name: str
    slug: str
    description: str
    logo_url: str
    category: str
    location: str
    status: TenantStatus
    created_by: str
    created_at: datetime


class SettingsResponse(APIModel):
    public_signup: bool
    approval_required: bool
    registration_fields_enabled: bool


class SettingsUpdate(APIModel):
    public_signup: Optional[bool] = None
    approval_required: Optional[bool] = None
    registration_fields_enabled: Optional[bool] = None


class TenantContextResponse(APIModel):
    tenant: TenantResponse
    license: Optional[TenantLicenseSummary] = None
    plan: Optional[PlanResponse] = None
    settings: SettingsResponse
    membership: Optional[MembershipResponse] = None
