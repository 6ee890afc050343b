"""
Onboarding Schemas

License claim: a license key plus the tenant to create with it.
"""
from pydantic import Field
from tenancy.schemas.base import APIModel
from tenancy.schemas.membership import MembershipResponse
from tenancy.schemas.tenant import TenantDraftIn, TenantResponse


class ClaimRequest(APIModel):
    license_key: str = Field(..., min_length=4)
    tenant: TenantDraftIn

    class Config:
        json_schema_extra = {
            "example": {
                "licenseKey": "CH-1A2B3-C4D5E-6F7A8-B9C0D",
                "tenant": {"name": "Acme", "slug": "acme"}
            }
        }


class ClaimResponse(APIModel):
    tenant: TenantResponse
    membership: MembershipResponse
