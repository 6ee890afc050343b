"""
License Schemas
"""
from pydantic import Field
from typing import Any, Dict, Optional
from datetime import datetime
from tenancy.models.license import LicenseStatus
from tenancy.schemas.base import APIModel
from tenancy.schemas.plan import PlanResponse


class LicenseGenerate(APIModel):
    plan_id: str = Field(..., min_length=1)
    single_use: bool = True
    expires_at: Optional[datetime] = None


class LicenseResponse(APIModel):
    id: str
    key: str
    plan_id: Optional[str]
    status: LicenseStatus
    single_use: bool
    expires_at: Optional[datetime]
    claimed_at: Optional[datetime]
    claimed_by_user_id: Optional[str]
    claimed_tenant_id: Optional[str]
    limits_snapshot: Dict[str, Any]
    created_by: str
    created_at: datetime


class TenantLicenseSummary(APIModel):
    """
    License as shown on a tenant's public context.

    SECURITY: never carries the key or the claimant/creator ids. A leaked
    multi-use key would let anyone claim further tenants.
    """
    id: str
    status: LicenseStatus
    single_use: bool
    expires_at: Optional[datetime]
    limits_snapshot: Dict[str, Any]


class LicenseVerifyRequest(APIModel):
    license_key: str = Field(..., min_length=4)


class LicenseVerifyResponse(APIModel):
    license: LicenseResponse
    plan: Optional[PlanResponse] = None
    limits: Dict[str, Any]
