"""
License Endpoints

Generation, listing and suspension are super-admin only. Verification
is public so a prospective owner can check a key before signing up.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tenancy.database import get_db
from tenancy.core.permissions import Action, Actor
from tenancy.schemas.license import (
    LicenseGenerate,
    LicenseResponse,
    LicenseVerifyRequest,
    LicenseVerifyResponse,
)
from tenancy.services import licenses as license_service
from tenancy.api.deps import require_platform_action

router = APIRouter(prefix="/licenses", tags=["licenses"])

require_license_admin = require_platform_action(Action.MANAGE_LICENSES)


@router.post("/verify", response_model=LicenseVerifyResponse)
async def verify_license(
    body: LicenseVerifyRequest,
    db: Session = Depends(get_db)
):
    """
    Check a license key.

    NOTE: Not read-only. An ACTIVE key found past its expiry is persisted
    as EXPIRED before the error is returned.
    """
    verified = license_service.verify(db, body.license_key)
    return LicenseVerifyResponse(
        license=verified.license,
        plan=verified.plan,
        limits=verified.limits,
    )


@router.post("/generate", response_model=LicenseResponse, status_code=status.HTTP_201_CREATED)
async def generate_license(
    body: LicenseGenerate,
    actor: Actor = Depends(require_license_admin),
    db: Session = Depends(get_db)
):
    return license_service.generate(
        db,
        actor.user_id,
        plan_id=body.plan_id,
        single_use=body.single_use,
        expires_at=body.expires_at,
    )


@router.get("", response_model=list[LicenseResponse])
async def list_licenses(
    actor: Actor = Depends(require_license_admin),
    db: Session = Depends(get_db)
):
    return license_service.list_licenses(db)


@router.put("/{license_id}/suspend", response_model=LicenseResponse)
async def suspend_license(
    license_id: str,
    actor: Actor = Depends(require_license_admin),
    db: Session = Depends(get_db)
):
    return license_service.suspend(db, actor.user_id, license_id)
