"""
Onboarding Endpoints

License claim: any authenticated user holding a valid key becomes the
OWNER of a new tenant.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tenancy.database import get_db
from tenancy.models.user import User
from tenancy.schemas.onboarding import ClaimRequest, ClaimResponse
from tenancy.services import licenses as license_service
from tenancy.services.memberships import get_membership
from tenancy.api.deps import get_current_user

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


@router.post("/claim", response_model=ClaimResponse, status_code=status.HTTP_201_CREATED)
async def claim_license(
    body: ClaimRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Claim a license and create the tenant it pays for.

    Either the tenant, the owner membership and the license update all
    commit, or none of them do.
    """
    tenant = license_service.claim(db, body.license_key, current_user.id, body.tenant.to_draft())
    return ClaimResponse(
        tenant=tenant,
        membership=get_membership(db, tenant.id, current_user.id),
    )
