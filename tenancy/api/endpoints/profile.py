"""
Profile Endpoints

The caller's own account details.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tenancy.database import get_db
from tenancy.models.user import User
from tenancy.schemas.user import ProfileUpdate, UserResponse
from tenancy.services import auth as auth_service
from tenancy.api.deps import get_current_user

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=UserResponse)
async def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("", response_model=UserResponse)
async def update_profile(
    changes: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Partial update; omitted fields are left unchanged."""
    return auth_service.update_profile(
        db,
        current_user.id,
        full_name=changes.full_name,
        phone=changes.phone,
        avatar_url=changes.avatar_url,
    )
