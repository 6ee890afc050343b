"""
Plan Schemas
"""
from pydantic import Field
from typing import Any, Dict, Optional
from datetime import datetime
from tenancy.schemas.base import APIModel


class PlanCreate(APIModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    max_members: int = Field(100, ge=1)
    max_admins: int = Field(3, ge=1)
    feature_flags: Dict[str, Any] = Field(default_factory=dict)


class PlanUpdate(APIModel):
    """Partial update. At least one field must be present."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    max_members: Optional[int] = Field(None, ge=1)
    max_admins: Optional[int] = Field(None, ge=1)
    feature_flags: Optional[Dict[str, Any]] = None


class PlanResponse(APIModel):
    id: str
    name: str
    description: str
    max_members: int
    max_admins: int
    feature_flags: Dict[str, Any]
    created_at: datetime
    updated_at: datetime
