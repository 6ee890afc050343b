"""
User Schemas

Request/response models for the current user and the admin user list.
"""
from pydantic import Field
from typing import Optional
from datetime import datetime
from tenancy.models.user import GlobalRole
from tenancy.schemas.base import APIModel


class UserResponse(APIModel):
    """User response schema (excludes the password hash)."""
    id: str
    email: str
    full_name: str
    phone: str
    avatar_url: str
    global_role: GlobalRole
    created_at: datetime


class ProfileUpdate(APIModel):
    """Schema for updating the caller's profile. All fields optional."""
    full_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=40)
    avatar_url: Optional[str] = Field(None, max_length=512)
