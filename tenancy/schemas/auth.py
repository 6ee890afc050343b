"""
Authentication Schemas

Request/response models for authentication endpoints.
"""
from pydantic import EmailStr, Field
from typing import Optional
from tenancy.schemas.base import APIModel
from tenancy.schemas.membership import MembershipResponse
from tenancy.schemas.user import UserResponse


class TokenPair(APIModel):
    """Access + refresh token response."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class SessionResponse(TokenPair):
    """Returned by register and login."""
    user: UserResponse
    memberships: list[MembershipResponse] = []


class MeResponse(APIModel):
    user: UserResponse
    memberships: list[MembershipResponse]


class LoginRequest(APIModel):
    """Login request body."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(APIModel):
    """User registration request."""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    full_name: str = Field("", max_length=255)
    phone: str = Field("", max_length=40)

    class Config:
        json_schema_extra = {
            "example": {
                "email": "user@example.com",
                "password": "securepassword123",
                "fullName": "Jane Doe",
                "phone": "+15550100"
            }
        }


class RefreshRequest(APIModel):
    """
    Refresh request.

    access_token may be expired; only its claims are read.
    """
    access_token: str = Field(..., min_length=20)
    refresh_token: str = Field(..., min_length=20)


class LogoutRequest(APIModel):
    refresh_token: Optional[str] = None
