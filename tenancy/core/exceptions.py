"""
Custom Exceptions

Centralized exception definitions for the provisioning and trust core.
Every failure carries a stable machine-readable code next to the
human message; main.py renders both.

Services raise these directly. FastAPI converts them to HTTP responses,
and they are plain exceptions for callers outside the web layer.
"""
from fastapi import HTTPException, status


class AppError(HTTPException):
    """Base class for all domain failures."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "BAD_REQUEST"
    default_detail = "Bad request"

    def __init__(self, detail: str = "", headers: dict = None):
        super().__init__(
            status_code=type(self).status_code,
            detail=detail or type(self).default_detail,
            headers=headers
        )


# ----------------------------------------------------------------------------
# Generic
# ----------------------------------------------------------------------------

class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_detail = "Not found"


class ValidationError(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "VALIDATION_ERROR"
    default_detail = "Validation failed"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    default_detail = "Forbidden"


class InvalidStateError(AppError):
    """Operation not permitted in the entity's current lifecycle stage."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_STATE"
    default_detail = "Operation not allowed in current state"


class PlanNotFoundError(NotFoundError):
    code = "PLAN_NOT_FOUND"
    default_detail = "Plan not found"


# ----------------------------------------------------------------------------
# Conflicts (uniqueness)
# ----------------------------------------------------------------------------

class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_detail = "Conflict"


class EmailExistsError(ConflictError):
    code = "EMAIL_EXISTS"
    default_detail = "Email already in use"


class SlugExistsError(ConflictError):
    code = "SLUG_EXISTS"
    default_detail = "Slug already in use"


class InvitationExistsError(ConflictError):
    code = "INVITATION_EXISTS"
    default_detail = "An active invitation already exists for this email"


# ----------------------------------------------------------------------------
# Authentication
# ----------------------------------------------------------------------------

class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"
    default_detail = "Could not validate credentials"

    def __init__(self, detail: str = ""):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class InvalidCredentialsError(AuthenticationError):
    code = "INVALID_CREDENTIALS"
    default_detail = "Invalid credentials"


class InvalidTokenError(AuthenticationError):
    code = "INVALID_TOKEN"
    default_detail = "Invalid or expired token"


class InvalidTokenPayloadError(AuthenticationError):
    code = "INVALID_TOKEN_PAYLOAD"
    default_detail = "Invalid access token payload"


# ----------------------------------------------------------------------------
# Licensing
# ----------------------------------------------------------------------------

class LicenseInvalidError(AppError):
    code = "LICENSE_INVALID"
    default_detail = "License is not active"


class LicenseExpiredError(AppError):
    code = "LICENSE_EXPIRED"
    default_detail = "License has expired"


class LicenseClaimedError(AppError):
    code = "LICENSE_CLAIMED"
    default_detail = "License already claimed"
