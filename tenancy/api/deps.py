"""
API Dependencies

Reusable FastAPI dependencies for authentication and authorization.

Every authorization decision goes through core.permissions.can_perform;
these dependencies only build the Actor and translate a False into
ForbiddenError.
"""
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from tenancy.database import get_db
from tenancy.models.membership import Membership
from tenancy.models.user import User
from tenancy.core.permissions import Action, Actor, can_perform
from tenancy.core.security import decode_access_token
from tenancy.core.exceptions import AuthenticationError, ForbiddenError, InvalidTokenError
from tenancy.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)

# HTTP Bearer token scheme; missing credentials are reported as 401 below
security = HTTPBearer(auto_error=False)


def client_ip(request: Request) -> str:
    return request.client.host if request.client else ""


def client_user_agent(request: Request) -> str:
    return request.headers.get("user-agent", "")


def _user_from_token(db: Session, token: str) -> Optional[User]:
    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        return None
    return db.query(User).filter(User.id == payload["sub"]).first()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Get current authenticated user.

    Validates the access token signature and expiry, then loads the user.
    The user row is authoritative for global role; the token's claim is not
    trusted for authorization.
    """
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    user = _user_from_token(db, credentials.credentials)
    if user is None:
        raise InvalidTokenError()
    return user


async def get_current_user_optional(
    request: Request,
    db: Session = Depends(get_db)
) -> Optional[User]:
    """
    Get current user if authenticated, None otherwise.

    Use for endpoints that behave differently for authenticated users
    but don't require authentication.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return _user_from_token(db, auth_header[len("Bearer "):])


async def get_actor(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Actor:
    """Snapshot of the caller's global role and memberships for can_perform."""
    rows = db.query(Membership).filter(Membership.user_id == current_user.id).all()
    return Actor.from_rows(current_user.id, current_user.global_role, rows)


def _deny(actor: Actor, action: Action, tenant_id: Optional[str] = None) -> None:
    log_security_event(
        "privilege_escalation",
        {"user_id": actor.user_id, "action": action.value, "tenant_id": tenant_id},
        logger
    )


def require_platform_action(action: Action):
    """Dependency factory for super-admin-only endpoints."""

    async def dependency(actor: Actor = Depends(get_actor)) -> Actor:
        if not can_perform(actor, action):
            _deny(actor, action)
            raise ForbiddenError("Super admin privileges required")
        return actor

    return dependency


def require_tenant_action(action: Action):
    """
    Dependency factory for tenant-scoped endpoints.

    The tenant comes from the {tenant_id} path parameter.
    """

    async def dependency(tenant_id: str, actor: Actor = Depends(get_actor)) -> Actor:
        if not can_perform(actor, action, tenant_id):
            _deny(actor, action, tenant_id)
            raise ForbiddenError("Insufficient tenant role")
        return actor

    return dependency
