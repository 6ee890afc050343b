"""
Super Admin Endpoints

Platform overview, user list, tenant management and the audit trail.
Every route requires SUPER_ADMIN.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from tenancy.database import get_db
from tenancy.core.permissions import Action, Actor
from tenancy.schemas.admin import AuditLogResponse, OverviewResponse
from tenancy.schemas.tenant import TenantCreate, TenantResponse, TenantStatusUpdate
from tenancy.schemas.user import UserResponse
from tenancy.services import admin as admin_service
from tenancy.services import audit as audit_service
from tenancy.services import tenants as tenant_service
from tenancy.api.deps import require_platform_action

router = APIRouter(prefix="/admin", tags=["admin"])

require_tenant_admin = require_platform_action(Action.MANAGE_TENANTS)
require_audit_viewer = require_platform_action(Action.VIEW_AUDIT)


@router.get("/overview", response_model=OverviewResponse)
async def overview(
    actor: Actor = Depends(require_tenant_admin),
    db: Session = Depends(get_db)
):
    summary = admin_service.overview(db)
    return OverviewResponse(
        users=summary.users,
        tenants=summary.tenants,
        active_licenses=summary.active_licenses,
        recent_audit_logs=summary.recent_audit_logs,
    )


@router.get("/users", response_model=list[UserResponse])
async def list_users(
    actor: Actor = Depends(require_tenant_admin),
    db: Session = Depends(get_db)
):
    return admin_service.list_users(db)


@router.get("/tenants", response_model=list[TenantResponse])
async def list_tenants(
    actor: Actor = Depends(require_tenant_admin),
    db: Session = Depends(get_db)
):
    return tenant_service.list_tenants(db)


@router.post("/tenants", response_model=TenantResponse, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    body: TenantCreate,
    actor: Actor = Depends(require_tenant_admin),
    db: Session = Depends(get_db)
):
    """Create a tenant without a license. The super admin becomes its OWNER."""
    return tenant_service.create_tenant(db, actor.user_id, body.to_draft(body.status))


@router.put("/tenants/{tenant_id}/status", response_model=TenantResponse)
async def update_tenant_status(
    tenant_id: str,
    body: TenantStatusUpdate,
    actor: Actor = Depends(require_tenant_admin),
    db: Session = Depends(get_db)
):
    return tenant_service.update_tenant_status(db, actor.user_id, tenant_id, body.status)


@router.delete("/tenants/{tenant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tenant(
    tenant_id: str,
    actor: Actor = Depends(require_tenant_admin),
    db: Session = Depends(get_db)
):
    """
    Hard delete.

    WARNING: Removes memberships, profiles, invitations and settings. A
    license that created the tenant keeps its claim timestamp.
    """
    tenant_service.delete_tenant(db, actor.user_id, tenant_id)


@router.get("/audit-logs", response_model=list[AuditLogResponse])
async def list_audit_logs(
    tenant_id: Optional[str] = Query(None, alias="tenantId"),
    limit: int = Query(100, ge=1, le=500),
    actor: Actor = Depends(require_audit_viewer),
    db: Session = Depends(get_db)
):
    return audit_service.list_audit_logs(db, tenant_id=tenant_id, limit=limit)
