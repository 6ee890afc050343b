"""
Admin Schemas

Super-admin console and audit trail.
"""
from pydantic import AliasChoices, Field
from typing import Any, Dict, Optional
from datetime import datetime
from tenancy.schemas.base import APIModel


class AuditLogResponse(APIModel):
    id: str
    actor_user_id: Optional[str]
    tenant_id: Optional[str]
    action: str
    # The ORM attribute is audit_metadata; the wire name is metadata
    audit_metadata: Dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("audit_metadata", "metadata"),
        serialization_alias="metadata"
    )
    created_at: datetime


class OverviewResponse(APIModel):
    users: int
    tenants: int
    active_licenses: int
    recent_audit_logs: list[AuditLogResponse]
