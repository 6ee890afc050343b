"""
Super Admin Console

Read-side views for the platform operator. Tenant writes live in
services/tenants.py.
"""
from dataclasses import dataclass
from typing import List

from sqlalchemy.orm import Session

from tenancy.models.audit_log import AuditLog
from tenancy.models.license import License, LicenseStatus
from tenancy.models.tenant import Tenant
from tenancy.models.user import User
from tenancy.services.audit import list_audit_logs

RECENT_AUDIT_LIMIT = 12


@dataclass
class Overview:
    users: int
    tenants: int
    active_licenses: int
    recent_audit_logs: List[AuditLog]


def overview(db: Session) -> Overview:
    return Overview(
        users=db.query(User).count(),
        tenants=db.query(Tenant).count(),
        active_licenses=db.query(License).filter(License.status == LicenseStatus.ACTIVE).count(),
        recent_audit_logs=list_audit_logs(db, limit=RECENT_AUDIT_LIMIT),
    )


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.created_at.desc()).all()
