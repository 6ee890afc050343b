"""
Audit Sink

Fire-and-forget append of AuditLog rows.

The write happens on its own session, after the caller has committed,
so an audit failure can never roll back or fail the primary operation.
Failures are logged and swallowed.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from tenancy.models.audit_log import AuditLog
from tenancy.utils.logging import get_logger

logger = get_logger(__name__)


def record(
    db: Session,
    action: str,
    actor_user_id: Optional[str] = None,
    tenant_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    """Append an audit record. Never raises."""
    try:
        with Session(bind=db.get_bind(), expire_on_commit=False) as audit_db:
            audit_db.add(AuditLog(
                actor_user_id=actor_user_id,
                tenant_id=tenant_id,
                action=action,
                audit_metadata=metadata or {},
            ))
            audit_db.commit()
    except Exception:
        logger.exception(
            f"Audit write failed for action {action}",
            extra={"tenant_id": tenant_id, "user_id": actor_user_id}
        )


def list_audit_logs(db: Session, tenant_id: Optional[str] = None, limit: int = 100) -> List[AuditLog]:
    query = db.query(AuditLog)
    if tenant_id:
        query = query.filter(AuditLog.tenant_id == tenant_id)
    return query.order_by(AuditLog.created_at.desc()).limit(limit).all()
