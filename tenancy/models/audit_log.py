"""
Audit Log Model

Append-only record of administrative and lifecycle actions.
Written after the primary change commits (see services/audit.py).
"""
from sqlalchemy import Column, String, DateTime, JSON
from tenancy.database import Base, utcnow
import uuid


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # No foreign keys: audit rows outlive the entities they mention
    actor_user_id = Column(String(36), nullable=True, index=True)
    tenant_id = Column(String(36), nullable=True, index=True)

    action = Column(String(100), nullable=False, index=True)
    audit_metadata = Column("metadata", JSON, nullable=False, default=dict)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog {self.action} actor={self.actor_user_id}>"
