"""
Invitation Model

An invitation pre-authorizes one email address to join one tenant
with a given role, regardless of the tenant's public-signup policy.

Stored status is SENT, ACCEPTED or REVOKED. EXPIRED is never written:
it is derived at read time from expires_at (see derive_invitation_status).
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Enum as SQLEnum
from tenancy.database import Base, utcnow
from tenancy.models.membership import TenantRole
import uuid
import enum


class InvitationStatus(str, enum.Enum):
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    REVOKED = "REVOKED"
    EXPIRED = "EXPIRED"  # derived only


def derive_invitation_status(
    status: InvitationStatus,
    expires_at: datetime,
    now: Optional[datetime] = None
) -> InvitationStatus:
    """
    Effective status of an invitation.

    Pure function of stored status and expiry; performs no writes.
    """
    if status == InvitationStatus.REVOKED:
        return InvitationStatus.REVOKED
    if status == InvitationStatus.ACCEPTED:
        return InvitationStatus.ACCEPTED
    if expires_at < (now or utcnow()):
        return InvitationStatus.EXPIRED
    return InvitationStatus.SENT


class Invitation(Base):
    __tablename__ = "invitations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(40), nullable=False, default="")
    role = Column(SQLEnum(TenantRole), default=TenantRole.MEMBER, nullable=False)

    status = Column(
        SQLEnum(InvitationStatus),
        default=InvitationStatus.SENT,
        nullable=False
    )
    token = Column(String(128), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)

    invited_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    accepted_by_user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    accepted_at = Column(DateTime, nullable=True)
    revoked_by_user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    revoked_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_invitation_tenant_email_status', 'tenant_id', 'email', 'status'),
    )

    def __repr__(self):
        return f"<Invitation {self.email} tenant={self.tenant_id} {self.status.value}>"

    @property
    def effective_status(self) -> InvitationStatus:
        return derive_invitation_status(self.status, self.expires_at)
