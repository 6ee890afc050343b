"""
Tenant Model

The tenant is the primary isolation boundary. Each tenant is created
either directly by a super admin or by claiming a license.

NOTE: slug is lowercase, unique, and immutable after creation.
Uniqueness is enforced by the database constraint; creators rely on
the IntegrityError rather than a read-before-insert check.
"""
from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship
from tenancy.database import Base, utcnow
import uuid
import enum


class TenantStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)

    description = Column(Text, nullable=False, default="")
    logo_url = Column(String(512), nullable=False, default="")
    category = Column(String(100), nullable=False, default="")
    location = Column(String(255), nullable=False, default="")

    status = Column(
        SQLEnum(TenantStatus),
        default=TenantStatus.ACTIVE,
        nullable=False,
        index=True
    )

    created_by = Column(String(36), ForeignKey("users.id"), nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    memberships = relationship("Membership", back_populates="tenant", cascade="all, delete-orphan")
    settings = relationship(
        "TenantSettings",
        back_populates="tenant",
        uselist=False,
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index('idx_tenant_status_created', 'status', 'created_at'),
    )

    def __repr__(self):
        return f"<Tenant {self.slug}>"


class TenantSettings(Base):
    """
    Per-tenant join policy.

    A tenant without a row behaves as if every flag had its default.
    """
    __tablename__ = "tenant_settings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True
    )

    public_signup = Column(Boolean, default=True, nullable=False)
    approval_required = Column(Boolean, default=False, nullable=False)
    registration_fields_enabled = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    tenant = relationship("Tenant", back_populates="settings")

    DEFAULTS = {
        "public_signup": True,
        "approval_required": False,
        "registration_fields_enabled": True,
    }

    def __repr__(self):
        return f"<TenantSettings tenant={self.tenant_id}>"
